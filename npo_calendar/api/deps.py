"""Shared request dependencies."""

import uuid

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from npo_calendar.database import get_db
from npo_calendar.services.access import Principal
from npo_calendar.services.profiles import ProfileService


def get_principal(
    x_principal_id: uuid.UUID | None = Header(
        default=None, description="Principal id asserted by the identity provider"
    ),
    db: Session = Depends(get_db),
) -> Principal:
    """Resolve the caller, reading the role fresh from storage on every request."""
    return ProfileService(db).resolve_principal(x_principal_id)

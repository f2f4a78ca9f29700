"""Profile model."""

import uuid
from enum import Enum

from sqlalchemy import Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from npo_calendar.database import Base
from npo_calendar.models.mixins import TimestampMixin


class Role(str, Enum):
    """Role held by an authenticated principal."""

    MEMBER = "member"
    MANAGER = "manager"
    ADMIN = "admin"


class Profile(Base, TimestampMixin):
    """Profile record for an authenticated principal.

    The identity provider authenticates the person; this row carries the
    role the calendar evaluates on every request.
    """

    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), default=Role.MEMBER.value, nullable=False)

    # Relationships
    events: Mapped[list["Event"]] = relationship(back_populates="owner")  # noqa: F821

    __table_args__ = (Index("idx_profiles_role", "role"),)

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, role='{self.role}')>"

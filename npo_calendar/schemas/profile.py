"""Profile schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from npo_calendar.models.profile import Role


class ProfileBase(BaseModel):
    """Base profile schema."""

    email: str = Field(max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    display_name: str = Field(min_length=1, max_length=255)


class ProfileCreate(ProfileBase):
    """Schema for registering a profile."""

    pass


class ProfileUpdate(BaseModel):
    """Schema for updating one's own profile."""

    display_name: str | None = Field(default=None, min_length=1, max_length=255)


class RoleChange(BaseModel):
    """Schema for changing a profile's role."""

    role: Role


class Profile(ProfileBase):
    """Schema for profile response."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    role: Role
    created_at: datetime
    updated_at: datetime

"""Category schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"


class CategoryBase(BaseModel):
    """Base category schema."""

    name: str = Field(min_length=1, max_length=100)
    color: str = Field(default="#1976d2", pattern=COLOR_PATTERN)
    icon: str | None = Field(default=None, max_length=50)
    description: str | None = None
    display_order: int = 0


class CategoryCreate(CategoryBase):
    """Schema for creating a category."""

    pass


class CategoryUpdate(BaseModel):
    """Schema for updating a category."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    color: str | None = Field(default=None, pattern=COLOR_PATTERN)
    icon: str | None = Field(default=None, max_length=50)
    description: str | None = None
    display_order: int | None = None
    is_active: bool | None = None


class CategoryReorder(BaseModel):
    """Schema for reordering categories; position in the list becomes display order."""

    category_ids: list[uuid.UUID]


class Category(CategoryBase):
    """Schema for category response."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    is_active: bool
    created_at: datetime

"""Category model."""

import uuid

from sqlalchemy import Boolean, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from npo_calendar.database import Base
from npo_calendar.models.mixins import TimestampMixin


class Category(Base, TimestampMixin):
    """Named, colored tag for grouping events."""

    __tablename__ = "categories"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    color: Mapped[str] = mapped_column(String(7), nullable=False, default="#1976d2")
    icon: Mapped[str | None] = mapped_column(String(50), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    display_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    # Deactivation is a soft delete; events keep their reference
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Relationships
    events: Mapped[list["Event"]] = relationship(back_populates="category")  # noqa: F821

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, name='{self.name}')>"

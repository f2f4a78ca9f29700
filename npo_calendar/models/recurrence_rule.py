"""Recurrence rule model."""

import uuid
from datetime import date, datetime
from enum import Enum

from sqlalchemy import JSON, CheckConstraint, DateTime, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from npo_calendar.database import Base
from npo_calendar.models.mixins import utcnow

# Hard ceiling on occurrences generated for any one series
MAX_OCCURRENCES = 365


class Frequency(str, Enum):
    """How often a series repeats."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class RecurrenceRule(Base):
    """Repetition rule attached to a template event.

    A rule terminates either on ``end_date`` (inclusive) or after
    ``max_occurrences``. Weekdays use 0=Monday ... 6=Sunday.
    """

    __tablename__ = "recurrence_rules"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    frequency: Mapped[str] = mapped_column(String(20), nullable=False)
    interval: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    end_date: Mapped[date | None] = mapped_column(nullable=True)
    max_occurrences: Mapped[int | None] = mapped_column(Integer, nullable=True)
    days_of_week: Mapped[list[int] | None] = mapped_column(JSON, nullable=True)
    day_of_month: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    # Relationships
    events: Mapped[list["Event"]] = relationship(back_populates="recurrence_rule")  # noqa: F821

    __table_args__ = (
        CheckConstraint('"interval" > 0', name="ck_recurrence_rules_interval_positive"),
        CheckConstraint(
            f"max_occurrences IS NULL OR max_occurrences BETWEEN 1 AND {MAX_OCCURRENCES}",
            name="ck_recurrence_rules_max_occurrences",
        ),
    )

    def __repr__(self) -> str:
        return f"<RecurrenceRule(id={self.id}, frequency='{self.frequency}', interval={self.interval})>"

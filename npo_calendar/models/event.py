"""Event and event exception models."""

import uuid
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from npo_calendar.database import Base
from npo_calendar.models.mixins import TimestampMixin, utcnow


class Visibility(str, Enum):
    """Who may read an event."""

    PUBLIC = "public"
    INTERNAL = "internal"
    PRIVATE = "private"


class Event(Base, TimestampMixin):
    """Calendar event.

    An event with a recurrence rule is a template: only its expansions are
    shown. An event with a ``series_id`` is a standalone edited instance that
    replaces the occurrence of that series on ``original_start_date``.
    """

    __tablename__ = "events"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    start_time: Mapped[datetime] = mapped_column(nullable=False)
    end_time: Mapped[datetime] = mapped_column(nullable=False)
    all_day: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    location: Mapped[str | None] = mapped_column(String(500), nullable=True)
    visibility: Mapped[str] = mapped_column(
        String(20), default=Visibility.PUBLIC.value, nullable=False
    )
    category_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("categories.id", ondelete="SET NULL"), nullable=True
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("profiles.id"), nullable=False)
    recurrence_rule_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("recurrence_rules.id"), nullable=True
    )
    series_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("events.id", ondelete="CASCADE"), nullable=True
    )
    original_start_date: Mapped[date | None] = mapped_column(nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    # Relationships
    owner: Mapped["Profile"] = relationship(back_populates="events")  # noqa: F821
    category: Mapped[Optional["Category"]] = relationship(back_populates="events")  # noqa: F821
    recurrence_rule: Mapped[Optional["RecurrenceRule"]] = relationship(  # noqa: F821
        back_populates="events"
    )
    exceptions: Mapped[list["EventException"]] = relationship(
        back_populates="event", cascade="all, delete-orphan"
    )
    series: Mapped[Optional["Event"]] = relationship(
        back_populates="edited_instances", remote_side="Event.id"
    )
    edited_instances: Mapped[list["Event"]] = relationship(
        back_populates="series", cascade="all, delete-orphan"
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("idx_events_start_time", "start_time"),
        Index("idx_events_owner_id", "owner_id"),
        Index("idx_events_series_id", "series_id"),
        UniqueConstraint("series_id", "original_start_date", name="uq_events_series_original_date"),
    )

    @property
    def is_template(self) -> bool:
        return self.recurrence_rule_id is not None

    @property
    def duration(self) -> timedelta:
        return self.end_time - self.start_time

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, title='{self.title}')>"


class EventException(Base):
    """Suppresses one generated occurrence of a template event."""

    __tablename__ = "event_exceptions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    event_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("events.id", ondelete="CASCADE"), nullable=False
    )
    exception_date: Mapped[date] = mapped_column(nullable=False)
    reason: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    # Relationships
    event: Mapped["Event"] = relationship(back_populates="exceptions")

    __table_args__ = (
        UniqueConstraint("event_id", "exception_date", name="uq_event_exceptions_event_date"),
    )

    def __repr__(self) -> str:
        return f"<EventException(event_id={self.event_id}, date={self.exception_date})>"

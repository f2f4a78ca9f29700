"""Event, recurrence and exception schemas."""

import uuid
from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from npo_calendar.errors import ValidationError
from npo_calendar.models.event import Visibility
from npo_calendar.models.recurrence_rule import Frequency
from npo_calendar.services.calendar_time import to_calendar_time
from npo_calendar.services.recurrence import validate_rule


def validate_event_times(start_time: datetime, end_time: datetime) -> None:
    """Raise ValidationError unless the event ends after it starts."""
    if end_time <= start_time:
        raise ValidationError("Event end must be after its start")


class MutationScope(str, Enum):
    """Which part of a recurring series an update or delete applies to."""

    THIS_INSTANCE = "this_instance"
    ALL_FUTURE = "all_future"
    ALL = "all"


class RecurrenceRuleCreate(BaseModel):
    """Schema for creating a recurrence rule."""

    frequency: Frequency
    interval: int = 1
    end_date: date | None = None
    max_occurrences: int | None = None
    days_of_week: list[int] | None = None
    day_of_month: int | None = None

    @model_validator(mode="after")
    def check_rule(self) -> "RecurrenceRuleCreate":
        validate_rule(**self.model_dump())
        return self


class RecurrenceRule(BaseModel):
    """Schema for recurrence rule response."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    frequency: Frequency
    interval: int
    end_date: date | None = None
    max_occurrences: int | None = None
    days_of_week: list[int] | None = None
    day_of_month: int | None = None


class EventBase(BaseModel):
    """Base event schema."""

    title: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=5000)
    start_time: datetime
    end_time: datetime
    all_day: bool = False
    location: str | None = Field(default=None, max_length=500)
    visibility: Visibility = Visibility.PUBLIC
    category_id: uuid.UUID | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_time(cls, value: datetime) -> datetime:
        return to_calendar_time(value)

    @model_validator(mode="after")
    def check_times(self) -> "EventBase":
        validate_event_times(self.start_time, self.end_time)
        return self


class EventCreate(EventBase):
    """Schema for creating an event, optionally recurring."""

    recurrence: RecurrenceRuleCreate | None = None


class EventUpdate(BaseModel):
    """Schema for updating an event. Unset fields are left unchanged."""

    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=5000)
    start_time: datetime | None = None
    end_time: datetime | None = None
    all_day: bool | None = None
    location: str | None = Field(default=None, max_length=500)
    visibility: Visibility | None = None
    category_id: uuid.UUID | None = None
    recurrence: RecurrenceRuleCreate | None = None
    expected_version: int | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_time(cls, value: datetime | None) -> datetime | None:
        return to_calendar_time(value) if value is not None else None

    @model_validator(mode="after")
    def check_times(self) -> "EventUpdate":
        if self.start_time is not None and self.end_time is not None:
            validate_event_times(self.start_time, self.end_time)
        return self

    def changes(self) -> dict:
        """Event field changes, without the recurrence and version controls."""
        return self.model_dump(exclude_unset=True, exclude={"recurrence", "expected_version"})


class Event(BaseModel):
    """Schema for a stored event."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    description: str | None = None
    start_time: datetime
    end_time: datetime
    all_day: bool
    location: str | None = None
    visibility: Visibility
    category_id: uuid.UUID | None = None
    owner_id: uuid.UUID
    series_id: uuid.UUID | None = None
    original_start_date: date | None = None
    recurrence_rule: RecurrenceRule | None = None
    version: int
    created_at: datetime
    updated_at: datetime


class EventOccurrence(BaseModel):
    """Schema for one entry of a calendar window listing."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    description: str | None = None
    start_time: datetime
    end_time: datetime
    all_day: bool
    location: str | None = None
    visibility: Visibility
    category_id: uuid.UUID | None = None
    owner_id: uuid.UUID
    series_id: uuid.UUID | None = None
    original_start_date: date | None = None
    is_generated: bool
    version: int


class EventException(BaseModel):
    """Schema for a suppressed occurrence."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    event_id: uuid.UUID
    exception_date: date
    reason: str | None = None
    created_at: datetime


class MutationResult(BaseModel):
    """Schema for the records an update or delete produced."""

    event: Event | None = None
    exception: EventException | None = None
    successor: Event | None = None
    deleted_ids: list[uuid.UUID] = Field(default_factory=list)

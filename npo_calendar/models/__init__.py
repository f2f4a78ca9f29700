"""SQLAlchemy ORM models."""

from npo_calendar.models.category import Category
from npo_calendar.models.event import Event, EventException, Visibility
from npo_calendar.models.profile import Profile, Role
from npo_calendar.models.recurrence_rule import MAX_OCCURRENCES, Frequency, RecurrenceRule

__all__ = [
    "Category",
    "Event",
    "EventException",
    "Frequency",
    "MAX_OCCURRENCES",
    "Profile",
    "RecurrenceRule",
    "Role",
    "Visibility",
]

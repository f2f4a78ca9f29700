"""Pydantic schemas for request/response validation."""

from npo_calendar.schemas.category import Category, CategoryCreate, CategoryReorder, CategoryUpdate
from npo_calendar.schemas.event import (
    Event,
    EventCreate,
    EventException,
    EventOccurrence,
    EventUpdate,
    MutationResult,
    MutationScope,
    RecurrenceRule,
    RecurrenceRuleCreate,
)
from npo_calendar.schemas.profile import Profile, ProfileCreate, ProfileUpdate, RoleChange

__all__ = [
    "Category",
    "CategoryCreate",
    "CategoryReorder",
    "CategoryUpdate",
    "Event",
    "EventCreate",
    "EventException",
    "EventOccurrence",
    "EventUpdate",
    "MutationResult",
    "MutationScope",
    "Profile",
    "ProfileCreate",
    "ProfileUpdate",
    "RecurrenceRule",
    "RecurrenceRuleCreate",
    "RoleChange",
]

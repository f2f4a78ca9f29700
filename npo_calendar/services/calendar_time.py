"""Conversion of incoming timestamps to calendar wall-clock time."""

from datetime import datetime

import pytz

from npo_calendar.config import get_app_config


def calendar_timezone() -> pytz.BaseTzInfo:
    """Timezone every stored event time is expressed in."""
    return pytz.timezone(get_app_config().timezone)


def to_calendar_time(value: datetime) -> datetime:
    """Express ``value`` as naive wall-clock time in the calendar timezone.

    Naive values are taken to be calendar time already. Recurring series step
    by wall-clock time, so a weekly 10:00 meeting stays at 10:00 across DST.
    """
    if value.tzinfo is None:
        return value
    return value.astimezone(calendar_timezone()).replace(tzinfo=None)

"""Recurrence rule validation and expansion.

Expansion is a pure computation over a template event and its rule: it
never touches storage and never raises for a rule that passed
``validate_rule``. Every call recomputes the series from its first date.
"""

import uuid
from collections.abc import Collection, Iterator, Mapping
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from itertools import islice, takewhile

from dateutil.relativedelta import relativedelta

from npo_calendar.errors import ValidationError
from npo_calendar.models.recurrence_rule import MAX_OCCURRENCES, Frequency


@dataclass(frozen=True)
class Occurrence:
    """A concrete event as shown to a viewer.

    Generated occurrences carry the template's id and ``is_generated=True``;
    standalone events (including edited instances) carry their own id.
    """

    id: uuid.UUID
    title: str
    description: str | None
    start_time: datetime
    end_time: datetime
    all_day: bool
    location: str | None
    visibility: str
    category_id: uuid.UUID | None
    owner_id: uuid.UUID
    series_id: uuid.UUID | None
    original_start_date: date | None
    is_generated: bool
    version: int

    @classmethod
    def from_event(cls, event) -> "Occurrence":
        return cls(
            id=event.id,
            title=event.title,
            description=event.description,
            start_time=event.start_time,
            end_time=event.end_time,
            all_day=event.all_day,
            location=event.location,
            visibility=event.visibility,
            category_id=event.category_id,
            owner_id=event.owner_id,
            series_id=event.series_id,
            original_start_date=event.original_start_date,
            is_generated=False,
            version=event.version,
        )

    @classmethod
    def from_template(cls, template, start_time: datetime) -> "Occurrence":
        return cls(
            id=template.id,
            title=template.title,
            description=template.description,
            start_time=start_time,
            end_time=start_time + (template.end_time - template.start_time),
            all_day=template.all_day,
            location=template.location,
            visibility=template.visibility,
            category_id=template.category_id,
            owner_id=template.owner_id,
            series_id=template.id,
            original_start_date=start_time.date(),
            is_generated=True,
            version=template.version,
        )

    @property
    def sort_key(self) -> tuple[datetime, str]:
        return (self.start_time, str(self.id))


def validate_rule(
    frequency: str,
    interval: int = 1,
    end_date: date | None = None,
    max_occurrences: int | None = None,
    days_of_week: Collection[int] | None = None,
    day_of_month: int | None = None,
) -> None:
    """Reject malformed rules at creation time.

    Raises:
        ValidationError: describing the first problem found
    """
    try:
        frequency = Frequency(frequency)
    except ValueError:
        raise ValidationError(f"Unknown recurrence frequency: {frequency}") from None

    if interval is None or interval <= 0:
        raise ValidationError("Recurrence interval must be a positive integer")

    if end_date is not None and max_occurrences is not None:
        raise ValidationError("Give either an end date or a maximum occurrence count, not both")
    if end_date is None and max_occurrences is None:
        raise ValidationError("A recurrence needs an end date or a maximum occurrence count")
    if max_occurrences is not None and not 1 <= max_occurrences <= MAX_OCCURRENCES:
        raise ValidationError(f"Maximum occurrences must be between 1 and {MAX_OCCURRENCES}")

    if frequency == Frequency.WEEKLY:
        if not days_of_week:
            raise ValidationError("Weekly recurrence needs at least one weekday")
        if any(not 0 <= day <= 6 for day in days_of_week):
            raise ValidationError("Weekdays must be between 0 (Monday) and 6 (Sunday)")

    if day_of_month is not None and not 1 <= day_of_month <= 31:
        raise ValidationError("Day of month must be between 1 and 31")


def candidate_dates(rule, first: date) -> Iterator[date]:
    """Yield the unbounded, strictly increasing dates a rule steps through from ``first``."""
    frequency = Frequency(rule.frequency)
    interval = rule.interval

    if frequency == Frequency.DAILY:
        current = first
        while True:
            yield current
            current += timedelta(days=interval)

    elif frequency == Frequency.WEEKLY:
        weekdays = sorted(set(rule.days_of_week or [first.weekday()]))
        week_start = first - timedelta(days=first.weekday())
        while True:
            for weekday in weekdays:
                day = week_start + timedelta(days=weekday)
                if day >= first:
                    yield day
            week_start += timedelta(weeks=interval)

    else:
        # relativedelta clamps day 31 to the last day of shorter months
        day_of_month = rule.day_of_month or first.day
        month_start = first.replace(day=1)
        months = 0
        while True:
            day = month_start + relativedelta(months=months, day=day_of_month)
            if day >= first:
                yield day
            months += interval


def series_dates(template, rule) -> Iterator[date]:
    """Yield every date of a series, bounded by its end date and occurrence cap.

    When both bounds are set the earlier one wins; neither bound means the
    hard ceiling alone applies.
    """
    limit = MAX_OCCURRENCES
    if rule.max_occurrences:
        limit = min(limit, rule.max_occurrences)

    for day in islice(candidate_dates(rule, template.start_time.date()), limit):
        if rule.end_date is not None and day > rule.end_date:
            return
        yield day


def is_series_date(template, rule, day: date) -> bool:
    return any(d == day for d in takewhile(lambda d: d <= day, series_dates(template, rule)))


def count_before(template, rule, day: date) -> int:
    """Number of occurrences the series produces before ``day``."""
    return sum(1 for _ in takewhile(lambda d: d < day, series_dates(template, rule)))


def expand(
    template,
    rule,
    window_start: datetime,
    window_end: datetime,
    exceptions: Collection[date] = (),
    edited: Mapping[date, object] | None = None,
) -> Iterator[Occurrence]:
    """Yield the occurrences of ``template`` starting in ``[window_start, window_end)``.

    Args:
        template: Event carrying the recurrence
        rule: The template's RecurrenceRule
        window_start: Inclusive lower bound
        window_end: Exclusive upper bound
        exceptions: Dates whose occurrence is suppressed
        edited: Standalone edited instances keyed by the date they replace

    Yields:
        Occurrence in strictly increasing start order
    """
    suppressed = set(exceptions)
    edited = edited or {}
    time_of_day = template.start_time.timetz()

    for day in series_dates(template, rule):
        start_time = datetime.combine(day, time_of_day)
        if start_time >= window_end:
            return
        if start_time < window_start:
            continue
        if day in suppressed:
            continue
        if day in edited:
            yield Occurrence.from_event(edited[day])
            continue
        yield Occurrence.from_template(template, start_time)

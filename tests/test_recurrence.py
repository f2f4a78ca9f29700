"""Tests for recurrence validation and expansion."""

import uuid
from datetime import date, datetime, timedelta
from types import SimpleNamespace

import pytest

from npo_calendar.errors import ValidationError
from npo_calendar.services.recurrence import (
    count_before,
    expand,
    is_series_date,
    validate_rule,
)

FAR_PAST = datetime(2000, 1, 1)
FAR_FUTURE = datetime(2100, 1, 1)


def make_template(start: datetime, hours: int = 1) -> SimpleNamespace:
    return SimpleNamespace(
        id=uuid.uuid4(),
        title="Volunteer shift",
        description=None,
        start_time=start,
        end_time=start + timedelta(hours=hours),
        all_day=False,
        location="Community hall",
        visibility="public",
        category_id=None,
        owner_id=uuid.uuid4(),
        version=1,
    )


def make_rule(frequency: str, **kwargs) -> SimpleNamespace:
    fields = {
        "interval": 1,
        "end_date": None,
        "max_occurrences": None,
        "days_of_week": None,
        "day_of_month": None,
    }
    fields.update(kwargs)
    return SimpleNamespace(frequency=frequency, **fields)


def start_dates(occurrences) -> list[date]:
    return [o.start_time.date() for o in occurrences]


@pytest.fixture
def monday_template() -> SimpleNamespace:
    # 2025-01-06 is a Monday
    return make_template(datetime(2025, 1, 6, 18, 30))


@pytest.fixture
def monday_rule() -> SimpleNamespace:
    return make_rule("weekly", days_of_week=[0], end_date=date(2025, 2, 1))


class TestValidateRule:
    """Tests for rule validation."""

    def test_valid_weekly_rule(self):
        validate_rule("weekly", interval=1, days_of_week=[0, 2], end_date=date(2025, 6, 1))

    @pytest.mark.parametrize(
        "kwargs, message",
        [
            ({"frequency": "yearly", "max_occurrences": 3}, "frequency"),
            ({"frequency": "daily", "interval": 0, "max_occurrences": 3}, "interval"),
            ({"frequency": "daily", "interval": -2, "max_occurrences": 3}, "interval"),
            ({"frequency": "weekly", "days_of_week": [], "max_occurrences": 3}, "weekday"),
            ({"frequency": "weekly", "days_of_week": [7], "max_occurrences": 3}, "Weekdays"),
            ({"frequency": "monthly", "day_of_month": 32, "max_occurrences": 3}, "Day of month"),
            ({"frequency": "daily", "max_occurrences": 366}, "between 1 and 365"),
            ({"frequency": "daily"}, "end date or a maximum"),
            (
                {"frequency": "daily", "max_occurrences": 3, "end_date": date(2025, 1, 1)},
                "not both",
            ),
        ],
    )
    def test_malformed_rules_fail_fast(self, kwargs, message):
        with pytest.raises(ValidationError, match=message):
            validate_rule(**kwargs)


class TestWeeklyExpansion:
    """Tests for weekly series."""

    def test_monday_series_in_january(self, monday_template, monday_rule):
        occurrences = list(
            expand(monday_template, monday_rule, datetime(2025, 1, 1), datetime(2025, 2, 1))
        )
        assert start_dates(occurrences) == [
            date(2025, 1, 6),
            date(2025, 1, 13),
            date(2025, 1, 20),
            date(2025, 1, 27),
        ]

    def test_exception_date_is_skipped(self, monday_template, monday_rule):
        occurrences = list(
            expand(
                monday_template,
                monday_rule,
                datetime(2025, 1, 1),
                datetime(2025, 2, 1),
                exceptions={date(2025, 1, 13)},
            )
        )
        assert start_dates(occurrences) == [date(2025, 1, 6), date(2025, 1, 20), date(2025, 1, 27)]

    def test_exception_never_reappears_in_other_windows(self, monday_template, monday_rule):
        exceptions = {date(2025, 1, 13)}
        for window_start, window_end in [
            (datetime(2025, 1, 13), datetime(2025, 1, 14)),
            (datetime(2025, 1, 10), datetime(2025, 1, 20)),
            (FAR_PAST, FAR_FUTURE),
        ]:
            occurrences = expand(
                monday_template, monday_rule, window_start, window_end, exceptions=exceptions
            )
            assert date(2025, 1, 13) not in start_dates(occurrences)

    def test_occurrence_copies_template_fields(self, monday_template, monday_rule):
        first = next(expand(monday_template, monday_rule, FAR_PAST, FAR_FUTURE))
        second = list(expand(monday_template, monday_rule, FAR_PAST, FAR_FUTURE))[1]

        assert first.id == monday_template.id
        assert first.series_id == monday_template.id
        assert first.is_generated
        assert second.start_time == datetime(2025, 1, 13, 18, 30)
        assert second.end_time == datetime(2025, 1, 13, 19, 30)
        assert second.original_start_date == date(2025, 1, 13)
        assert second.location == "Community hall"

    def test_multiple_weekdays_every_other_week(self):
        # 2025-01-01 is a Wednesday; Monday the 30th precedes the series start
        template = make_template(datetime(2025, 1, 1, 9))
        rule = make_rule("weekly", interval=2, days_of_week=[4, 0, 2], max_occurrences=5)
        assert start_dates(expand(template, rule, FAR_PAST, FAR_FUTURE)) == [
            date(2025, 1, 1),
            date(2025, 1, 3),
            date(2025, 1, 13),
            date(2025, 1, 15),
            date(2025, 1, 17),
        ]

    def test_window_end_is_exclusive(self, monday_template, monday_rule):
        occurrences = expand(
            monday_template, monday_rule, datetime(2025, 1, 1), datetime(2025, 1, 13, 18, 30)
        )
        assert start_dates(occurrences) == [date(2025, 1, 6)]


class TestMonthlyExpansion:
    """Tests for monthly series."""

    def test_day_31_clamps_to_month_end(self):
        template = make_template(datetime(2025, 1, 31, 12))
        rule = make_rule("monthly", max_occurrences=4)
        assert start_dates(expand(template, rule, FAR_PAST, FAR_FUTURE)) == [
            date(2025, 1, 31),
            date(2025, 2, 28),
            date(2025, 3, 31),
            date(2025, 4, 30),
        ]

    def test_leap_february(self):
        template = make_template(datetime(2024, 1, 31, 12))
        rule = make_rule("monthly", max_occurrences=2)
        assert start_dates(expand(template, rule, FAR_PAST, FAR_FUTURE)) == [
            date(2024, 1, 31),
            date(2024, 2, 29),
        ]

    def test_explicit_day_of_month_after_start(self):
        template = make_template(datetime(2025, 1, 20, 12))
        rule = make_rule("monthly", interval=2, day_of_month=15, max_occurrences=3)
        assert start_dates(expand(template, rule, FAR_PAST, FAR_FUTURE)) == [
            date(2025, 3, 15),
            date(2025, 5, 15),
            date(2025, 7, 15),
        ]


class TestBounds:
    """Tests for termination and the occurrence ceiling."""

    def test_daily_interval_with_count(self):
        template = make_template(datetime(2025, 3, 1, 8))
        rule = make_rule("daily", interval=2, max_occurrences=3)
        assert start_dates(expand(template, rule, FAR_PAST, FAR_FUTURE)) == [
            date(2025, 3, 1),
            date(2025, 3, 3),
            date(2025, 3, 5),
        ]

    def test_unbounded_series_stops_at_ceiling(self):
        template = make_template(datetime(2025, 1, 1, 8))
        rule = make_rule("daily")
        occurrences = list(expand(template, rule, FAR_PAST, FAR_FUTURE))

        assert len(occurrences) == 365
        starts = [o.start_time for o in occurrences]
        assert starts == sorted(set(starts))
        assert len({o.original_start_date for o in occurrences}) == 365

    def test_oversized_count_is_capped(self):
        template = make_template(datetime(2025, 1, 1, 8))
        rule = make_rule("daily", max_occurrences=1000)
        assert len(list(expand(template, rule, FAR_PAST, FAR_FUTURE))) == 365

    @pytest.mark.parametrize(
        "end_date, max_occurrences, expected",
        [(date(2025, 1, 10), 100, 10), (date(2025, 12, 31), 3, 3)],
    )
    def test_stricter_bound_wins(self, end_date, max_occurrences, expected):
        template = make_template(datetime(2025, 1, 1, 8))
        rule = make_rule("daily", end_date=end_date, max_occurrences=max_occurrences)
        assert len(list(expand(template, rule, FAR_PAST, FAR_FUTURE))) == expected

    def test_occurrences_before_window_count_toward_limit(self):
        template = make_template(datetime(2025, 1, 1, 8))
        rule = make_rule("daily", max_occurrences=5)
        occurrences = expand(template, rule, datetime(2025, 1, 4), FAR_FUTURE)
        assert start_dates(occurrences) == [date(2025, 1, 4), date(2025, 1, 5)]

    def test_window_far_after_series_is_empty(self, monday_template, monday_rule):
        assert list(expand(monday_template, monday_rule, datetime(2030, 1, 1), FAR_FUTURE)) == []


class TestEditedInstances:
    """Tests for substitution of edited instances."""

    def test_edited_instance_replaces_generated_copy(self, monday_template, monday_rule):
        edited = SimpleNamespace(
            id=uuid.uuid4(),
            title="Volunteer shift (moved)",
            description=None,
            start_time=datetime(2025, 1, 21, 18, 30),
            end_time=datetime(2025, 1, 21, 19, 30),
            all_day=False,
            location="Library",
            visibility="public",
            category_id=None,
            owner_id=monday_template.owner_id,
            series_id=monday_template.id,
            original_start_date=date(2025, 1, 20),
            version=1,
        )
        occurrences = list(
            expand(
                monday_template,
                monday_rule,
                datetime(2025, 1, 1),
                datetime(2025, 2, 1),
                edited={date(2025, 1, 20): edited},
            )
        )

        assert len(occurrences) == 4
        replaced = occurrences[2]
        assert replaced.id == edited.id
        assert replaced.title == "Volunteer shift (moved)"
        assert not replaced.is_generated

    def test_exception_wins_over_edited_instance(self, monday_template, monday_rule):
        edited = {date(2025, 1, 20): make_template(datetime(2025, 1, 20, 18, 30))}
        occurrences = expand(
            monday_template,
            monday_rule,
            datetime(2025, 1, 1),
            datetime(2025, 2, 1),
            exceptions={date(2025, 1, 20)},
            edited=edited,
        )
        assert date(2025, 1, 20) not in start_dates(occurrences)


class TestIdempotence:
    """Expansion recomputes from scratch on every call."""

    def test_same_window_same_sequence(self, monday_template, monday_rule):
        window = (datetime(2025, 1, 1), datetime(2025, 2, 1))
        assert list(expand(monday_template, monday_rule, *window)) == list(
            expand(monday_template, monday_rule, *window)
        )


class TestSeriesHelpers:
    """Tests for series date helpers."""

    def test_is_series_date(self, monday_template, monday_rule):
        assert is_series_date(monday_template, monday_rule, date(2025, 1, 20))
        assert not is_series_date(monday_template, monday_rule, date(2025, 1, 21))
        assert not is_series_date(monday_template, monday_rule, date(2025, 2, 3))

    def test_count_before(self, monday_template, monday_rule):
        assert count_before(monday_template, monday_rule, date(2025, 1, 6)) == 0
        assert count_before(monday_template, monday_rule, date(2025, 1, 20)) == 2

# tests/test_recurrence.py

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from todays.models import RecurrencePattern, RecurringTask
from todays.services.recurrence import (
    describe_recurrence,
    get_ready_definitions,
    is_recurring_task_ready,
    matches_pattern,
    weekday_index,
)
from todays.services.recurrence_validator import RecurrenceValidator

MONDAY = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
SATURDAY = datetime(2026, 10, 24, 12, 0, tzinfo=timezone.utc)
CREATED = datetime(2026, 1, 1, tzinfo=timezone.utc)


def definition(pattern: RecurrencePattern, days=(), **fields) -> RecurringTask:
    return RecurringTask(
        title="Water plants",
        recurrence_pattern=pattern,
        recurrence_days=days,
        created_at=fields.pop("created_at", CREATED),
        **fields,
    )


def test_weekday_index_starts_on_sunday() -> None:
    assert weekday_index(MONDAY) == 1
    assert weekday_index(datetime(2026, 10, 18)) == 0
    assert weekday_index(SATURDAY) == 6


def test_daily_and_weekdays() -> None:
    assert matches_pattern(definition(RecurrencePattern.DAILY), SATURDAY)
    assert matches_pattern(definition(RecurrencePattern.WEEKDAYS), MONDAY)
    assert not matches_pattern(definition(RecurrencePattern.WEEKDAYS), SATURDAY)


def test_weekly_matches_listed_days_only() -> None:
    weekly = definition(RecurrencePattern.WEEKLY, (1, 3))
    assert matches_pattern(weekly, MONDAY)
    assert not matches_pattern(weekly, SATURDAY)


def test_weekly_without_days_never_matches() -> None:
    assert not matches_pattern(definition(RecurrencePattern.WEEKLY), MONDAY)
    result = RecurrenceValidator.validate_recurrence_days(RecurrencePattern.WEEKLY, [])
    assert result["valid"] and result["warnings"]


def test_monthly_and_yearly() -> None:
    assert matches_pattern(definition(RecurrencePattern.MONTHLY, (1, 19)), MONDAY)
    assert not matches_pattern(definition(RecurrencePattern.MONTHLY, (20,)), MONDAY)
    assert matches_pattern(definition(RecurrencePattern.YEARLY, (1019,)), MONDAY)
    assert not matches_pattern(definition(RecurrencePattern.YEARLY, (1020,)), MONDAY)


def test_manual_never_surfaces() -> None:
    assert not is_recurring_task_ready(definition(RecurrencePattern.MANUAL), MONDAY, "05:00")


def test_biweekly_needs_fourteen_days_since_anchor() -> None:
    created = datetime(2026, 10, 5, 12, 0, tzinfo=timezone.utc)
    biweekly = definition(RecurrencePattern.BIWEEKLY, (1,), created_at=created)

    assert not matches_pattern(biweekly, datetime(2026, 10, 12, 12, 0, tzinfo=timezone.utc))
    assert matches_pattern(biweekly, MONDAY)

    added = biweekly.model_copy(update={"last_added_to_today": MONDAY})
    assert not matches_pattern(added, datetime(2026, 10, 26, 12, 0, tzinfo=timezone.utc))
    assert matches_pattern(added, datetime(2026, 11, 2, 12, 0, tzinfo=timezone.utc))


def test_not_ready_twice_in_one_day() -> None:
    daily = definition(RecurrencePattern.DAILY)
    assert is_recurring_task_ready(daily, MONDAY, "05:00")

    added = daily.model_copy(update={"last_added_to_today": datetime(2026, 10, 19, 6, 0, tzinfo=timezone.utc)})
    assert not is_recurring_task_ready(added, MONDAY, "05:00")


def test_added_before_boundary_is_ready_again() -> None:
    yesterday = datetime(2026, 10, 19, 4, 0, tzinfo=timezone.utc)
    daily = definition(RecurrencePattern.DAILY, last_added_to_today=yesterday)
    assert is_recurring_task_ready(daily, MONDAY, "05:00")


def test_get_ready_definitions_keeps_order() -> None:
    defs = [
        definition(RecurrencePattern.WEEKLY, (1,), id="a"),
        definition(RecurrencePattern.WEEKLY, (6,), id="b"),
        definition(RecurrencePattern.DAILY, id="c"),
    ]
    assert [d.id for d in get_ready_definitions(defs, MONDAY, "05:00")] == ["a", "c"]


def test_recurrence_days_are_validated_and_normalized() -> None:
    assert definition(RecurrencePattern.WEEKLY, (5, 1, 5)).recurrence_days == (1, 5)

    with pytest.raises(ValidationError):
        definition(RecurrencePattern.WEEKLY, (7,))
    with pytest.raises(ValidationError):
        definition(RecurrencePattern.MONTHLY, (0,))
    with pytest.raises(ValidationError):
        definition(RecurrencePattern.YEARLY, (101, 1225))
    with pytest.raises(ValidationError):
        definition(RecurrencePattern.DAILY, (1,))


def test_describe_recurrence() -> None:
    assert describe_recurrence(definition(RecurrencePattern.WEEKLY, (1, 5))) == "Every Monday, Friday"
    assert describe_recurrence(definition(RecurrencePattern.BIWEEKLY, (2,))) == "Every other Tuesday"
    assert describe_recurrence(definition(RecurrencePattern.MONTHLY, (1, 22))) == "1st, 22nd of each month"
    assert describe_recurrence(definition(RecurrencePattern.YEARLY, (1225,))) == "Every December 25th"


def test_weekly_mon_wed_fri_regardless_of_order() -> None:
    wednesday = datetime(2026, 10, 21, 9, 0, tzinfo=timezone.utc)
    thursday = datetime(2026, 10, 22, 9, 0, tzinfo=timezone.utc)
    for days in [(1, 3, 5), (5, 3, 1), (3, 5, 1)]:
        weekly = definition(RecurrencePattern.WEEKLY, days)
        assert is_recurring_task_ready(weekly, wednesday, "05:00")
        assert not is_recurring_task_ready(weekly, thursday, "05:00")


def test_biweekly_ten_days_after_last_add_is_not_due() -> None:
    ten_days_ago = datetime(2026, 10, 9, 9, 0, tzinfo=timezone.utc)
    biweekly = definition(RecurrencePattern.BIWEEKLY, (1,), last_added_to_today=ten_days_ago)
    assert not is_recurring_task_ready(biweekly, MONDAY, "05:00")


def test_yearly_only_on_its_date_in_any_year() -> None:
    christmas = definition(RecurrencePattern.YEARLY, (1225,))
    assert is_recurring_task_ready(christmas, datetime(2026, 12, 25, 9, 0, tzinfo=timezone.utc), "05:00")
    assert is_recurring_task_ready(christmas, datetime(2031, 12, 25, 9, 0, tzinfo=timezone.utc), "05:00")
    assert not is_recurring_task_ready(christmas, datetime(2026, 12, 24, 9, 0, tzinfo=timezone.utc), "05:00")

"""Recurrence matching for recurring task definitions."""
import logging
from datetime import datetime, tzinfo
from typing import Iterable, List, Optional

from todays.models.recurrence import RecurrencePattern
from todays.models.task import RecurringTask
from todays.services.day_boundary import most_recent_boundary, to_local

logger = logging.getLogger(__name__)

BIWEEKLY_INTERVAL_DAYS = 14

_DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
_MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


def weekday_index(moment: datetime) -> int:
    """Weekday index with 0 = Sunday ... 6 = Saturday."""
    return (moment.weekday() + 1) % 7


def matches_pattern(definition: RecurringTask, now: datetime) -> bool:
    """
    Check whether ``now``'s calendar day matches the definition's pattern.

    ``now`` should already be expressed in the user's local zone. The
    "already added today" guard is not applied here.
    """
    pattern = definition.recurrence_pattern
    days = definition.recurrence_days

    if pattern == RecurrencePattern.DAILY:
        return True
    if pattern == RecurrencePattern.WEEKDAYS:
        return now.weekday() < 5
    if pattern == RecurrencePattern.WEEKLY:
        return weekday_index(now) in days
    if pattern == RecurrencePattern.BIWEEKLY:
        if weekday_index(now) not in days:
            return False
        anchor = definition.created_at
        if definition.last_added_to_today and definition.last_added_to_today > anchor:
            anchor = definition.last_added_to_today
        elapsed = now.date() - to_local(anchor, now.tzinfo).date()
        return elapsed.days >= BIWEEKLY_INTERVAL_DAYS
    if pattern == RecurrencePattern.MONTHLY:
        return now.day in days
    if pattern == RecurrencePattern.YEARLY:
        return now.month * 100 + now.day in days
    # manual definitions are only ever added by hand
    return False


def already_added(definition: RecurringTask, boundary: datetime) -> bool:
    """True when the definition was added to Today at or after ``boundary``."""
    last = definition.last_added_to_today
    return last is not None and last >= boundary


def is_recurring_task_ready(
    definition: RecurringTask,
    now: datetime,
    day_start: str,
    tz: Optional[tzinfo] = None,
) -> bool:
    """A definition is ready when not yet added this day and its pattern matches."""
    boundary = most_recent_boundary(now, day_start, tz)
    if already_added(definition, boundary):
        return False
    return matches_pattern(definition, to_local(now, tz))


def get_ready_definitions(
    definitions: Iterable[RecurringTask],
    now: datetime,
    day_start: str,
    tz: Optional[tzinfo] = None,
) -> List[RecurringTask]:
    """Return the ready definitions, in input order."""
    boundary = most_recent_boundary(now, day_start, tz)
    local_now = to_local(now, tz)
    return [
        definition
        for definition in definitions
        if not already_added(definition, boundary) and matches_pattern(definition, local_now)
    ]


def _ordinal(n: int) -> str:
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def describe_recurrence(definition: RecurringTask) -> str:
    """Human-readable schedule, e.g. ``Every Monday, Friday``."""
    pattern = definition.recurrence_pattern
    days = definition.recurrence_days

    if pattern == RecurrencePattern.DAILY:
        return "Daily"
    if pattern == RecurrencePattern.WEEKDAYS:
        return "Weekdays"
    if pattern == RecurrencePattern.MANUAL:
        return "Manual"
    if pattern in (RecurrencePattern.WEEKLY, RecurrencePattern.BIWEEKLY):
        prefix = "Every" if pattern == RecurrencePattern.WEEKLY else "Every other"
        if not days:
            return "Weekly" if pattern == RecurrencePattern.WEEKLY else "Biweekly"
        if len(days) == 7 and pattern == RecurrencePattern.WEEKLY:
            return "Daily"
        return f"{prefix} {', '.join(_DAY_NAMES[d] for d in days)}"
    if pattern == RecurrencePattern.MONTHLY:
        if not days:
            return "Monthly"
        return f"{', '.join(_ordinal(d) for d in days)} of each month"
    if pattern == RecurrencePattern.YEARLY:
        month, day = divmod(days[0], 100)
        return f"Every {_MONTH_NAMES[month - 1]} {_ordinal(day)}"
    return "Custom schedule"

"""Recurrence pattern tags."""
from enum import Enum


class RecurrencePattern(str, Enum):
    """How a recurring definition resurfaces on the Today list."""

    DAILY = "daily"
    WEEKDAYS = "weekdays"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    MANUAL = "manual"


# Patterns whose recurrence_days hold weekday indices (0 = Sunday ... 6 = Saturday)
WEEKDAY_PATTERNS = frozenset({RecurrencePattern.WEEKLY, RecurrencePattern.BIWEEKLY})

# Patterns that take no recurrence_days at all
DAYLESS_PATTERNS = frozenset({
    RecurrencePattern.DAILY,
    RecurrencePattern.WEEKDAYS,
    RecurrencePattern.MANUAL,
})

"""Recurrence Validator."""
from typing import Any, Dict, Iterable

from todays.models.recurrence import DAYLESS_PATTERNS, WEEKDAY_PATTERNS, RecurrencePattern

_DAYS_IN_MONTH = {1: 31, 2: 29, 3: 31, 4: 30, 5: 31, 6: 30, 7: 31, 8: 31, 9: 30, 10: 31, 11: 30, 12: 31}


class RecurrenceValidator:
    """Validate recurrence patterns and the day sets they carry."""

    @staticmethod
    def validate_recurrence_pattern(pattern: Any) -> Dict[str, Any]:
        """
        Validate a recurrence pattern tag.

        Args:
            pattern: Pattern name or RecurrencePattern

        Returns:
            Dict with validation result
        """
        result = {
            "valid": True,
            "errors": [],
            "warnings": []
        }

        allowed = [p.value for p in RecurrencePattern]
        value = pattern.value if isinstance(pattern, RecurrencePattern) else pattern
        if value not in allowed:
            result["valid"] = False
            result["errors"].append(f"Recurrence must be one of: {', '.join(allowed)}")

        return result

    @staticmethod
    def validate_recurrence_days(pattern: Any, days: Iterable[int]) -> Dict[str, Any]:
        """
        Validate recurrence days against the pattern that interprets them.

        Weekly and biweekly take weekday indices 0-6 (0 = Sunday), monthly takes
        days of month 1-31 and yearly takes exactly one ``month * 100 + day``
        value. Daily, weekdays and manual take no days.

        Args:
            pattern: Recurrence pattern
            days: Recurrence days

        Returns:
            Dict with validation result
        """
        result = RecurrenceValidator.validate_recurrence_pattern(pattern)
        if not result["valid"]:
            return result

        pattern = RecurrencePattern(pattern)
        days = list(days)

        for day in days:
            if isinstance(day, bool) or not isinstance(day, int):
                result["valid"] = False
                result["errors"].append(f"Recurrence day {day!r} must be an integer")
                return result

        if pattern in DAYLESS_PATTERNS:
            if days:
                result["valid"] = False
                result["errors"].append(f"Pattern '{pattern.value}' takes no recurrence days")
            return result

        if pattern in WEEKDAY_PATTERNS:
            bad = [d for d in days if not 0 <= d <= 6]
            if bad:
                result["valid"] = False
                result["errors"].append(f"Weekday indices must be 0-6, got {bad}")
        elif pattern == RecurrencePattern.MONTHLY:
            bad = [d for d in days if not 1 <= d <= 31]
            if bad:
                result["valid"] = False
                result["errors"].append(f"Days of month must be 1-31, got {bad}")
        elif pattern == RecurrencePattern.YEARLY:
            if len(days) != 1:
                result["valid"] = False
                result["errors"].append("Yearly recurrence needs exactly one month*100+day value")
                return result
            month, day = divmod(days[0], 100)
            if month not in _DAYS_IN_MONTH or not 1 <= day <= _DAYS_IN_MONTH[month]:
                result["valid"] = False
                result["errors"].append(f"Invalid yearly date {days[0]}")
            return result

        if result["valid"] and not days:
            result["warnings"].append(
                f"Pattern '{pattern.value}' without recurrence days is never due"
            )

        return result

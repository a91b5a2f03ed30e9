"""Day boundary computation.

A logical day starts at the configured ``dayStart`` time of day rather than at
midnight. All functions here are pure.
"""
from datetime import datetime, time, timedelta, tzinfo
from typing import Optional

from todays.models.settings import parse_day_start


def _localize(zone: tzinfo, naive: datetime) -> datetime:
    # pytz zones need localize() to pick the right offset for that date
    if hasattr(zone, "localize"):
        return zone.normalize(zone.localize(naive))
    return naive.replace(tzinfo=zone)


def to_local(now: datetime, tz: Optional[tzinfo] = None) -> datetime:
    """Express ``now`` in ``tz``; naive values and a missing zone are left as is."""
    if tz is None or now.tzinfo is None:
        return now
    return now.astimezone(tz)


def most_recent_boundary(now: datetime, day_start: str, tz: Optional[tzinfo] = None) -> datetime:
    """
    Return the latest day-start instant at or before ``now``.

    Args:
        now: Current instant. Naive values are treated as local wall-clock time.
        day_start: Time of day in ``HH:MM`` form
        tz: Zone whose wall clock defines the day. Defaults to ``now``'s own zone.

    Returns:
        The boundary, never later than ``now``
    """
    hours, minutes = parse_day_start(day_start)
    start = time(hours, minutes)

    if now.tzinfo is None:
        candidate = datetime.combine(now.date(), start)
        if now < candidate:
            candidate = datetime.combine(now.date() - timedelta(days=1), start)
        return candidate

    zone = tz or now.tzinfo
    local_now = now.astimezone(zone)
    candidate = _localize(zone, datetime.combine(local_now.date(), start))
    if now < candidate:
        candidate = _localize(zone, datetime.combine(local_now.date() - timedelta(days=1), start))
    return candidate

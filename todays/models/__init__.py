"""Models package: task lifecycle records, settings and storage tables."""

from .recurrence import RecurrencePattern
from .settings import Category, Settings, DEFAULT_CATEGORIES
from .snapshot import Snapshot
from .task import (
    BacklogTask,
    CompletedTask,
    RecurringCompletion,
    RecurringTask,
    TodayTask,
    new_task_id,
    utc_now,
)

__all__ = [
    "BacklogTask",
    "Category",
    "CompletedTask",
    "DEFAULT_CATEGORIES",
    "RecurrencePattern",
    "RecurringCompletion",
    "RecurringTask",
    "Settings",
    "Snapshot",
    "TodayTask",
    "new_task_id",
    "utc_now",
]

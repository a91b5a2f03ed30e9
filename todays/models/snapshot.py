"""The full local state: four task collections plus settings."""
from typing import Any, Dict, Optional, Tuple

from pydantic import Field

from todays.models.settings import Settings
from todays.models.task import (
    BacklogTask,
    DoneRecord,
    RecordModel,
    RecurringTask,
    TodayTask,
)

COLLECTIONS = ("today", "backlog", "recurring", "done")


class Snapshot(RecordModel):
    """Immutable state snapshot; mutations build a new one."""

    today: Tuple[TodayTask, ...] = ()
    backlog: Tuple[BacklogTask, ...] = ()
    recurring: Tuple[RecurringTask, ...] = ()
    done: Tuple[DoneRecord, ...] = ()
    settings: Settings = Field(default_factory=Settings)

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "Snapshot":
        return cls.model_validate(document)

    def to_document(self) -> Dict[str, Any]:
        """JSON-ready ``{today, backlog, recurring, done, settings}`` document."""
        return self.model_dump(mode="json", by_alias=True)

    def locate(self, task_id: str) -> Optional[Tuple[str, Any]]:
        """Return ``(collection, record)`` for the task id, or None."""
        for name in COLLECTIONS:
            for record in getattr(self, name):
                if record.id == task_id:
                    return name, record
        return None

    def counts(self) -> Dict[str, int]:
        return {name: len(getattr(self, name)) for name in COLLECTIONS}

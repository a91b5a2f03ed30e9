"""Local state store.

Owns the current Snapshot. Every mutation is a pure function from
``services.task_service`` applied through ``commit``, which persists the result
before swapping it in and notifying subscribers. Readers only ever see whole
committed snapshots.
"""
import json
import logging
from datetime import datetime, tzinfo
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from todays.errors import MalformedImport
from todays.models.recurrence import RecurrencePattern
from todays.models.snapshot import Snapshot
from todays.models.task import RecurringTask, utc_now
from todays.services import task_service
from todays.services.export_service import export_snapshot, parse_import
from todays.services.recurrence import get_ready_definitions
from todays.services.rollover import maybe_rollover
from todays.store.persistence import SnapshotStorage

logger = logging.getLogger(__name__)

ORIGIN_LOCAL = "local"
ORIGIN_REMOTE = "remote"

Listener = Callable[[Snapshot, str], None]


class LocalStateStore:
    """Single owner of the four task collections and settings."""

    def __init__(
        self,
        storage: SnapshotStorage,
        *,
        tz: Optional[tzinfo] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.storage = storage
        self.tz = tz
        self.clock = clock
        self._snapshot = storage.load() or Snapshot()
        self._listeners: List[Listener] = []

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener(snapshot, origin)``; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def commit(self, mutation: Callable[..., Snapshot], *args, **kwargs) -> Snapshot:
        """Apply one pure mutation and make its result current."""
        updated = mutation(self._snapshot, *args, **kwargs)
        if updated is not self._snapshot:
            self._swap(updated, ORIGIN_LOCAL)
        return self._snapshot

    def replace_snapshot(self, snapshot: Snapshot, origin: str = ORIGIN_REMOTE) -> None:
        """Install a whole snapshot, e.g. one pulled from the remote replica."""
        self._swap(snapshot, origin)

    def _swap(self, snapshot: Snapshot, origin: str) -> None:
        # Persist first so a storage failure leaves the previous state current
        self.storage.save(snapshot)
        self._snapshot = snapshot
        for listener in list(self._listeners):
            try:
                listener(snapshot, origin)
            except Exception as e:
                logger.error(f"Snapshot listener failed: {str(e)}")

    # Day lifecycle

    def run_day_check(self, now: Optional[datetime] = None) -> bool:
        """Roll the day over and surface due recurring tasks; True if anything changed."""
        now = now or self.clock()
        state = maybe_rollover(self._snapshot, now, self.tz)
        if state.settings.auto_surface_recurring:
            state = task_service.surface_ready_recurring(state, now, self.tz)
        if state is self._snapshot:
            return False
        self._swap(state, ORIGIN_LOCAL)
        return True

    def ready_recurring(self, now: Optional[datetime] = None) -> List[RecurringTask]:
        return get_ready_definitions(
            self._snapshot.recurring,
            now or self.clock(),
            self._snapshot.settings.day_start,
            self.tz,
        )

    # Today

    def add_today_task(self, title: str, **fields) -> Snapshot:
        return self.commit(task_service.add_today_task, title, now=self.clock(), **fields)

    def toggle_done(self, task_id: str) -> Snapshot:
        return self.commit(task_service.toggle_done, task_id)

    def set_urgent(self, task_id: str, urgent: bool) -> Snapshot:
        return self.commit(task_service.set_urgent, task_id, urgent)

    def snooze_task(self, task_id: str, until: Optional[datetime]) -> Snapshot:
        return self.commit(task_service.snooze_task, task_id, until)

    def archive_task(self, task_id: str) -> Snapshot:
        return self.commit(task_service.archive_task, task_id, now=self.clock())

    def sort_today_by_completion(self) -> Snapshot:
        return self.commit(task_service.sort_today_by_completion)

    # Any collection

    def edit_task(self, task_id: str, **changes) -> Snapshot:
        return self.commit(task_service.edit_task, task_id, **changes)

    def delete_task(self, task_id: str) -> Snapshot:
        return self.commit(task_service.delete_task, task_id)

    def reorder(self, collection: str, start_index: int, end_index: int) -> Snapshot:
        return self.commit(task_service.reorder, collection, start_index, end_index)

    # Backlog

    def add_backlog_task(self, title: str, **fields) -> Snapshot:
        return self.commit(task_service.add_backlog_task, title, now=self.clock(), **fields)

    def move_today_to_backlog(self, task_id: str) -> Snapshot:
        return self.commit(task_service.move_today_to_backlog, task_id, now=self.clock())

    def move_backlog_to_today(self, task_id: str) -> Snapshot:
        return self.commit(task_service.move_backlog_to_today, task_id)

    # Recurring

    def move_today_to_recurring(
        self, task_id: str, pattern: RecurrencePattern, days: Iterable[int] = ()
    ) -> Snapshot:
        return self.commit(task_service.move_today_to_recurring, task_id, pattern, days)

    def move_backlog_to_recurring(
        self, task_id: str, pattern: RecurrencePattern, days: Iterable[int] = ()
    ) -> Snapshot:
        return self.commit(task_service.move_backlog_to_recurring, task_id, pattern, days)

    def move_recurring_to_today(self, task_id: str) -> Snapshot:
        return self.commit(task_service.move_recurring_to_today, task_id)

    def move_recurring_to_backlog(self, task_id: str) -> Snapshot:
        return self.commit(task_service.move_recurring_to_backlog, task_id, now=self.clock())

    def update_recurrence(
        self, task_id: str, pattern: RecurrencePattern, days: Iterable[int] = ()
    ) -> Snapshot:
        return self.commit(task_service.update_recurrence, task_id, pattern, days)

    def add_from_recurring(self, task_id: str) -> Snapshot:
        return self.commit(task_service.add_from_recurring, task_id, now=self.clock())

    # Settings

    def update_settings(self, **changes) -> Snapshot:
        return self.commit(task_service.update_settings, **changes)

    def add_category(self, name: str, color: str) -> Snapshot:
        return self.commit(task_service.add_category, name, color)

    def update_category(self, category_id: str, **changes) -> Snapshot:
        return self.commit(task_service.update_category, category_id, **changes)

    def delete_category(self, category_id: str) -> Snapshot:
        return self.commit(task_service.delete_category, category_id)

    # Export / import

    def export_data(self) -> Dict[str, Any]:
        return export_snapshot(self._snapshot, self.clock())

    def import_data(self, payload: Any) -> Snapshot:
        """Replace all collections from an export envelope; rejects before mutating."""
        imported = parse_import(payload, self._snapshot.settings)
        self._swap(imported, ORIGIN_LOCAL)
        logger.info(f"Imported snapshot: {imported.counts()}")
        return imported

    def export_to_file(self, path: Union[str, Path]) -> Path:
        out = Path(path).expanduser().resolve()
        out.write_text(json.dumps(self.export_data(), indent=2), encoding="utf-8")
        return out

    def import_from_file(self, path: Union[str, Path]) -> Snapshot:
        source = Path(path).expanduser().resolve()
        try:
            payload = json.loads(source.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise MalformedImport(f"Import file is not valid JSON: {e.msg}") from e
        return self.import_data(payload)

"""Task mutations for the local store.

Every function takes the current Snapshot and returns a new one. Nothing here
touches storage or the network; ``LocalStateStore.commit`` is the only place a
result becomes the current state. Unknown ids raise ``TaskNotFound`` and
invalid input raises ``ValueError`` (pydantic's ``ValidationError`` included).
"""
from datetime import datetime, tzinfo
from typing import Iterable, Optional, Sequence, Tuple

from todays.errors import TaskNotFound
from todays.models.recurrence import RecurrencePattern
from todays.models.settings import Category, Settings
from todays.models.snapshot import Snapshot
from todays.models.task import (
    BacklogTask,
    CompletedTask,
    RecurringCompletion,
    RecurringTask,
    TodayTask,
    new_task_id,
    utc_now,
)
from todays.services.recurrence import get_ready_definitions

_COMMON_FIELDS = {"id", "title", "category", "urgent", "note", "created_at"}
_UNSET = object()


def _common(record) -> dict:
    return record.model_dump(include=_COMMON_FIELDS)


def _find(items: Sequence, task_id: str, collection: str):
    for item in items:
        if item.id == task_id:
            return item
    raise TaskNotFound(task_id, collection)


def _without(items: Sequence, task_id: str) -> Tuple:
    return tuple(item for item in items if item.id != task_id)


def _replace(items: Sequence, record) -> Tuple:
    return tuple(record if item.id == record.id else item for item in items)


def _revalidate(record, **changes):
    """Rebuild a record with changes applied, re-running its validators."""
    data = record.model_dump()
    data.update(changes)
    return type(record).model_validate(data)


def _check_category(settings: Settings, category: Optional[str]) -> None:
    if category is not None and category not in settings.category_ids():
        raise ValueError(f"Unknown category '{category}'")


# Shared transitions (also used by the rollover engine)

def enter_backlog(backlog: Sequence[BacklogTask], task, now: datetime) -> Tuple[BacklogTask, ...]:
    """Put a task into the backlog, bumping the counter if its id is already there."""
    carried = getattr(task, "backlog_count", 0)
    for existing in backlog:
        if existing.id == task.id:
            bumped = existing.model_copy(update={
                "added_to_backlog_count": max(existing.added_to_backlog_count, carried) + 1,
                "last_added_to_backlog": now,
            })
            return _replace(backlog, bumped)

    entry = BacklogTask(
        **_common(task),
        added_to_backlog_count=carried + 1,
        last_added_to_backlog=now,
    )
    return tuple(backlog) + (entry,)


def archive_completion(done: Sequence, task: TodayTask, now: datetime) -> Tuple:
    """Archive a finished Today task; recurring completions fold into one aggregate."""
    if task.recurring_id:
        for record in done:
            if isinstance(record, RecurringCompletion) and record.recurring_id == task.recurring_id:
                folded = record.model_copy(update={
                    "title": task.title,
                    "category": task.category,
                    "completion_count": record.completion_count + 1,
                    "last_completed_at": now,
                })
                return _replace(done, folded)
        aggregate = RecurringCompletion(
            recurring_id=task.recurring_id,
            title=task.title,
            category=task.category,
            first_completed_at=now,
            last_completed_at=now,
        )
        return tuple(done) + (aggregate,)

    return tuple(done) + (CompletedTask(**_common(task), completed_at=now),)


# Today

def add_today_task(
    state: Snapshot,
    title: str,
    *,
    category: Optional[str] = None,
    urgent: bool = False,
    note: str = "",
    now: Optional[datetime] = None,
) -> Snapshot:
    _check_category(state.settings, category)
    task = TodayTask(title=title, category=category, urgent=urgent, note=note, created_at=now or utc_now())
    return state.model_copy(update={"today": state.today + (task,)})


def toggle_done(state: Snapshot, task_id: str) -> Snapshot:
    task = _find(state.today, task_id, "today")
    updated = task.model_copy(update={"done": not task.done})
    return state.model_copy(update={"today": _replace(state.today, updated)})


def set_urgent(state: Snapshot, task_id: str, urgent: bool) -> Snapshot:
    located = state.locate(task_id)
    if located is None or located[0] == "done":
        raise TaskNotFound(task_id)
    collection, record = located
    updated = record.model_copy(update={"urgent": urgent})
    return state.model_copy(update={collection: _replace(getattr(state, collection), updated)})


def snooze_task(state: Snapshot, task_id: str, until: Optional[datetime]) -> Snapshot:
    task = _find(state.today, task_id, "today")
    updated = _revalidate(task, snooze_until=until)
    return state.model_copy(update={"today": _replace(state.today, updated)})


def archive_task(state: Snapshot, task_id: str, *, now: Optional[datetime] = None) -> Snapshot:
    task = _find(state.today, task_id, "today")
    if not task.done:
        raise ValueError(f"Task {task_id} is not done")
    return state.model_copy(update={
        "today": _without(state.today, task_id),
        "done": archive_completion(state.done, task, now or utc_now()),
    })


def sort_today_by_completion(state: Snapshot) -> Snapshot:
    undone = tuple(t for t in state.today if not t.done)
    finished = tuple(t for t in state.today if t.done)
    return state.model_copy(update={"today": undone + finished})


# Any collection

def edit_task(
    state: Snapshot,
    task_id: str,
    *,
    title: Optional[str] = None,
    note: Optional[str] = None,
    category=_UNSET,
) -> Snapshot:
    located = state.locate(task_id)
    if located is None:
        raise TaskNotFound(task_id)
    collection, record = located

    changes = {}
    if title is not None:
        changes["title"] = title
    if note is not None:
        if collection == "done" and isinstance(record, RecurringCompletion):
            raise ValueError("Recurring completion records carry no note")
        changes["note"] = note
    if category is not _UNSET:
        _check_category(state.settings, category)
        changes["category"] = category
    if not changes:
        return state

    updated = _revalidate(record, **changes)
    return state.model_copy(update={collection: _replace(getattr(state, collection), updated)})


def delete_task(state: Snapshot, task_id: str) -> Snapshot:
    located = state.locate(task_id)
    if located is None:
        raise TaskNotFound(task_id)
    collection = located[0]
    return state.model_copy(update={collection: _without(getattr(state, collection), task_id)})


def reorder(state: Snapshot, collection: str, start_index: int, end_index: int) -> Snapshot:
    if collection not in ("today", "backlog"):
        raise ValueError(f"Cannot reorder '{collection}'")
    items = list(getattr(state, collection))
    if not (0 <= start_index < len(items) and 0 <= end_index < len(items)):
        raise ValueError("Reorder index out of range")
    moved = items.pop(start_index)
    items.insert(end_index, moved)
    return state.model_copy(update={collection: tuple(items)})


# Backlog

def add_backlog_task(
    state: Snapshot,
    title: str,
    *,
    category: Optional[str] = None,
    urgent: bool = False,
    note: str = "",
    now: Optional[datetime] = None,
) -> Snapshot:
    _check_category(state.settings, category)
    now = now or utc_now()
    task = BacklogTask(
        title=title,
        category=category,
        urgent=urgent,
        note=note,
        created_at=now,
        last_added_to_backlog=now,
    )
    return state.model_copy(update={"backlog": state.backlog + (task,)})


def move_today_to_backlog(state: Snapshot, task_id: str, *, now: Optional[datetime] = None) -> Snapshot:
    task = _find(state.today, task_id, "today")
    return state.model_copy(update={
        "today": _without(state.today, task_id),
        "backlog": enter_backlog(state.backlog, task, now or utc_now()),
    })


def move_backlog_to_today(state: Snapshot, task_id: str) -> Snapshot:
    task = _find(state.backlog, task_id, "backlog")
    today_task = TodayTask(**_common(task), backlog_count=task.added_to_backlog_count)
    return state.model_copy(update={
        "backlog": _without(state.backlog, task_id),
        "today": state.today + (today_task,),
    })


# Recurring

def _as_recurring(task, pattern, days: Iterable[int]) -> RecurringTask:
    return RecurringTask(
        **_common(task),
        recurrence_pattern=RecurrencePattern(pattern),
        recurrence_days=tuple(days),
    )


def move_today_to_recurring(
    state: Snapshot,
    task_id: str,
    pattern: RecurrencePattern,
    days: Iterable[int] = (),
) -> Snapshot:
    task = _find(state.today, task_id, "today")
    definition = _as_recurring(task, pattern, days)
    return state.model_copy(update={
        "today": _without(state.today, task_id),
        "recurring": state.recurring + (definition,),
    })


def move_backlog_to_recurring(
    state: Snapshot,
    task_id: str,
    pattern: RecurrencePattern,
    days: Iterable[int] = (),
) -> Snapshot:
    task = _find(state.backlog, task_id, "backlog")
    definition = _as_recurring(task, pattern, days)
    return state.model_copy(update={
        "backlog": _without(state.backlog, task_id),
        "recurring": state.recurring + (definition,),
    })


def move_recurring_to_today(state: Snapshot, task_id: str) -> Snapshot:
    """Turn a recurring definition back into a one-off task for today."""
    definition = _find(state.recurring, task_id, "recurring")
    return state.model_copy(update={
        "recurring": _without(state.recurring, task_id),
        "today": state.today + (TodayTask(**_common(definition)),),
    })


def move_recurring_to_backlog(state: Snapshot, task_id: str, *, now: Optional[datetime] = None) -> Snapshot:
    definition = _find(state.recurring, task_id, "recurring")
    return state.model_copy(update={
        "recurring": _without(state.recurring, task_id),
        "backlog": enter_backlog(state.backlog, definition, now or utc_now()),
    })


def update_recurrence(
    state: Snapshot,
    task_id: str,
    pattern: RecurrencePattern,
    days: Iterable[int] = (),
) -> Snapshot:
    definition = _find(state.recurring, task_id, "recurring")
    updated = _revalidate(
        definition,
        recurrence_pattern=RecurrencePattern(pattern),
        recurrence_days=tuple(days),
    )
    return state.model_copy(update={"recurring": _replace(state.recurring, updated)})


def add_from_recurring(state: Snapshot, task_id: str, *, now: Optional[datetime] = None) -> Snapshot:
    """Instantiate a definition on today's list; the definition itself stays."""
    now = now or utc_now()
    definition = _find(state.recurring, task_id, "recurring")
    instance = TodayTask(
        title=definition.title,
        category=definition.category,
        urgent=definition.urgent,
        note=definition.note,
        created_at=now,
        from_recurring=True,
        recurring_id=definition.id,
    )
    stamped = definition.model_copy(update={"last_added_to_today": now})
    return state.model_copy(update={
        "today": state.today + (instance,),
        "recurring": _replace(state.recurring, stamped),
    })


def surface_ready_recurring(state: Snapshot, now: Optional[datetime] = None, tz: Optional[tzinfo] = None) -> Snapshot:
    """Add every definition that is due and not yet added this day."""
    now = now or utc_now()
    for definition in get_ready_definitions(state.recurring, now, state.settings.day_start, tz):
        state = add_from_recurring(state, definition.id, now=now)
    return state


# Settings and categories

def update_settings(state: Snapshot, **changes) -> Snapshot:
    current = state.settings
    new_reset = changes.get("last_day_reset")
    if (
        new_reset is not None
        and current.last_day_reset is not None
        and new_reset < current.last_day_reset
    ):
        raise ValueError("lastDayReset cannot move backwards")
    if "last_day_reset" in changes and new_reset is None and current.last_day_reset is not None:
        raise ValueError("lastDayReset cannot be cleared")

    settings = _revalidate(current, **changes)
    return state.model_copy(update={"settings": settings})


def add_category(state: Snapshot, name: str, color: str) -> Snapshot:
    category = Category(id=new_task_id(), name=name.strip(), color=color)
    settings = state.settings.model_copy(update={"categories": state.settings.categories + (category,)})
    return state.model_copy(update={"settings": settings})


def update_category(
    state: Snapshot,
    category_id: str,
    *,
    name: Optional[str] = None,
    color: Optional[str] = None,
) -> Snapshot:
    current = next((c for c in state.settings.categories if c.id == category_id), None)
    if current is None:
        raise ValueError(f"Unknown category '{category_id}'")
    changes = {}
    if name is not None:
        changes["name"] = name.strip()
    if color is not None:
        changes["color"] = color
    updated = _revalidate(current, **changes)
    categories = _replace(state.settings.categories, updated)
    settings = state.settings.model_copy(update={"categories": categories})
    return state.model_copy(update={"settings": settings})


def delete_category(state: Snapshot, category_id: str) -> Snapshot:
    """Remove a category and clear it from every task that used it."""
    if category_id not in state.settings.category_ids():
        raise ValueError(f"Unknown category '{category_id}'")

    def clear(items):
        return tuple(
            item.model_copy(update={"category": None}) if item.category == category_id else item
            for item in items
        )

    categories = tuple(c for c in state.settings.categories if c.id != category_id)
    return state.model_copy(update={
        "today": clear(state.today),
        "backlog": clear(state.backlog),
        "recurring": clear(state.recurring),
        "done": clear(state.done),
        "settings": state.settings.model_copy(update={"categories": categories}),
    })

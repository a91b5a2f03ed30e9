"""Task records for each lifecycle state.

A task lives in exactly one collection of the snapshot. Each collection has its
own record type so that state-specific fields (``done``, ``addedToBacklogCount``,
``recurrencePattern`` ...) only exist where they mean something. Records are
frozen; every change produces a new record.
"""
import uuid
from datetime import datetime, timezone
from typing import Annotated, Optional, Tuple, Union

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from todays.models.recurrence import RecurrencePattern


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_task_id() -> str:
    return uuid.uuid4().hex


def _as_aware(value: datetime) -> datetime:
    # Stored instants without an offset were written as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


Instant = Annotated[datetime, AfterValidator(_as_aware)]


class RecordModel(BaseModel):
    """Immutable record serialized with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class TaskBase(RecordModel):
    """Fields shared by every lifecycle state."""

    id: str = Field(default_factory=new_task_id, min_length=1)
    title: str = Field(min_length=1, max_length=500)
    category: Optional[str] = None
    urgent: bool = False
    note: str = ""
    created_at: Instant = Field(default_factory=utc_now)

    @field_validator("title")
    @classmethod
    def _strip_title(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("title must not be blank")
        return value


class TodayTask(TaskBase):
    """Active task on today's list."""

    done: bool = False
    snooze_until: Optional[Instant] = None
    from_recurring: bool = False
    recurring_id: Optional[str] = None  # weak reference to a RecurringTask id
    backlog_count: int = Field(default=0, ge=0)  # carried over from the backlog


class BacklogTask(TaskBase):
    """Postponed task."""

    added_to_backlog_count: int = Field(default=1, ge=1)
    last_added_to_backlog: Instant = Field(default_factory=utc_now)


class RecurringTask(TaskBase):
    """Recurring definition: a template plus the days it resurfaces on."""

    recurrence_pattern: RecurrencePattern = RecurrencePattern.DAILY
    recurrence_days: Tuple[int, ...] = ()
    last_added_to_today: Optional[Instant] = None

    @field_validator("recurrence_days")
    @classmethod
    def _normalize_days(cls, value: Tuple[int, ...]) -> Tuple[int, ...]:
        return tuple(sorted(set(value)))

    @model_validator(mode="after")
    def _check_days(self) -> "RecurringTask":
        # services import the models package; resolve at call time
        from todays.services.recurrence_validator import RecurrenceValidator

        result = RecurrenceValidator.validate_recurrence_days(
            self.recurrence_pattern, self.recurrence_days
        )
        if not result["valid"]:
            raise ValueError("; ".join(result["errors"]))
        return self


class CompletedTask(TaskBase):
    """Archive record for a one-time task."""

    completed_at: Instant = Field(default_factory=utc_now)


class RecurringCompletion(RecordModel):
    """Archive aggregate: all completions of one recurring definition."""

    id: str = Field(default_factory=new_task_id, min_length=1)
    recurring_id: str = Field(min_length=1)
    title: str = Field(min_length=1)
    category: Optional[str] = None
    completion_count: int = Field(default=1, ge=1)
    first_completed_at: Instant
    last_completed_at: Instant


DoneRecord = Union[RecurringCompletion, CompletedTask]

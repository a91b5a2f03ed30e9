"""User settings stored alongside the task collections."""
import re
from enum import Enum
from typing import Optional, Tuple, Union

from pydantic import Field, field_validator

from todays.config import DEFAULT_DAY_START
from todays.models.task import Instant, RecordModel

_DAY_START_RE = re.compile(r"^(\d{1,2}):(\d{2})$")
_COLOR_RE = r"^#[0-9A-Fa-f]{6}$"


def parse_day_start(value: str) -> Tuple[int, int]:
    """Parse an ``HH:MM`` time of day into ``(hours, minutes)``."""
    match = _DAY_START_RE.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise ValueError(f"Invalid day start '{value}'. Use HH:MM.")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise ValueError(f"Invalid day start '{value}'. Use HH:MM.")
    return hours, minutes


class Category(RecordModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1, max_length=50)
    color: str = Field(pattern=_COLOR_RE)


DEFAULT_CATEGORIES: Tuple[Category, ...] = (
    Category(id="work", name="Work", color="#E0F2F1"),
    Category(id="personal", name="Personal", color="#FCE4EC"),
    Category(id="health", name="Health", color="#E8F5E9"),
    Category(id="errands", name="Errands", color="#FFF8E1"),
)


class BacklogSort(str, Enum):
    RECENT = "recent"
    POSTPONED = "postponed"
    OLDEST = "oldest"


class Settings(RecordModel):
    """Day boundary, reset marker and user preferences."""

    day_start: str = DEFAULT_DAY_START
    last_day_reset: Optional[Instant] = None
    categories: Tuple[Category, ...] = DEFAULT_CATEGORIES
    snooze_options: Tuple[Union[int, str], ...] = (2, 5, 60, "Tonight")
    backlog_sort_by: BacklogSort = BacklogSort.RECENT
    auto_surface_recurring: bool = True

    @field_validator("day_start")
    @classmethod
    def _normalize_day_start(cls, value: str) -> str:
        hours, minutes = parse_day_start(value)
        return f"{hours:02d}:{minutes:02d}"

    @field_validator("categories", mode="before")
    @classmethod
    def _default_categories(cls, value):
        if value is None:
            return DEFAULT_CATEGORIES
        return value

    def category_ids(self) -> set:
        return {category.id for category in self.categories}

"""Day rollover.

When a new logical day starts, unfinished Today tasks move to the backlog and
finished ones move to the archive in a single snapshot swap.
"""
import logging
from datetime import datetime, tzinfo
from typing import Optional

from todays.models.settings import Settings
from todays.models.snapshot import Snapshot
from todays.services.day_boundary import most_recent_boundary
from todays.services.task_service import archive_completion, enter_backlog

logger = logging.getLogger(__name__)


def is_rollover_due(settings: Settings, now: datetime, tz: Optional[tzinfo] = None) -> bool:
    """Due when no reset happened yet, or the last one predates the current boundary."""
    boundary = most_recent_boundary(now, settings.day_start, tz)
    return settings.last_day_reset is None or settings.last_day_reset < boundary


def maybe_rollover(state: Snapshot, now: datetime, tz: Optional[tzinfo] = None) -> Snapshot:
    """
    Roll the Today list over if a day boundary has passed.

    Returns the very same snapshot object when no rollover is due, so callers
    can detect the no-op with ``is``.
    """
    if not is_rollover_due(state.settings, now, tz):
        return state

    backlog = state.backlog
    done = state.done
    for task in state.today:
        if task.done:
            done = archive_completion(done, task, now)
        else:
            backlog = enter_backlog(backlog, task, now)

    finished = sum(1 for task in state.today if task.done)
    logger.info(
        f"Day rollover at {now.isoformat()}: "
        f"{len(state.today) - finished} to backlog, {finished} archived"
    )
    return state.model_copy(update={
        "today": (),
        "backlog": backlog,
        "done": done,
        "settings": state.settings.model_copy(update={"last_day_reset": now}),
    })

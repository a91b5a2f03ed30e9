"""Local state: the in-memory snapshot and its durable copy."""

from .local_store import LocalStateStore
from .persistence import SnapshotStorage, SqlSnapshotStorage

__all__ = ["LocalStateStore", "SnapshotStorage", "SqlSnapshotStorage"]

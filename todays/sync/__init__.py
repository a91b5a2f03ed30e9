"""Local-to-remote synchronization."""

from .client import AuthSession, HttpRemoteReplica, RemoteReplica
from .coordinator import SyncCoordinator, SyncResult, SyncState
from .policy import ConflictPolicy, LastWriteWinsPolicy

__all__ = [
    "AuthSession",
    "ConflictPolicy",
    "HttpRemoteReplica",
    "LastWriteWinsPolicy",
    "RemoteReplica",
    "SyncCoordinator",
    "SyncResult",
    "SyncState",
]

"""Error types shared by the store, the sync layer and the import path."""
from typing import Any, Dict, Optional


class TodaysError(Exception):
    """Base exception carrying a machine-readable code."""

    code = "error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class TaskNotFound(TodaysError):
    code = "task_not_found"

    def __init__(self, task_id: str, collection: Optional[str] = None):
        where = f" in {collection}" if collection else ""
        super().__init__(f"Task {task_id} not found{where}", {"task_id": task_id})
        self.task_id = task_id


class MalformedImport(TodaysError):
    """Import payload rejected before any state was touched."""

    code = "malformed_import"


class SyncError(TodaysError):
    """Base class for errors contained inside the sync coordinator."""

    code = "sync_error"


class AuthRequired(SyncError):
    code = "auth_required"


class NetworkUnavailable(SyncError):
    code = "network_unavailable"


class IdentityMismatch(SyncError):
    code = "identity_mismatch"

"""Conflict policies applied when a remote document is pulled."""
import logging
from datetime import datetime
from typing import Optional, Protocol

from pydantic import ValidationError

from todays.config import SCHEMA_VERSION
from todays.errors import SyncError
from todays.models.snapshot import Snapshot
from todays.schemas.sync import RemoteDocument

logger = logging.getLogger(__name__)


class ConflictPolicy(Protocol):
    def resolve(
        self,
        local: Snapshot,
        remote: RemoteDocument,
        last_synced_at: Optional[datetime],
    ) -> Optional[Snapshot]:
        """Return the snapshot to install, or None to keep the local one."""
        ...


class LastWriteWinsPolicy:
    """
    Whole-document last write wins.

    On pull the remote document replaces everything local, unless its
    ``updatedAt`` is no newer than the last acknowledged sync (our own write
    echoing back). On push the local snapshot replaces the remote one.
    """

    def __init__(self, schema_version: int = SCHEMA_VERSION):
        self.schema_version = schema_version

    def resolve(
        self,
        local: Snapshot,
        remote: RemoteDocument,
        last_synced_at: Optional[datetime],
    ) -> Optional[Snapshot]:
        if remote.schema_version != self.schema_version:
            logger.warning(
                f"Remote schema version {remote.schema_version} differs from "
                f"{self.schema_version}; applying as-is"
            )

        if last_synced_at is not None and remote.updated_at <= last_synced_at:
            logger.debug(f"Remote document {remote.updated_at.isoformat()} already applied")
            return None

        try:
            return Snapshot.from_document(remote.data)
        except ValidationError as e:
            raise SyncError(
                f"Remote document is malformed: {e.error_count()} error(s)",
                {"identity": remote.identity},
            ) from e

"""Sync coordinator.

Pushes the local snapshot to the remote replica after a quiet period, pulls on
sign-in, reconnect and remote-change notifications, and migrates local data to
an empty remote once. Sync failures are contained here: they are logged, kept on
``last_error`` and reported through ``SyncResult``, never raised to callers.
"""
import asyncio
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from todays.config import SCHEMA_VERSION, SYNC_PULL_DEBOUNCE_SECONDS, SYNC_PUSH_DEBOUNCE_SECONDS
from todays.errors import AuthRequired, IdentityMismatch, SyncError
from todays.models.snapshot import Snapshot
from todays.store.local_store import ORIGIN_LOCAL, ORIGIN_REMOTE, LocalStateStore
from todays.sync.client import AuthSession, RemoteReplica
from todays.sync.debounce import Debouncer
from todays.sync.policy import ConflictPolicy, LastWriteWinsPolicy
from todays.utils.logger import get_logger

logger = get_logger("todays.sync")


class SyncState(str, Enum):
    IDLE = "idle"
    PENDING_PUSH = "pending_push"
    PUSHING = "pushing"
    PULLING = "pulling"


@dataclass
class SyncResult:
    success: bool
    error: Optional[str] = None
    applied: bool = False
    migrated: bool = False
    skipped: bool = False
    has_remote_data: bool = False
    updated_at: Optional[datetime] = None


class SyncCoordinator:
    def __init__(
        self,
        store: LocalStateStore,
        replica: RemoteReplica,
        policy: Optional[ConflictPolicy] = None,
        *,
        push_debounce: float = SYNC_PUSH_DEBOUNCE_SECONDS,
        pull_debounce: float = SYNC_PULL_DEBOUNCE_SECONDS,
        schema_version: int = SCHEMA_VERSION,
    ):
        self.store = store
        self.replica = replica
        self.policy = policy or LastWriteWinsPolicy(schema_version)
        self.schema_version = schema_version

        self.session: Optional[AuthSession] = None
        self.initialized = False
        self.last_synced_at: Optional[datetime] = None
        self.last_error: Optional[SyncError] = None
        self.log = logger

        # Push and pull never overlap for one identity
        self._lock = asyncio.Lock()
        self._active: Optional[SyncState] = None
        self._initializing = False
        self._push_after_init = False
        self._push = Debouncer(push_debounce, self.push_now, name="sync-push")
        self._pull = Debouncer(pull_debounce, self.pull_now, name="sync-pull")
        self._unsubscribe = store.subscribe(self._on_local_change)

    @property
    def state(self) -> SyncState:
        if self._active is not None:
            return self._active
        if self._push.pending:
            return SyncState.PENDING_PUSH
        return SyncState.IDLE

    @property
    def signed_in(self) -> bool:
        return self.session is not None

    def _on_local_change(self, snapshot: Snapshot, origin: str) -> None:
        if origin != ORIGIN_LOCAL or self.session is None:
            return
        if not self.initialized:
            # The initial pull must land before anything is pushed
            self._push_after_init = True
            return
        self.schedule_push()

    def schedule_push(self) -> None:
        """Arm (or re-arm) the debounced push."""
        if self.session is None:
            return
        self._push.trigger()

    def _failed(self, operation: str, error: SyncError) -> SyncResult:
        self.last_error = error
        if isinstance(error, IdentityMismatch):
            self.log.error(f"{operation} rejected", code=error.code, error=error.message)
        else:
            self.log.warning(f"{operation} failed", code=error.code, error=error.message, **error.details)
        return SyncResult(success=False, error=error.code)

    # Session lifecycle

    async def start(self, session: AuthSession) -> SyncResult:
        """Pull for a newly signed-in identity, migrating local data if the remote is empty."""
        self.session = session
        self.log = logger.bind(user_id=session.user_id)
        self.replica.set_token(session.token)
        self.initialized = False
        self._initializing = True
        self.log.info("Sync starting")

        try:
            async with self._lock:
                result = await self._pull_locked()
                if result.success and not result.has_remote_data:
                    result = await self._migrate_locked()
        finally:
            self._initializing = False

        if not result.success:
            self.log.warning("Initial sync incomplete; will retry when back online")
            return result

        self.initialized = True
        if self._push_after_init:
            self._push_after_init = False
            self.schedule_push()
        return result

    async def sign_out(self) -> None:
        self._push.cancel()
        self._pull.cancel()
        await self._pull.wait()
        await self._push.wait()
        if self.session is not None:
            self.log.info("Signed out")
        self.log = logger
        self.session = None
        self.replica.set_token(None)
        self.initialized = False
        self.last_synced_at = None
        self._push_after_init = False

    async def close(self, flush: bool = True) -> None:
        """Stop timers; with ``flush`` a pending push is sent first."""
        self._pull.cancel()
        if flush and self.session is not None and self._push.pending:
            await self._push.flush()
        else:
            self._push.cancel()
        await self._pull.wait()
        await self._push.wait()
        self._unsubscribe()

    async def wait_idle(self) -> None:
        """Wait for debounced push and pull actions that have already fired."""
        await self._push.wait()
        await self._pull.wait()

    # Push

    async def push_now(self) -> SyncResult:
        if self.session is None:
            return SyncResult(success=False, error=AuthRequired.code)
        self._push.cancel()

        async with self._lock:
            self._active = SyncState.PUSHING
            snapshot = self.store.snapshot
            try:
                ack = await self.replica.store(self.session.user_id, snapshot, self.schema_version)
            except SyncError as e:
                return self._failed("Push", e)
            finally:
                self._active = None

        self.last_synced_at = ack.updated_at
        self.last_error = None
        self.log.info("Pushed snapshot", updated_at=ack.updated_at, **snapshot.counts())
        return SyncResult(success=True, updated_at=ack.updated_at, has_remote_data=True)

    # Pull

    async def pull_now(self) -> SyncResult:
        if self.session is None:
            return SyncResult(success=False, error=AuthRequired.code)
        self._pull.cancel()
        async with self._lock:
            return await self._pull_locked()

    async def _pull_locked(self) -> SyncResult:
        identity = self.session.user_id
        self._active = SyncState.PULLING
        try:
            document = await self.replica.fetch(identity)
            if document is None:
                self.log.info("No remote document")
                return SyncResult(success=True, has_remote_data=False)

            if document.identity != identity:
                raise IdentityMismatch(
                    f"Remote document belongs to {document.identity}, not {identity}",
                    {"expected": identity, "received": document.identity},
                )

            resolved = self.policy.resolve(self.store.snapshot, document, self.last_synced_at)
        except SyncError as e:
            return self._failed("Pull", e)
        finally:
            self._active = None

        if self.last_synced_at is None or document.updated_at > self.last_synced_at:
            self.last_synced_at = document.updated_at
        self.last_error = None
        if resolved is None:
            return SyncResult(success=True, has_remote_data=True, updated_at=document.updated_at)

        self.store.replace_snapshot(resolved, ORIGIN_REMOTE)
        self.log.info("Applied remote snapshot", updated_at=document.updated_at, **resolved.counts())
        # A day may have turned while the remote copy was written; the rollover
        # is a local change and gets pushed like any other
        self.store.run_day_check()
        return SyncResult(success=True, applied=True, has_remote_data=True, updated_at=document.updated_at)

    # Migration

    async def migrate(self) -> SyncResult:
        """Push the local snapshot only if the remote has nothing for this identity."""
        if self.session is None:
            return SyncResult(success=False, error=AuthRequired.code)
        async with self._lock:
            return await self._migrate_locked()

    async def _migrate_locked(self) -> SyncResult:
        identity = self.session.user_id
        self._active = SyncState.PUSHING
        try:
            ack = await self.replica.create(identity, self.store.snapshot, self.schema_version)
        except SyncError as e:
            return self._failed("Migration", e)
        finally:
            self._active = None

        if ack is None:
            self.log.info("Migration skipped; remote already has data")
            return SyncResult(success=True, skipped=True, has_remote_data=True)

        self.last_synced_at = ack.updated_at
        self.log.info("Migrated local snapshot to remote", updated_at=ack.updated_at)
        return SyncResult(success=True, migrated=True, has_remote_data=True, updated_at=ack.updated_at)

    # External events

    def on_remote_change(self, identity: Optional[str] = None) -> None:
        """Another device pushed; pull after the notification burst settles."""
        if self.session is None or self._initializing or not self.initialized:
            return
        if identity is not None and identity != self.session.user_id:
            self.log.warning("Ignoring change notification for another identity", identity=identity)
            return
        self._pull.trigger()

    async def on_online(self) -> Optional[SyncResult]:
        """Connectivity restored: finish a failed start, otherwise push."""
        if self.session is None:
            return None
        if not self.initialized:
            if self._initializing:
                return None
            return await self.start(self.session)
        return await self.push_now()

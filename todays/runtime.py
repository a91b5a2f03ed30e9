"""
Client runtime.

Wires the local store, the sync coordinator, the notification listener and the
once-a-minute day check into one object with ``start`` and ``stop``.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional, Union

from todays.config import API_URL, DAY_CHECK_INTERVAL_SECONDS, LOCAL_DB_PATH, TIMEZONE, get_timezone
from todays.store.local_store import LocalStateStore
from todays.store.persistence import SqlSnapshotStorage
from todays.sync.client import AuthSession, HttpRemoteReplica, sign_in
from todays.sync.coordinator import SyncCoordinator, SyncResult
from todays.sync.notifications import NotificationListener

logger = logging.getLogger(__name__)


class LifecycleTicker:
    """Periodically asks the store whether a rollover or recurring surfacing is due."""

    def __init__(self, store: LocalStateStore, interval: float = DAY_CHECK_INTERVAL_SECONDS):
        self.store = store
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    def tick(self) -> bool:
        changed = self.store.run_day_check()
        if changed:
            logger.info("Day check changed local state")
        return changed

    async def run(self):
        while True:
            try:
                self.tick()
            except Exception as e:
                logger.error(f"Day check failed: {str(e)}")
            await asyncio.sleep(self.interval)

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run(), name="todays-day-check")
        return self._task

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None


class ClientRuntime:
    def __init__(
        self,
        store: LocalStateStore,
        coordinator: SyncCoordinator,
        listener: Optional[NotificationListener] = None,
        ticker: Optional[LifecycleTicker] = None,
        *,
        api_url: str = API_URL,
    ):
        self.store = store
        self.coordinator = coordinator
        self.listener = listener
        self.ticker = ticker or LifecycleTicker(store)
        self.api_url = api_url

    @classmethod
    def from_config(
        cls,
        *,
        api_url: str = API_URL,
        db_path: Union[str, Path] = LOCAL_DB_PATH,
        timezone: str = TIMEZONE,
    ) -> "ClientRuntime":
        """Build a runtime from environment configuration."""
        store = LocalStateStore(SqlSnapshotStorage(db_path), tz=get_timezone(timezone))
        coordinator = SyncCoordinator(store, HttpRemoteReplica(api_url))
        listener = NotificationListener(coordinator, api_url)
        return cls(store, coordinator, listener, api_url=api_url)

    async def start(self, session: Optional[AuthSession] = None) -> Optional[SyncResult]:
        """Start the day check and, with a session, sync and notifications."""
        self.ticker.start()
        if session is None:
            logger.info("Running signed out; changes stay local")
            return None
        return await self.connect(session)

    async def connect(self, session: AuthSession) -> SyncResult:
        result = await self.coordinator.start(session)
        if self.listener is not None:
            self.listener.start()
        return result

    async def sign_in(self, email: str, password: str) -> SyncResult:
        session = await sign_in(email, password, base_url=self.api_url)
        return await self.connect(session)

    async def sign_out(self):
        if self.listener is not None:
            await self.listener.stop()
        await self.coordinator.sign_out()

    async def stop(self):
        """Stop timers, flush a pending push and release the HTTP client."""
        await self.ticker.stop()
        if self.listener is not None:
            await self.listener.stop()
        await self.coordinator.close(flush=True)

        aclose = getattr(self.coordinator.replica, "aclose", None)
        if aclose is not None:
            await aclose()

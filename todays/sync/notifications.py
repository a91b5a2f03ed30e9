"""
Remote-change notification listener.

Keeps a websocket open to the replica service and forwards
``user_data_updated`` messages to the sync coordinator.
"""

import asyncio
import json
import logging
from typing import Any, Dict, Optional
from urllib.parse import urlsplit, urlunsplit

import websockets
from websockets.exceptions import ConnectionClosed, InvalidStatus, WebSocketException

from todays.sync.coordinator import SyncCoordinator

logger = logging.getLogger(__name__)

USER_DATA_UPDATED = "user_data_updated"


def ws_url(api_url: str, token: str) -> str:
    """Turn the HTTP API base into the notification endpoint URL."""
    parts = urlsplit(api_url)
    scheme = "wss" if parts.scheme == "https" else "ws"
    path = parts.path.rstrip("/") + "/ws"
    return urlunsplit((scheme, parts.netloc, path, f"token={token}", ""))


class NotificationListener:
    """Listener that reconnects with exponential backoff."""

    def __init__(
        self,
        coordinator: SyncCoordinator,
        api_url: str,
        *,
        initial_backoff: float = 1.0,
        max_backoff: float = 60.0,
    ):
        self.coordinator = coordinator
        self.api_url = api_url
        self.initial_backoff = initial_backoff
        self.max_backoff = max_backoff
        self._task: Optional[asyncio.Task] = None
        self._stopping = False
        self._connected_before = False

    async def handle_message(self, raw: str) -> bool:
        """Process one message; True if it triggered a pull."""
        try:
            message: Dict[str, Any] = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Ignoring non-JSON notification: {raw[:80]}")
            return False

        message_type = message.get("type", "")
        if message_type == USER_DATA_UPDATED:
            self.coordinator.on_remote_change(message.get("identity"))
            return True

        logger.debug(f"Ignoring notification of type {message_type}")
        return False

    async def _listen_once(self, url: str) -> None:
        async with websockets.connect(url) as websocket:
            logger.info("Notification channel connected")
            session = self.coordinator.session
            if self._connected_before or not self.coordinator.initialized:
                # Back online, or the initial pull has not landed yet
                await self.coordinator.on_online()
            elif session is not None:
                # Catch up on changes made between start and this connect
                self.coordinator.on_remote_change(session.user_id)
            self._connected_before = True
            async for raw in websocket:
                await self.handle_message(raw)

    async def run(self) -> None:
        """Listen until ``stop()`` is called."""
        backoff = self.initial_backoff
        while not self._stopping:
            session = self.coordinator.session
            if session is None:
                await asyncio.sleep(backoff)
                continue

            try:
                await self._listen_once(ws_url(self.api_url, session.token))
                backoff = self.initial_backoff
            except InvalidStatus as e:
                logger.error(f"Notification channel refused: {e.response.status_code}")
            except (ConnectionClosed, WebSocketException, OSError) as e:
                logger.warning(f"Notification channel lost: {str(e)}")

            if self._stopping:
                break
            await asyncio.sleep(backoff)
            backoff = min(backoff * 2, self.max_backoff)

    def start(self) -> asyncio.Task:
        self._stopping = False
        self._connected_before = False
        self._task = asyncio.create_task(self.run(), name="todays-notifications")
        return self._task

    async def stop(self) -> None:
        self._stopping = True
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

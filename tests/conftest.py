# tests/conftest.py

from __future__ import annotations

from pathlib import Path

import pytest
import pytz

from todays.store.local_store import LocalStateStore
from todays.store.persistence import SqlSnapshotStorage
from todays.sync.client import AuthSession
from todays.sync.coordinator import SyncCoordinator

from .fakes import FakeClock, FakeRemoteReplica

# Short enough to keep the suite fast, long enough to batch a burst of calls
DEBOUNCE = 0.05


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def storage(tmp_path: Path) -> SqlSnapshotStorage:
    return SqlSnapshotStorage(tmp_path / "local.db")


@pytest.fixture()
def store(storage: SqlSnapshotStorage, clock: FakeClock) -> LocalStateStore:
    return LocalStateStore(storage, tz=pytz.utc, clock=clock)


@pytest.fixture()
def replica() -> FakeRemoteReplica:
    return FakeRemoteReplica()


@pytest.fixture()
def session() -> AuthSession:
    return AuthSession(user_id="user-1", token="token-1", email="ana@mail.com")


@pytest.fixture()
def coordinator(store: LocalStateStore, replica: FakeRemoteReplica) -> SyncCoordinator:
    return SyncCoordinator(store, replica, push_debounce=DEBOUNCE, pull_debounce=DEBOUNCE)

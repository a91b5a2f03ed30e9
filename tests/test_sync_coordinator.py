# tests/test_sync_coordinator.py

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import pytest

from todays.errors import IdentityMismatch, NetworkUnavailable
from todays.models import Settings, Snapshot, TodayTask
from todays.store.local_store import LocalStateStore
from todays.sync.client import AuthSession
from todays.sync.coordinator import SyncCoordinator, SyncState

from .conftest import DEBOUNCE
from .fakes import FakeRemoteReplica

# Already reset today, so pulling it does not trigger a rollover
FRESH_SETTINGS = Settings(last_day_reset=datetime(2026, 10, 19, 6, 0, tzinfo=timezone.utc))


def remote_snapshot(*titles: str) -> Snapshot:
    return Snapshot(today=tuple(TodayTask(title=t) for t in titles), settings=FRESH_SETTINGS)


async def settle(coordinator: SyncCoordinator) -> None:
    await asyncio.sleep(DEBOUNCE * 3)
    await coordinator.wait_idle()


@pytest.mark.asyncio
async def test_start_migrates_local_data_to_empty_remote(
    coordinator: SyncCoordinator, store: LocalStateStore, replica: FakeRemoteReplica, session: AuthSession
) -> None:
    store.add_today_task("Local only")

    result = await coordinator.start(session)

    assert result.success and result.migrated
    assert replica.token == "token-1"
    assert replica.calls[:2] == [("fetch", "user-1"), ("create", "user-1")]
    assert replica.documents["user-1"].data["today"][0]["title"] == "Local only"
    assert coordinator.initialized
    assert coordinator.last_synced_at == replica.documents["user-1"].updated_at


@pytest.mark.asyncio
async def test_start_replaces_local_with_remote(
    coordinator: SyncCoordinator, store: LocalStateStore, replica: FakeRemoteReplica, session: AuthSession
) -> None:
    store.add_today_task("Local only")
    replica.put_remote("user-1", remote_snapshot("From phone"))
    origins = []
    store.subscribe(lambda snapshot, origin: origins.append(origin))

    result = await coordinator.start(session)

    assert result.success and result.applied
    assert [t.title for t in store.snapshot.today] == ["From phone"]
    assert origins == ["remote"]
    assert coordinator.state == SyncState.IDLE
    assert replica.count("create") == 0
    assert replica.count("store") == 0


@pytest.mark.asyncio
async def test_rollover_after_pull_is_pushed(
    coordinator: SyncCoordinator, store: LocalStateStore, replica: FakeRemoteReplica, session: AuthSession
) -> None:
    stale = Snapshot(today=(TodayTask(title="Yesterday"),))
    replica.put_remote("user-1", stale)

    await coordinator.start(session)

    assert store.snapshot.today == ()
    assert [t.title for t in store.snapshot.backlog] == ["Yesterday"]
    assert coordinator.state == SyncState.PENDING_PUSH

    await settle(coordinator)
    assert replica.count("store") == 1
    assert replica.documents["user-1"].data["backlog"][0]["title"] == "Yesterday"


@pytest.mark.asyncio
async def test_identity_mismatch_is_not_applied(
    coordinator: SyncCoordinator, store: LocalStateStore, replica: FakeRemoteReplica, session: AuthSession
) -> None:
    store.add_today_task("Mine")
    replica.put_remote("user-1", remote_snapshot("Someone else's"), owner="user-2")
    before = store.snapshot

    result = await coordinator.start(session)

    assert not result.success
    assert result.error == "identity_mismatch"
    assert isinstance(coordinator.last_error, IdentityMismatch)
    assert store.snapshot is before
    assert not coordinator.initialized


@pytest.mark.asyncio
async def test_second_migration_is_skipped(
    coordinator: SyncCoordinator, store: LocalStateStore, replica: FakeRemoteReplica, session: AuthSession
) -> None:
    await coordinator.start(session)
    newer = replica.put_remote("user-1", remote_snapshot("Newer remote"))
    store.add_today_task("Stale local")

    result = await coordinator.migrate()

    assert result.success and result.skipped
    assert replica.documents["user-1"] is newer


@pytest.mark.asyncio
async def test_mutations_collapse_into_one_push(
    coordinator: SyncCoordinator, store: LocalStateStore, replica: FakeRemoteReplica, session: AuthSession
) -> None:
    await coordinator.start(session)

    store.add_today_task("one")
    store.add_today_task("two")
    store.add_today_task("three")
    assert coordinator.state == SyncState.PENDING_PUSH
    assert replica.count("store") == 0

    await settle(coordinator)

    assert replica.count("store") == 1
    assert [t["title"] for t in replica.documents["user-1"].data["today"]] == ["one", "two", "three"]
    assert coordinator.state == SyncState.IDLE


@pytest.mark.asyncio
async def test_push_failure_returns_to_idle(
    coordinator: SyncCoordinator, store: LocalStateStore, replica: FakeRemoteReplica, session: AuthSession
) -> None:
    await coordinator.start(session)
    replica.fail_with = NetworkUnavailable("offline")

    store.add_today_task("Written offline")
    await settle(coordinator)

    assert coordinator.state == SyncState.IDLE
    assert isinstance(coordinator.last_error, NetworkUnavailable)
    assert [t.title for t in store.snapshot.today] == ["Written offline"]

    replica.fail_with = None
    result = await coordinator.on_online()
    assert result.success
    assert replica.documents["user-1"].data["today"][0]["title"] == "Written offline"
    assert coordinator.last_error is None


@pytest.mark.asyncio
async def test_notifications_collapse_into_one_pull(
    coordinator: SyncCoordinator, store: LocalStateStore, replica: FakeRemoteReplica, session: AuthSession
) -> None:
    await coordinator.start(session)
    fetches = replica.count("fetch")
    replica.put_remote("user-1", remote_snapshot("From laptop"))

    for _ in range(5):
        coordinator.on_remote_change("user-1")
    await settle(coordinator)

    assert replica.count("fetch") == fetches + 1
    assert [t.title for t in store.snapshot.today] == ["From laptop"]


@pytest.mark.asyncio
async def test_own_push_echo_is_not_reapplied(
    coordinator: SyncCoordinator, store: LocalStateStore, replica: FakeRemoteReplica, session: AuthSession
) -> None:
    await coordinator.start(session)
    store.add_today_task("Mine")
    await settle(coordinator)

    result = await coordinator.pull_now()

    assert result.success and not result.applied


@pytest.mark.asyncio
async def test_notifications_ignored_before_start(
    coordinator: SyncCoordinator, replica: FakeRemoteReplica
) -> None:
    coordinator.on_remote_change("user-1")
    await settle(coordinator)
    assert replica.calls == []


@pytest.mark.asyncio
async def test_signed_out_sync_is_a_no_op(
    coordinator: SyncCoordinator, store: LocalStateStore, replica: FakeRemoteReplica
) -> None:
    store.add_today_task("Local")
    assert coordinator.state == SyncState.IDLE

    result = await coordinator.push_now()
    assert not result.success and result.error == "auth_required"
    assert replica.calls == []


@pytest.mark.asyncio
async def test_failed_start_retried_when_online(
    coordinator: SyncCoordinator, store: LocalStateStore, replica: FakeRemoteReplica, session: AuthSession
) -> None:
    replica.fail_with = NetworkUnavailable("offline")
    first = await coordinator.start(session)
    assert not first.success and not coordinator.initialized

    store.add_today_task("Offline edit")
    await settle(coordinator)
    assert replica.count("store") == 0

    replica.fail_with = None
    result = await coordinator.on_online()
    assert result.success and result.migrated
    assert coordinator.initialized


@pytest.mark.asyncio
async def test_sign_out_cancels_pending_push(
    coordinator: SyncCoordinator, store: LocalStateStore, replica: FakeRemoteReplica, session: AuthSession
) -> None:
    await coordinator.start(session)
    store.add_today_task("Unsent")
    await coordinator.sign_out()
    await settle(coordinator)

    assert replica.count("store") == 0
    assert replica.token is None
    assert not coordinator.signed_in


@pytest.mark.asyncio
async def test_close_flushes_pending_push(
    coordinator: SyncCoordinator, store: LocalStateStore, replica: FakeRemoteReplica, session: AuthSession
) -> None:
    await coordinator.start(session)
    store.add_today_task("Last edit")

    await coordinator.close()

    assert replica.count("store") == 1

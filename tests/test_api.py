# tests/test_api.py

from __future__ import annotations

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine
from starlette.websockets import WebSocketDisconnect

from todays.db.config import get_session
from todays.db.init import init_db
from todays.main import app
from todays.models import Snapshot, TodayTask
from todays.ws.notifier import change_notifier


@pytest.fixture()
def client() -> Iterator[TestClient]:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)

    def override_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def notified(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    calls: list[str] = []

    async def record(user_id, updated_at):
        calls.append(user_id)
        return 0

    monkeypatch.setattr(change_notifier, "notify_user_data_updated", record)
    return calls


def sign_up(client: TestClient, email: str = "ana@mail.com") -> dict:
    response = client.post("/auth/sign-up", json={"email": email, "password": "correct-horse"})
    assert response.status_code == 200, response.text
    return response.json()


def auth(account: dict) -> dict:
    return {"Authorization": f"Bearer {account['token']}"}


def document(*titles: str) -> dict:
    snapshot = Snapshot(today=tuple(TodayTask(title=t) for t in titles))
    return {"data": snapshot.to_document(), "schemaVersion": 1}


def test_health(client: TestClient) -> None:
    assert client.get("/health").json()["status"] == "healthy"


def test_sign_up_and_sign_in(client: TestClient) -> None:
    account = sign_up(client)

    again = client.post("/auth/sign-in", json={"email": "ana@mail.com", "password": "correct-horse"})
    assert again.status_code == 200
    assert again.json()["user_id"] == account["user_id"]

    wrong = client.post("/auth/sign-in", json={"email": "ana@mail.com", "password": "battery-staple"})
    assert wrong.status_code == 401

    duplicate = client.post("/auth/sign-up", json={"email": "ana@mail.com", "password": "correct-horse"})
    assert duplicate.status_code == 400


def test_document_lifecycle(client: TestClient, notified: list[str]) -> None:
    account = sign_up(client)
    path = f"/api/{account['user_id']}/data"

    assert client.get(path, headers=auth(account)).status_code == 404

    put = client.put(path, json=document("Buy milk"), headers=auth(account))
    assert put.status_code == 200, put.text
    ack = put.json()
    assert ack["identity"] == account["user_id"]
    assert notified == [account["user_id"]]

    got = client.get(path, headers=auth(account)).json()
    assert got["identity"] == account["user_id"]
    assert got["schemaVersion"] == 1
    assert got["updatedAt"] == ack["updatedAt"]
    assert got["data"]["today"][0]["title"] == "Buy milk"

    assert client.delete(path, headers=auth(account)).status_code == 204
    assert client.get(path, headers=auth(account)).status_code == 404
    assert client.delete(path, headers=auth(account)).status_code == 404


def test_create_only_never_overwrites(client: TestClient, notified: list[str]) -> None:
    account = sign_up(client)
    path = f"/api/{account['user_id']}/data"

    first = client.put(path, params={"create_only": "true"}, json=document("First"), headers=auth(account))
    assert first.status_code == 200
    second = client.put(path, params={"create_only": "true"}, json=document("Second"), headers=auth(account))
    assert second.status_code == 409

    got = client.get(path, headers=auth(account)).json()
    assert got["data"]["today"][0]["title"] == "First"
    assert len(notified) == 1


def test_other_users_document_is_forbidden(client: TestClient, notified: list[str]) -> None:
    ana = sign_up(client, "ana@mail.com")
    bob = sign_up(client, "bob@mail.com")

    response = client.put(f"/api/{bob['user_id']}/data", json=document("x"), headers=auth(ana))
    assert response.status_code == 403
    assert client.get(f"/api/{bob['user_id']}/data", headers=auth(ana)).status_code == 403
    assert notified == []


def test_missing_or_bad_token(client: TestClient) -> None:
    assert client.get("/api/anyone/data").status_code == 401
    bad = {"Authorization": "Bearer not-a-jwt"}
    assert client.get("/api/anyone/data", headers=bad).status_code == 401


def test_invalid_snapshot_rejected(client: TestClient, notified: list[str]) -> None:
    account = sign_up(client)
    body = {"data": {"today": [{"title": ""}]}, "schemaVersion": 1}
    response = client.put(f"/api/{account['user_id']}/data", json=body, headers=auth(account))
    assert response.status_code == 422
    assert notified == []


def test_websocket_requires_valid_token(client: TestClient) -> None:
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/ws?token=nope") as websocket:
            websocket.receive_json()


def test_websocket_greets_authenticated_user(client: TestClient) -> None:
    account = sign_up(client)
    with client.websocket_connect(f"/ws?token={account['token']}") as websocket:
        hello = websocket.receive_json()
    assert hello["type"] == "connection_established"
    assert hello["user_id"] == account["user_id"]

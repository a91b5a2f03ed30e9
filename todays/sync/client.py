"""HTTP client for the remote replica service."""
import logging
from dataclasses import dataclass
from typing import Optional, Protocol

import httpx
from pydantic import ValidationError

from todays.config import API_URL
from todays.errors import AuthRequired, IdentityMismatch, NetworkUnavailable, SyncError
from todays.models.snapshot import Snapshot
from todays.schemas.sync import PushAck, PushRequest, RemoteDocument

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthSession:
    """Signed-in identity and its bearer token."""
    user_id: str
    token: str
    email: Optional[str] = None


class RemoteReplica(Protocol):
    """The single remote copy of each identity's snapshot."""

    def set_token(self, token: Optional[str]) -> None: ...

    async def fetch(self, identity: str) -> Optional[RemoteDocument]: ...

    async def store(self, identity: str, snapshot: Snapshot, schema_version: int) -> PushAck: ...

    async def create(self, identity: str, snapshot: Snapshot, schema_version: int) -> Optional[PushAck]: ...

    async def delete(self, identity: str) -> bool: ...


class HttpRemoteReplica:
    """RemoteReplica backed by the ``/api/{user_id}/data`` routes."""

    def __init__(
        self,
        base_url: str = API_URL,
        token: Optional[str] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        self.token = token
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    def set_token(self, token: Optional[str]) -> None:
        self.token = token

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        if not self.token:
            raise AuthRequired("Not authenticated")

        try:
            response = await self._client.request(
                method,
                path,
                headers={"Authorization": f"Bearer {self.token}"},
                **kwargs,
            )
        except httpx.TransportError as e:
            raise NetworkUnavailable(f"{method} {path} failed: {str(e)}") from e

        if response.status_code == 401:
            raise AuthRequired("Session rejected by the replica service")
        if response.status_code == 403:
            raise IdentityMismatch("Replica refused access to this identity")
        if response.status_code >= 500:
            raise NetworkUnavailable(
                f"Replica service error {response.status_code}",
                {"status_code": response.status_code},
            )
        return response

    @staticmethod
    def _parse(model, response: httpx.Response):
        try:
            return model.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise SyncError(f"Unexpected replica response: {str(e)}") from e

    @staticmethod
    def _expect_success(response: httpx.Response) -> None:
        if response.is_error:
            raise SyncError(
                f"Replica rejected request: {response.status_code}",
                {"status_code": response.status_code, "body": response.text},
            )

    async def fetch(self, identity: str) -> Optional[RemoteDocument]:
        response = await self._request("GET", f"/api/{identity}/data")
        if response.status_code == 404:
            return None
        self._expect_success(response)
        return self._parse(RemoteDocument, response)

    async def store(self, identity: str, snapshot: Snapshot, schema_version: int) -> PushAck:
        body = PushRequest(data=snapshot.to_document(), schema_version=schema_version)
        response = await self._request(
            "PUT",
            f"/api/{identity}/data",
            json=body.model_dump(mode="json", by_alias=True),
        )
        self._expect_success(response)
        return self._parse(PushAck, response)

    async def create(self, identity: str, snapshot: Snapshot, schema_version: int) -> Optional[PushAck]:
        """Store only if the identity has no document yet; None when one exists."""
        body = PushRequest(data=snapshot.to_document(), schema_version=schema_version)
        response = await self._request(
            "PUT",
            f"/api/{identity}/data",
            params={"create_only": "true"},
            json=body.model_dump(mode="json", by_alias=True),
        )
        if response.status_code == 409:
            return None
        self._expect_success(response)
        return self._parse(PushAck, response)

    async def delete(self, identity: str) -> bool:
        response = await self._request("DELETE", f"/api/{identity}/data")
        if response.status_code == 404:
            return False
        self._expect_success(response)
        return True


async def sign_in(
    email: str,
    password: str,
    *,
    base_url: str = API_URL,
    client: Optional[httpx.AsyncClient] = None,
) -> AuthSession:
    """Exchange credentials for an AuthSession."""
    owns_client = client is None
    client = client or httpx.AsyncClient(base_url=base_url, timeout=10.0)
    try:
        response = await client.post("/auth/sign-in", json={"email": email, "password": password})
    except httpx.TransportError as e:
        raise NetworkUnavailable(f"Sign in failed: {str(e)}") from e
    finally:
        if owns_client:
            await client.aclose()

    if response.status_code == 401:
        raise AuthRequired("Invalid email or password")
    if response.is_error:
        raise SyncError(f"Sign in failed: {response.status_code}", {"status_code": response.status_code})

    body = response.json()
    return AuthSession(user_id=body["user_id"], token=body["token"], email=body.get("email"))

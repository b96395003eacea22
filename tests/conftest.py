"""Shared fixtures: an in-process fake of the PlainPage API."""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

import jwt
import pytest

from plainpage_client import (
    AsyncPlainPageClient,
    MemoryNavigator,
    PlainPageClientConfiguration,
)
from plainpage_client.models import User
from plainpage_client.exceptions import (
    AuthenticationError,
    NotFoundError,
    RateLimitError,
    ServerError,
)

_SIGNING_KEY = "test-signing-key"


def make_token(expires_in: Optional[float] = 3600, sub: str = "u1", **claims: Any) -> str:
    """Return a signed JWT, without ``exp`` claim if ``expires_in`` is None."""
    payload: Dict[str, Any] = {"sub": sub, **claims}
    if expires_in is not None:
        payload["exp"] = int(time.time() + expires_in)
    return jwt.encode(payload, _SIGNING_KEY, algorithm="HS256")


@dataclass
class Call:
    method: str
    endpoint: str
    headers: Dict[str, str]
    json_data: Any = None

    @property
    def authorization(self) -> Optional[str]:
        return self.headers.get("Authorization")


@dataclass
class FakeServer:
    """Stand-in for `AsyncApiClient.request`.

    Access tokens are accepted if the server issued them and did not revoke
    them. Paths in ``public_paths`` can be read without token, but like the
    real server an invalid token is rejected there as well. Requests with a
    token to paths in ``reject_tokens_on`` are always rejected with 401.
    """

    users: Dict[str, Dict[str, str]] = field(
        default_factory=lambda: {
            "alice": {"id": "u1", "password": "secret", "displayName": "Alice"},
        }
    )
    public_paths: Set[str] = field(default_factory=set)
    resources: Dict[str, Any] = field(default_factory=dict)
    token_lifetime: float = 3600
    refresh_cookie: Optional[str] = None
    refresh_delay: float = 0
    refresh_status: int = 200
    login_burst: int = 5
    login_retry_after: int = 30
    reject_tokens_on: Set[str] = field(default_factory=set)

    calls: List[Call] = field(default_factory=list)
    valid_tokens: Set[str] = field(default_factory=set)
    login_failures: int = 0
    issued_tokens: int = 0

    def calls_to(self, endpoint: str) -> List[Call]:
        return [call for call in self.calls if call.endpoint == endpoint]

    def issue_token(
        self,
        username: str = "alice",
        expires_in: Optional[float] = None,
        with_expiry: bool = True,
    ) -> str:
        user = self.users[username]
        if not with_expiry:
            lifetime = None
        else:
            lifetime = self.token_lifetime if expires_in is None else expires_in
        self.issued_tokens += 1
        token = make_token(
            lifetime,
            sub=user["id"],
            # makes tokens issued within the same second distinct
            jti=f"{username}-{self.issued_tokens}",
        )
        self.valid_tokens.add(token)
        return token

    def user_payload(self, username: str = "alice") -> Dict[str, str]:
        user = self.users[username]
        return {"id": user["id"], "username": username, "displayName": user["displayName"]}

    def revoke_all_tokens(self) -> None:
        self.valid_tokens.clear()

    async def request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json_data: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        self.calls.append(Call(method, endpoint, dict(headers or {}), json_data))
        await asyncio.sleep(0)

        if endpoint == "/auth/login":
            return self._login(json_data)
        if endpoint == "/auth/refresh":
            return await self._refresh()
        if endpoint == "/auth/logout":
            self.refresh_cookie = None
            return {}

        authorization = (headers or {}).get("Authorization", "")
        token = authorization[len("Bearer "):] if authorization.startswith("Bearer ") else ""
        if token and token not in self.valid_tokens:
            raise AuthenticationError("Unauthorized", 401, {"raw_content": "Unauthorized\n"})
        if token and endpoint in self.reject_tokens_on:
            raise AuthenticationError("Unauthorized", 401, {"raw_content": "Unauthorized\n"})
        if not token and endpoint not in self.public_paths:
            raise AuthenticationError("Unauthorized", 401, {"raw_content": "Unauthorized\n"})
        if endpoint not in self.resources:
            raise NotFoundError("Not Found", 404)
        return self.resources[endpoint]

    def _login(self, body: Dict[str, str]) -> Dict[str, Any]:
        if self.login_failures >= self.login_burst:
            raise RateLimitError("Too Many Requests", 429, self.login_retry_after)

        user = self.users.get(body["username"])
        if user is None or user["password"] != body["password"]:
            self.login_failures += 1
            raise AuthenticationError("Unauthorized", 401)

        self.refresh_cookie = f"refresh-{body['username']}"
        return {
            "accessToken": self.issue_token(body["username"]),
            "user": self.user_payload(body["username"]),
        }

    async def _refresh(self) -> Dict[str, Any]:
        if self.refresh_delay:
            await asyncio.sleep(self.refresh_delay)
        if self.refresh_status >= 500:
            raise ServerError("Internal Server Error", self.refresh_status)
        if self.refresh_cookie is None:
            raise AuthenticationError("Unauthorized", 401)

        username = self.refresh_cookie[len("refresh-"):]
        return {
            "accessToken": self.issue_token(username),
            "user": self.user_payload(username),
        }


@pytest.fixture
def server() -> FakeServer:
    return FakeServer(
        resources={
            "/app": {"appTitle": "PlainPage", "setupMode": False, "allowRegister": False},
            "/pages/wiki/private": {"page": {"url": "wiki/private"}},
            "/pages/wiki/public": {"page": {"url": "wiki/public"}},
            "/auth/users/alice": {},
            "/auth/users/alice/password": {},
            "/auth/users/alice/delete": {},
        },
        public_paths={"/app", "/pages/wiki/public"},
    )


@pytest.fixture
def navigator() -> MemoryNavigator:
    return MemoryNavigator("/wiki/private?rev=2")


@pytest.fixture
def client(server: FakeServer, navigator: MemoryNavigator) -> AsyncPlainPageClient:
    """Client whose transport is the fake server, logged out."""
    client = AsyncPlainPageClient(
        config=PlainPageClientConfiguration(base_url="http://wiki.test/_api"),
        navigator=navigator,
    )
    client.api_client.request = server.request
    return client


@pytest.fixture
def log_in(client: AsyncPlainPageClient, server: FakeServer):
    """Return a function that puts a session into the client as if alice had logged in."""

    def _log_in(expires_in: Optional[float] = None, with_expiry: bool = True) -> str:
        server.refresh_cookie = "refresh-alice"
        token = server.issue_token("alice", expires_in=expires_in, with_expiry=with_expiry)
        client.session_store.set(token, User.model_validate(server.user_payload("alice")))
        return token

    return _log_in

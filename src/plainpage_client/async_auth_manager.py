"""Async authentication manager: login, logout and access token refresh."""

import asyncio
import logging
from typing import TYPE_CHECKING, Optional

import aiohttp

from .exceptions import APIError, AuthenticationError, RateLimitError
from .models import LoginRequest, LoginResult, LoginStatus, TokenUserResponse

if TYPE_CHECKING:
    from .async_api_client import AsyncApiClient
    from .session_store import SessionStore

logger = logging.getLogger(__name__)

# Used when the server rate limits without sending a Retry-After header
DEFAULT_RETRY_AFTER = 1


class AsyncAuthManager:
    """Manages the session of an :class:`AsyncApiClient`.

    The refresh token lives in an http-only cookie that is set by the login
    endpoint, so refreshing needs no arguments. The server may rotate the
    refresh token on use, which is why at most one refresh runs at a time.
    """

    def __init__(
        self, api_client: "AsyncApiClient", session_store: "SessionStore"
    ) -> None:
        """Initialize the async authentication manager.

        Args:
            api_client: Async API client for making HTTP requests
            session_store: Store holding the access token and user
        """
        super().__init__()

        self.api_client = api_client
        self.session_store = session_store

        # set while a refresh request is in flight, shared by all callers
        self._refresh_task: Optional["asyncio.Task[bool]"] = None

    @property
    def is_refreshing(self) -> bool:
        return self._refresh_task is not None

    async def login(self, username: str, password: str) -> LoginResult:
        """Log in with username and password.

        Any existing session is dropped first.

        Args:
            username: Username
            password: Password

        Returns:
            Result with status SUCCESS, INVALID_CREDENTIALS or RATE_LIMITED

        Raises:
            APIError: For any other error response
        """
        self.session_store.clear()

        payload = LoginRequest(username=username, password=password)
        try:
            response = await self.api_client.post(
                "/auth/login", json_data=payload.model_dump()
            )
        except AuthenticationError:
            logger.info("Login of %s rejected: invalid credentials", username)
            return LoginResult(status=LoginStatus.INVALID_CREDENTIALS)
        except RateLimitError as e:
            retry_after = e.retry_after if e.retry_after is not None else DEFAULT_RETRY_AFTER
            logger.warning("Login of %s rate limited, retry after %ds", username, retry_after)
            return LoginResult(status=LoginStatus.RATE_LIMITED, retry_after=retry_after)

        token_response = TokenUserResponse.model_validate(response)
        self.session_store.set(token_response.access_token, token_response.user)
        logger.info("Logged in as %s", token_response.user.username)

        return LoginResult(status=LoginStatus.SUCCESS, user=token_response.user)

    async def logout(self) -> None:
        """Revoke the refresh token on the server and clear the session.

        The session is cleared even if the server can't be reached.
        """
        try:
            await self.api_client.post("/auth/logout")
        except (APIError, aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.debug("Ignoring failed logout request: %s", e)

        self.session_store.clear()

    async def refresh_access_token(self) -> bool:
        """Get a new access token using the refresh token cookie.

        Concurrent calls share a single request to the server and all of them
        get its outcome.

        Returns:
            True if the session is valid, False if the refresh failed and the
            session was cleared
        """
        if self._refresh_task is None:
            self._refresh_task = asyncio.ensure_future(self._refresh())

        # a cancelled caller must not cancel the refresh others are waiting for
        return await asyncio.shield(self._refresh_task)

    async def _refresh(self) -> bool:
        try:
            try:
                response = await self.api_client.post("/auth/refresh")
                token_response = TokenUserResponse.model_validate(response)
            except (APIError, aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
                logger.warning("Access token refresh failed, clearing session: %s", e)
                self.session_store.clear()
                return False

            self.session_store.set(token_response.access_token, token_response.user)
            logger.info("Refreshed access token of %s", token_response.user.username)
            return True
        finally:
            self._refresh_task = None

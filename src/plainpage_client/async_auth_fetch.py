"""Authenticated requests with transparent token refresh."""

import logging
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, NoReturn, Optional

from .exceptions import AuthenticationError, LoginRedirectError
from .token_expiration import TOKEN_EXPIRATION_BUFFER, is_token_expiring_soon

if TYPE_CHECKING:
    from .async_api_client import AsyncApiClient
    from .async_auth_manager import AsyncAuthManager
    from .navigation import Navigator

logger = logging.getLogger(__name__)

DEFAULT_LOGIN_PATH = "/_login"


class AsyncAuthFetch:
    """Sends requests with the current access token.

    A request rejected with 401 is handled in this order:

    1. if it was sent with a token, refresh the token and retry once
    2. if that didn't help, forget the session and retry without a token,
       since the resource may be public (``anonymous_fallback``)
    3. otherwise send the navigator to the login page and raise
       :class:`LoginRedirectError`

    Every other error is raised unchanged.
    """

    def __init__(
        self,
        api_client: "AsyncApiClient",
        auth_manager: "AsyncAuthManager",
        navigator: "Navigator",
        login_path: str = DEFAULT_LOGIN_PATH,
        token_expiration_buffer: int = TOKEN_EXPIRATION_BUFFER,
        anonymous_fallback: bool = True,
    ) -> None:
        """Initialize the authenticated fetcher.

        Args:
            api_client: Async API client for making HTTP requests
            auth_manager: Auth manager used to refresh the access token
            navigator: Navigator that is sent to the login page when needed
            login_path: Path of the login page
            token_expiration_buffer: Refresh tokens expiring within this many seconds
            anonymous_fallback: Retry without token if the token can't be renewed
        """
        self.api_client = api_client
        self.auth_manager = auth_manager
        self.session_store = auth_manager.session_store
        self.navigator = navigator
        self.login_path = login_path
        self.token_expiration_buffer = token_expiration_buffer
        self.anonymous_fallback = anonymous_fallback

    async def fetch(
        self,
        endpoint: str,
        method: str = "GET",
        params: Optional[Dict[str, Any]] = None,
        json_data: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """Make a request with the current access token.

        Args:
            endpoint: Path relative to the base URL
            method: HTTP method
            params: Query parameters
            json_data: Request body, sent as JSON
            headers: Extra headers. An ``Authorization`` header is replaced.

        Returns:
            Decoded response body

        Raises:
            LoginRedirectError: The request needs a login, the navigator was
                sent to the login page
            AuthenticationError: The request needs a login, but the navigator
                is on the login page already
            APIError: For any other error response
        """
        if self.session_store.authenticated and is_token_expiring_soon(
            self.session_store.access_token, self.token_expiration_buffer
        ):
            logger.debug("Access token expires soon, refreshing before %s %s", method, endpoint)
            # the request is sent with whatever token we have afterwards
            await self.auth_manager.refresh_access_token()

        async def send(request_headers: Dict[str, str]) -> Any:
            return await self.api_client.request(
                method,
                endpoint,
                params=params,
                json_data=json_data,
                headers=request_headers,
            )

        request_headers = self._build_headers(headers)
        try:
            return await send(request_headers)
        except AuthenticationError as e:
            return await self._handle_unauthorized(
                e, "Authorization" in request_headers, headers, send
            )

    async def _handle_unauthorized(
        self,
        error: AuthenticationError,
        sent_with_token: bool,
        headers: Optional[Dict[str, str]],
        send: Callable[[Dict[str, str]], Awaitable[Any]],
    ) -> Any:
        if sent_with_token:
            if await self.auth_manager.refresh_access_token():
                try:
                    return await send(self._build_headers(headers))
                except AuthenticationError as e:
                    logger.info("Request still unauthorized after token refresh")
                    error = e

            if self.anonymous_fallback:
                self.session_store.clear()
                try:
                    return await send(self._build_headers(headers, with_token=False))
                except AuthenticationError as e:
                    error = e

        await self._redirect_to_login(error, clear_session=sent_with_token)

    async def _redirect_to_login(
        self, error: AuthenticationError, clear_session: bool
    ) -> NoReturn:
        if clear_session and (
            self.session_store.authenticated or self.session_store.user is not None
        ):
            self.session_store.clear()

        if self.navigator.current_path == self.login_path:
            raise error

        return_to = self.navigator.current_full_path
        logger.info("Login required, redirecting to %s", self.login_path)
        await self.navigator.navigate(self.login_path, {"returnTo": return_to})
        raise LoginRedirectError(self.login_path, return_to) from error

    def _build_headers(
        self, headers: Optional[Dict[str, str]], with_token: bool = True
    ) -> Dict[str, str]:
        request_headers = {
            key: value
            for key, value in (headers or {}).items()
            if key.lower() != "authorization"
        }
        if with_token and self.session_store.authenticated:
            request_headers["Authorization"] = f"Bearer {self.session_store.access_token}"
        return request_headers

"""Async PlainPage API client."""

from pathlib import Path
from typing import Any, Dict, Optional, Union

from .async_api_client import AsyncApiClient
from .async_auth_fetch import DEFAULT_LOGIN_PATH, AsyncAuthFetch
from .async_auth_manager import AsyncAuthManager
from .exceptions import NotLoggedInError
from .models import (
    ChangePasswordRequest,
    GetAppResponse,
    LoginResult,
    PatchOperation,
    PostUserRequest,
    User,
)
from .navigation import MemoryNavigator, Navigator
from .session_store import FileSessionStorage, SessionStorage, SessionStore
from .token_expiration import TOKEN_EXPIRATION_BUFFER

DEFAULT_BASE_URL = "http://localhost:8080/_api"


class PlainPageClientConfiguration:
    """Configuration for AsyncPlainPageClient."""

    DEFAULT: "PlainPageClientConfiguration"

    def __init__(
        self,
        base_url: Optional[str] = None,
        login_path: str = DEFAULT_LOGIN_PATH,
        token_expiration_buffer: int = TOKEN_EXPIRATION_BUFFER,
        anonymous_fallback: bool = True,
        session_file: Optional[Union[str, Path]] = None,
        timeout: int = 30,
    ) -> None:
        """Initialize configuration.

        Args:
            base_url: Override the default API URL
            login_path: Path of the login page the navigator is sent to
            token_expiration_buffer: Refresh tokens expiring within this many seconds
            anonymous_fallback: Retry requests without token if the token can't
                be renewed, instead of redirecting to the login page right away
            session_file: File to persist the session in. Without one the
                session only lives as long as the client. The refresh token
                cookie is kept next to it, in ``<session_file>.cookies``.
            timeout: Request timeout in seconds
        """
        if token_expiration_buffer < 0:
            raise ValueError("token_expiration_buffer must not be negative")

        self.base_url = base_url or DEFAULT_BASE_URL
        self.login_path = login_path
        self.token_expiration_buffer = token_expiration_buffer
        self.anonymous_fallback = anonymous_fallback
        self.session_file = session_file
        self.timeout = timeout

    def get_base_url(self) -> str:
        return self.base_url

    def create_session_storage(self) -> Optional[SessionStorage]:
        if self.session_file is None:
            return None
        return FileSessionStorage(self.session_file)

    def get_cookie_file(self) -> Optional[Path]:
        if self.session_file is None:
            return None
        path = Path(self.session_file)
        return path.with_name(path.name + ".cookies")


PlainPageClientConfiguration.DEFAULT = PlainPageClientConfiguration()


class AsyncPlainPageClient:
    """Async PlainPage API client."""

    def __init__(
        self,
        config: PlainPageClientConfiguration = PlainPageClientConfiguration.DEFAULT,
        navigator: Optional[Navigator] = None,
        session_store: Optional[SessionStore] = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Configuration for the client
            navigator: Navigator sent to the login page when a request needs
                a login. Defaults to a :class:`MemoryNavigator`.
            session_store: Session store to use, by default one is created
                from the configuration
        """
        super().__init__()

        self.config = config
        self.navigator = navigator or MemoryNavigator()
        self.session_store = session_store or SessionStore(
            config.create_session_storage()
        )

        self.api_client = AsyncApiClient(
            base_url=config.get_base_url(),
            timeout=config.timeout,
            cookie_file=config.get_cookie_file(),
        )
        self.auth_manager = AsyncAuthManager(
            api_client=self.api_client, session_store=self.session_store
        )
        self.auth_fetch = AsyncAuthFetch(
            api_client=self.api_client,
            auth_manager=self.auth_manager,
            navigator=self.navigator,
            login_path=config.login_path,
            token_expiration_buffer=config.token_expiration_buffer,
            anonymous_fallback=config.anonymous_fallback,
        )

    @property
    def api_endpoint(self) -> str:
        """The current API endpoint (base URL)."""
        return self.api_client.base_url

    @api_endpoint.setter
    def api_endpoint(self, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError("api_endpoint must be a string URL")
        self.api_client.base_url = value.rstrip("/")

    @property
    def logged_in(self) -> bool:
        return self.session_store.authenticated

    @property
    def user(self) -> Optional[User]:
        return self.session_store.user

    async def close(self) -> None:
        """Close the client and release resources."""
        await self.api_client.close()

    async def __aenter__(self) -> "AsyncPlainPageClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()

    def _require_user(self) -> User:
        user = self.session_store.user
        if user is None:
            raise NotLoggedInError()
        return user

    async def fetch(
        self,
        endpoint: str,
        method: str = "GET",
        params: Optional[Dict[str, Any]] = None,
        json_data: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """Make an authenticated request.

        See :meth:`AsyncAuthFetch.fetch` for the handling of expired tokens.

        Returns:
            Decoded response body
        """
        return await self.auth_fetch.fetch(
            endpoint, method=method, params=params, json_data=json_data, headers=headers
        )

    async def login(self, username: str, password: str) -> LoginResult:
        """Log in with username and password.

        Returns:
            Login result, check ``result.ok`` or ``result.status``
        """
        return await self.auth_manager.login(username, password)

    async def logout(self) -> None:
        """Log out, also if the server can't be reached."""
        await self.auth_manager.logout()

    async def refresh_access_token(self) -> bool:
        """Renew the access token now.

        Returns:
            True if the session is valid afterwards
        """
        return await self.auth_manager.refresh_access_token()

    async def get_app(self) -> GetAppResponse:
        """Get application info such as title and setup mode.

        Returns:
            Application info
        """
        response = await self.fetch("/app")
        return GetAppResponse.model_validate(response)

    async def register(self, username: str, password: str, display_name: str) -> User:
        """Create a new user.

        Works without login while the server is in setup mode or allows
        registration.

        Returns:
            The created user
        """
        request = PostUserRequest(
            username=username, password=password, display_name=display_name
        )
        response = await self.fetch(
            "/auth/users",
            method="POST",
            json_data=request.model_dump(by_alias=True),
        )
        return User.model_validate(response)

    async def update_me(self, display_name: str) -> User:
        """Change the display name of the logged in user.

        Returns:
            The updated user

        Raises:
            NotLoggedInError: If nobody is logged in
        """
        user = self._require_user()

        ops = [PatchOperation(op="replace", path="/displayName", value=display_name)]
        await self.fetch(
            f"/auth/users/{user.username}",
            method="PATCH",
            json_data=[op.model_dump(by_alias=True, exclude_none=True) for op in ops],
        )

        # the session may have been dropped while the request was running
        if self.session_store.user is not None:
            self.session_store.update_user(display_name=display_name)
            return self.session_store.user
        return user.model_copy(update={"display_name": display_name})

    async def change_password(self, current_password: str, new_password: str) -> None:
        """Change the password of the logged in user.

        Raises:
            NotLoggedInError: If nobody is logged in
        """
        user = self._require_user()

        request = ChangePasswordRequest(
            current_password=current_password, new_password=new_password
        )
        await self.fetch(
            f"/auth/users/{user.username}/password",
            method="POST",
            json_data=request.model_dump(by_alias=True),
        )

    async def delete_me(self) -> None:
        """Delete the account of the logged in user and log out.

        Raises:
            NotLoggedInError: If nobody is logged in
        """
        user = self._require_user()

        await self.fetch(f"/auth/users/{user.username}/delete", method="POST")
        await self.logout()

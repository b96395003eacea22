"""Async client for the PlainPage wiki API."""

__version__ = "0.1.0"

from .async_api_client import AsyncApiClient
from .async_auth_fetch import AsyncAuthFetch
from .async_auth_manager import AsyncAuthManager
from .async_plainpage_client import AsyncPlainPageClient, PlainPageClientConfiguration
from .exceptions import (
    APIError,
    AuthenticationError,
    ConflictError,
    ForbiddenError,
    LoginRedirectError,
    NotFoundError,
    NotLoggedInError,
    PlainPageError,
    RateLimitError,
    ServerError,
    ValidationError,
)
from .models import GetAppResponse, LoginResult, LoginStatus, User
from .navigation import MemoryNavigator, Navigator
from .session_store import (
    FileSessionStorage,
    MemorySessionStorage,
    SessionStorage,
    SessionStore,
)
from .token_expiration import (
    TOKEN_EXPIRATION_BUFFER,
    get_token_expiration,
    is_token_expiring_soon,
)

__all__ = [
    "APIError",
    "AsyncApiClient",
    "AsyncAuthFetch",
    "AsyncAuthManager",
    "AsyncPlainPageClient",
    "AuthenticationError",
    "ConflictError",
    "FileSessionStorage",
    "ForbiddenError",
    "GetAppResponse",
    "LoginRedirectError",
    "LoginResult",
    "LoginStatus",
    "MemoryNavigator",
    "MemorySessionStorage",
    "Navigator",
    "NotFoundError",
    "NotLoggedInError",
    "PlainPageClientConfiguration",
    "PlainPageError",
    "RateLimitError",
    "ServerError",
    "SessionStorage",
    "SessionStore",
    "TOKEN_EXPIRATION_BUFFER",
    "User",
    "ValidationError",
    "get_token_expiration",
    "is_token_expiring_soon",
]

"""Exceptions raised by the PlainPage client."""

from typing import Any, Dict, Optional


class PlainPageError(Exception):
    """Base class for all client errors."""


class APIError(PlainPageError):
    """Raised when the server answers with a non-success status code."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_data: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response_data = response_data or {}

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"{self.status_code}: {self.message}"
        return self.message


class ValidationError(APIError):
    """Raised on HTTP 400."""


class AuthenticationError(APIError):
    """Raised on HTTP 401."""


class ForbiddenError(APIError):
    """Raised on HTTP 403."""


class NotFoundError(APIError):
    """Raised on HTTP 404."""


class ConflictError(APIError):
    """Raised on HTTP 409."""


class RateLimitError(APIError):
    """Raised on HTTP 429."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        retry_after: Optional[int] = None,
        response_data: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, status_code, response_data)
        self.retry_after = retry_after


class ServerError(APIError):
    """Raised on HTTP 5xx."""


class LoginRedirectError(PlainPageError):
    """The call needs a login and the navigator was sent to the login page.

    Callers must not continue with the result of the request: there is none.
    """

    def __init__(self, login_path: str, return_to: str) -> None:
        super().__init__(f"redirected to {login_path}")
        self.login_path = login_path
        self.return_to = return_to


class NotLoggedInError(PlainPageError, ValueError):
    """An operation that needs a logged-in user was called without a session."""

    def __init__(self, message: str = "not logged in") -> None:
        super().__init__(message)

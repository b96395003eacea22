"""Async HTTP client with error handling."""

import json
import logging
import math
import pickle
import time
from datetime import timezone
from email.utils import parsedate_to_datetime
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union
from urllib.parse import urljoin

import aiohttp
from aiohttp import ClientSession, CookieJar

from .exceptions import (
    APIError,
    AuthenticationError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    RateLimitError,
    ServerError,
    ValidationError,
)

logger = logging.getLogger(__name__)


class AsyncApiClient:
    """Async HTTP client that maps error responses to exceptions.

    The client knows nothing about access tokens. Authorization headers are
    passed in per request by the caller. Cookies are kept in the session's
    cookie jar, which is how the refresh token cookie reaches `/auth/refresh`.
    """

    def __init__(
        self,
        base_url: str,
        timeout: int = 30,
        cookie_file: Optional[Union[str, Path]] = None,
    ) -> None:
        """Initialize the async base client.

        Args:
            base_url: Base URL of the API, e.g. ``http://localhost:8080/_api``
            timeout: Request timeout in seconds
            cookie_file: File to keep the cookies in between runs. It is
                written whenever a response sets cookies.
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.cookie_file = Path(cookie_file) if cookie_file is not None else None

        self._session: Optional[ClientSession] = None
        self._cookie_jar: Optional[CookieJar] = None

    async def _get_session(self) -> ClientSession:
        """Get or create the aiohttp session."""
        if self._session is None or self._session.closed:
            # unsafe=True accepts cookies from IP hosts like 127.0.0.1
            self._cookie_jar = CookieJar(unsafe=True)
            self._load_cookies()
            self._session = ClientSession(
                timeout=self.timeout,
                cookie_jar=self._cookie_jar,
            )
        return self._session

    def _load_cookies(self) -> None:
        if self._cookie_jar is None or self.cookie_file is None:
            return
        if not self.cookie_file.exists():
            return
        try:
            self._cookie_jar.load(self.cookie_file)
        except (OSError, EOFError, ValueError, pickle.UnpicklingError) as e:
            logger.warning("Ignoring unreadable cookie file %s: %s", self.cookie_file, e)

    def _save_cookies(self) -> None:
        if self._cookie_jar is None or self.cookie_file is None:
            return
        try:
            self.cookie_file.parent.mkdir(parents=True, exist_ok=True)
            self._cookie_jar.save(self.cookie_file)
        except OSError as e:
            logger.warning("Could not save cookies to %s: %s", self.cookie_file, e)

    def _get_version(self) -> str:
        """Get the package version."""
        try:
            from . import __version__
            return __version__
        except (ImportError, AttributeError):
            return "0.1.0"

    def _get_headers(self) -> Dict[str, str]:
        """Get default headers."""
        version = self._get_version()
        return {
            "Accept": "application/json",
            "User-Agent": f"plainpage-python-client-{version}",
        }

    def _build_url(self, endpoint: str) -> str:
        """Build full URL from endpoint."""
        return urljoin(self.base_url + "/", endpoint.lstrip("/"))

    @staticmethod
    def _parse_body(text: str) -> Any:
        if not text.strip():
            return {}
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            return {"raw_content": text}

    @staticmethod
    def _parse_retry_after(
        value: Optional[str], now: Optional[float] = None
    ) -> Optional[int]:
        """Parse a Retry-After header, given as seconds or as HTTP date."""
        if value is None:
            return None
        value = value.strip()
        if value.isdecimal():
            return int(value)

        try:
            retry_at = parsedate_to_datetime(value)
        except (TypeError, ValueError):
            return None
        if retry_at.tzinfo is None:
            retry_at = retry_at.replace(tzinfo=timezone.utc)

        if now is None:
            now = time.time()
        return max(0, math.ceil(retry_at.timestamp() - now))

    def _handle_response(
        self,
        response_data: Any,
        status_code: int,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        """Handle HTTP response and raise appropriate exceptions."""
        if 200 <= status_code < 300:
            return response_data

        if not isinstance(response_data, dict):
            response_data = {"raw_content": str(response_data)}

        # extract error message from response, the server often answers with plain text
        error_message = response_data.get("message") or response_data.get(
            "raw_content", ""
        ).strip() or "Unknown error"
        if isinstance(error_message, dict):
            error_message = str(error_message)

        # raise specific exceptions based on status code
        if status_code == 401:
            raise AuthenticationError(error_message, status_code, response_data)
        elif status_code == 400:
            raise ValidationError(error_message, status_code, response_data)
        elif status_code == 403:
            raise ForbiddenError(error_message, status_code, response_data)
        elif status_code == 404:
            raise NotFoundError(error_message, status_code, response_data)
        elif status_code == 409:
            raise ConflictError(error_message, status_code, response_data)
        elif status_code == 429:
            retry_after = self._parse_retry_after((headers or {}).get("Retry-After"))
            raise RateLimitError(error_message, status_code, retry_after, response_data)
        elif 500 <= status_code < 600:
            raise ServerError(error_message, status_code, response_data)
        else:
            raise APIError(error_message, status_code, response_data)

    async def request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json_data: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """Make an async request and return the decoded JSON body.

        Args:
            method: HTTP method
            endpoint: Path relative to the base URL
            params: Query parameters
            json_data: Request body, sent as JSON
            headers: Extra headers, merged over the default headers

        Returns:
            Decoded response body, ``{}`` for empty bodies

        Raises:
            APIError: For non-2xx responses (see subclasses)
            aiohttp.ClientError: For transport errors
        """
        session = await self._get_session()
        url = self._build_url(endpoint)
        request_headers = self._get_headers()
        if headers:
            request_headers.update(headers)

        async with session.request(
            method,
            url,
            params=params,
            json=json_data,
            headers=request_headers,
        ) as response:
            text = await response.text()
            logger.debug("%s %s -> %d", method, url, response.status)
            if response.cookies:
                self._save_cookies()
            return self._handle_response(
                self._parse_body(text), response.status, response.headers
            )

    async def get(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        **kwargs: Any,
    ) -> Any:
        """Make async GET request."""
        return await self.request("GET", endpoint, params=params, **kwargs)

    async def post(
        self,
        endpoint: str,
        json_data: Any = None,
        **kwargs: Any,
    ) -> Any:
        """Make async POST request."""
        return await self.request("POST", endpoint, json_data=json_data, **kwargs)

    async def close(self) -> None:
        """Close the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "AsyncApiClient":
        """Async context manager entry."""
        await self._get_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()

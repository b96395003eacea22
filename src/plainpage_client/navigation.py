"""Navigation hooks used to send the user to the login page."""

from abc import ABC, abstractmethod
from typing import Dict, Optional
from urllib.parse import urlencode, urlsplit


class Navigator(ABC):
    """Where the application currently is, and how to go somewhere else."""

    @property
    @abstractmethod
    def current_path(self) -> str:
        """Path of the current location, without query string."""

    @property
    @abstractmethod
    def current_full_path(self) -> str:
        """Path of the current location, including query string."""

    @abstractmethod
    async def navigate(self, path: str, query: Optional[Dict[str, str]] = None) -> None:
        """Go to ``path`` with the given query parameters."""


class MemoryNavigator(Navigator):
    """Navigator that only keeps track of the current location.

    Useful for scripts and services without a UI: after a redirect the login
    page and return path can be read from :attr:`current_full_path`.
    """

    def __init__(self, location: str = "/") -> None:
        self._location = location
        self.history = [location]

    @property
    def current_path(self) -> str:
        return urlsplit(self._location).path

    @property
    def current_full_path(self) -> str:
        return self._location

    async def navigate(self, path: str, query: Optional[Dict[str, str]] = None) -> None:
        self._location = f"{path}?{urlencode(query)}" if query else path
        self.history.append(self._location)

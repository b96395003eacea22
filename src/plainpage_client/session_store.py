"""Session state shared by all requests of a client."""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional, Union

from .models import PersistedSession, User

logger = logging.getLogger(__name__)


class SessionStorage(ABC):
    """Durable storage for the persisted part of a session."""

    @abstractmethod
    def load(self) -> Optional[PersistedSession]:
        """Return the stored session, or None if there is none."""

    @abstractmethod
    def save(self, session: PersistedSession) -> None:
        """Store the session, replacing any previous one."""

    @abstractmethod
    def clear(self) -> None:
        """Remove the stored session."""


class MemorySessionStorage(SessionStorage):
    """Keeps the session for the lifetime of the process only."""

    def __init__(self) -> None:
        self._data: Optional[str] = None

    def load(self) -> Optional[PersistedSession]:
        if self._data is None:
            return None
        return PersistedSession.model_validate_json(self._data)

    def save(self, session: PersistedSession) -> None:
        self._data = session.model_dump_json(by_alias=True)

    def clear(self) -> None:
        self._data = None


class FileSessionStorage(SessionStorage):
    """Stores the session as JSON file, so it survives restarts."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def load(self) -> Optional[PersistedSession]:
        if not self.path.exists():
            return None
        return PersistedSession.model_validate_json(
            self.path.read_text(encoding="utf-8")
        )

    def save(self, session: PersistedSession) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(session.model_dump_json(by_alias=True), encoding="utf-8")

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


class SessionStore:
    """Holds the access token and the user it belongs to.

    The user is set if and only if the access token is set. Every change is
    written through to the storage, and the stored session is restored when
    the store is created. Storage errors are logged and never raised.
    """

    def __init__(self, storage: Optional[SessionStorage] = None) -> None:
        """Initialize the session store.

        Args:
            storage: Storage to persist the session in, defaults to memory
        """
        self.storage = storage or MemorySessionStorage()

        self._access_token = ""
        self._user: Optional[User] = None

        self._restore()

    @property
    def access_token(self) -> str:
        return self._access_token

    @property
    def user(self) -> Optional[User]:
        return self._user

    @property
    def authenticated(self) -> bool:
        return self._access_token != ""

    def set(self, access_token: str, user: User) -> None:
        """Replace access token and user."""
        if not access_token:
            raise ValueError("access token must not be empty")

        self._access_token = access_token
        self._user = user
        self._persist()

    def update_user(self, **changes: Any) -> None:
        """Update fields of the current user, leaving the access token as is."""
        if self._user is None:
            raise ValueError("no user to update")

        self._user = self._user.model_copy(update=changes)
        self._persist()

    def clear(self) -> None:
        """Forget access token and user."""
        self._access_token = ""
        self._user = None
        self._persist()

    def _persist(self) -> None:
        # the in-memory state stays valid when the storage can't be written
        try:
            if self.authenticated:
                self.storage.save(
                    PersistedSession(access_token=self._access_token, user=self._user)
                )
            else:
                self.storage.clear()
        except OSError as e:
            logger.warning("Could not persist session: %s", e)

    def _restore(self) -> None:
        try:
            session = self.storage.load()
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable stored session: %s", e)
            return

        if session is None or not session.access_token or session.user is None:
            return

        self._access_token = session.access_token
        self._user = session.user

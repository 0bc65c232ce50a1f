"""Durable session snapshot storage for shopdesk."""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from .config import DEFAULT_DATA_DIR
from .errors import InvalidSchemaVersionError
from .models import User

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1
SESSION_FILE = "session.json"


class SessionStore:
    """Reads and writes the persisted copy of the current user."""

    def __init__(self, data_dir: Path | None = None):
        """
        Initialize SessionStore.

        Args:
            data_dir: Override data directory (for testing).
        """
        self.data_dir = data_dir or DEFAULT_DATA_DIR
        self.session_path = self.data_dir / SESSION_FILE

    def exists(self) -> bool:
        return self.session_path.exists()

    def load(self) -> User | None:
        """
        Load the stored current user, or None when nobody is logged in.

        Raises:
            InvalidSchemaVersionError: If the snapshot has an unsupported version.
            ValueError: If the file is not valid JSON.
        """
        if not self.exists():
            return None

        with open(self.session_path, "r", encoding="utf-8") as f:
            data: dict[str, Any] = json.load(f)

        version = data.get("schema_version", 0) if isinstance(data, dict) else 0
        if version != SCHEMA_VERSION:
            raise InvalidSchemaVersionError(version, SCHEMA_VERSION)

        current = data.get("current_user")
        return User.from_dict(current) if current else None

    def save(self, user: User) -> None:
        """
        Save the current user atomically.

        Uses write-to-temp-then-rename for atomicity.
        """
        self.data_dir.mkdir(parents=True, exist_ok=True)

        data = {"schema_version": SCHEMA_VERSION, "current_user": user.to_dict()}
        fd, temp_path = tempfile.mkstemp(dir=self.data_dir, prefix=".session_", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
                f.write("\n")
            os.replace(temp_path, self.session_path)
        except Exception:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise

    def clear(self) -> None:
        """Remove the stored snapshot, if any."""
        try:
            self.session_path.unlink()
        except FileNotFoundError:
            pass


class Session:
    """
    The authenticated user for this process.

    Holds the single in-memory copy of the current user and writes every
    change through to the backing SessionStore, so the durable snapshot
    never drifts from what the stores see.
    """

    def __init__(self, store: SessionStore):
        self.store = store
        self._current: User | None = None

    @property
    def current_user(self) -> User | None:
        return self._current

    @property
    def is_authenticated(self) -> bool:
        return self._current is not None

    def load(self) -> User | None:
        """
        Restore the current user from the durable snapshot.

        An unreadable or outdated snapshot is discarded and the session
        starts logged out.
        """
        try:
            self._current = self.store.load()
        except (InvalidSchemaVersionError, ValueError, KeyError, TypeError) as e:
            logger.warning("Discarding unreadable session %s: %s", self.store.session_path, e)
            self.store.clear()
            self._current = None
        if self._current is not None:
            logger.debug("Restored session for %s", self._current.email)
        return self._current

    def save(self, user: User) -> None:
        """Make ``user`` the current user and persist it."""
        self.store.save(user)
        self._current = user

    def clear(self) -> None:
        """Forget the current user and its snapshot."""
        self.store.clear()
        self._current = None

    def refresh(self, user: User) -> bool:
        """Replace the snapshot if ``user`` is the current user. Returns True if it was."""
        if self._current is None or self._current.id != user.id:
            return False
        self.save(user)
        return True

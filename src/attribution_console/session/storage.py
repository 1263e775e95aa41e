"""Durable key/value storage for the persisted session.

The session is kept under one fixed key, mirroring browser local storage:
values are strings and the backing document is a flat JSON object.
"""

from __future__ import annotations

import json
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)


class StorageError(RuntimeError):
    """Raised when persisted values cannot be written."""


class SessionStore(ABC):
    """Interface for string key/value stores holding client state."""

    @abstractmethod
    def read(self, key: str) -> str | None:
        """Return the value stored under ``key`` or ``None``."""

    @abstractmethod
    def write(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove ``key``; missing keys are ignored."""


class MemorySessionStore(SessionStore):
    """Process-local store used for tests and ephemeral clients."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def read(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def write(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)


class FileSessionStore(SessionStore):
    """JSON document on disk holding string values by key.

    Writes go through a temporary file in the same directory followed by an
    atomic replace. A missing or unreadable document reads as empty.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path).expanduser()
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, str]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as exc:
            logger.warning("session.storage_unreadable", path=str(self._path), error=str(exc))
            return {}
        try:
            document = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("session.storage_corrupt", path=str(self._path))
            return {}
        if not isinstance(document, dict):
            logger.warning("session.storage_corrupt", path=str(self._path))
            return {}
        return {str(k): v for k, v in document.items() if isinstance(v, str)}

    def _dump(self, document: dict[str, str]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(document, handle, sort_keys=True)
                os.replace(tmp_name, self._path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise StorageError(f"Failed to write session storage at {self._path}") from exc

    def read(self, key: str) -> str | None:
        with self._lock:
            return self._load().get(key)

    def write(self, key: str, value: str) -> None:
        with self._lock:
            document = self._load()
            document[key] = value
            self._dump(document)

    def delete(self, key: str) -> None:
        with self._lock:
            document = self._load()
            if key not in document:
                return
            del document[key]
            self._dump(document)


__all__ = ["FileSessionStore", "MemorySessionStore", "SessionStore", "StorageError"]

"""Navigation hooks used for forced redirects (e.g. back to login)."""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol, runtime_checkable


@runtime_checkable
class Navigator(Protocol):
    """Anything able to move the UI shell to another entry point."""

    def navigate(self, path: str) -> None: ...


class CallbackNavigator:
    """Adapts a plain callable to :class:`Navigator`."""

    def __init__(self, callback: Callable[[str], None]) -> None:
        self._callback = callback

    def navigate(self, path: str) -> None:
        self._callback(path)


class RecordingNavigator:
    """Keeps every requested path; used by headless shells and tests."""

    def __init__(self) -> None:
        self.history: list[str] = []

    def navigate(self, path: str) -> None:
        self.history.append(path)

    @property
    def last(self) -> str | None:
        return self.history[-1] if self.history else None


__all__ = ["CallbackNavigator", "Navigator", "RecordingNavigator"]

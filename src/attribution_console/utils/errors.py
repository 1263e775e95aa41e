"""Problem detail helpers for consistent error reporting.

Key Responsibilities:
    - Provide RFC 7807 compliant data structures describing a failed backend
      interaction
    - Supply a base exception that carries problem details so callers can
      render form-level messages without inspecting transport objects

Collaborators:
    - Upstream: :mod:`attribution_console.client.errors` derives the client
      error taxonomy from :class:`FoundationError`
    - Downstream: UI shells serialise :class:`ProblemDetail` instances into
      inline messages or logs
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Mapping

__all__ = ["ProblemDetail", "FoundationError"]


@dataclass(slots=True)
class ProblemDetail:
    """Lightweight problem details object compliant with RFC 7807."""

    title: str
    status: int | None = None
    detail: str | None = None
    type: str = "about:blank"
    instance: str | None = None
    extra: Mapping[str, Any] = field(default_factory=dict)

    def model_dump(self) -> dict[str, Any]:
        """Return a dictionary representation with optional fields dropped."""
        payload = {key: value for key, value in asdict(self).items() if value is not None}
        if not payload.get("extra"):
            payload.pop("extra", None)
        return payload


class FoundationError(RuntimeError):
    """Base exception that carries a :class:`ProblemDetail` instance."""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        detail: str | None = None,
        type: str = "about:blank",
        instance: str | None = None,
        extra: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.problem = ProblemDetail(
            title=message,
            status=status,
            detail=detail,
            type=type,
            instance=instance,
            extra=dict(extra or {}),
        )

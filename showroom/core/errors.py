"""Domain errors raised by services and mapped to HTTP responses.

Core components (cache, indexer, limiter) raise ``ValueError`` for invalid
arguments; the HTTP layer and inventory loading raise these typed errors so
the exception handlers can render a stable ``{"error": {...}}`` body.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Optional structured context attached to an error response."""

    field: str
    hint: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured context for clients.
    """

    status_code: ClassVar[int] = 400

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            body["details"] = dict(self.details)
        return body


class ValidationAppError(AppError):
    """Invalid input: unknown category, duplicate listing id, bad seed file."""


class AuthenticationAppError(AppError):
    """Missing, unknown or unconfigured API key."""

    status_code: ClassVar[int] = 403

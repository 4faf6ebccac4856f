"""Classified error record and its typed constructors."""

import os
import traceback
from dataclasses import dataclass, field
from typing import Any

from errshape.errors.kinds import DATABASE_KINDS, ErrorKind, defaults_for

_ERRORS_DIR = os.path.dirname(os.path.abspath(__file__))


def current_stack() -> str:
    """Format the caller's stack, leaving out frames from this package."""
    frames = [
        frame
        for frame in traceback.extract_stack()
        if not os.path.abspath(frame.filename).startswith(_ERRORS_DIR)
    ]
    return "".join(traceback.format_list(frames))


@dataclass(frozen=True)
class ErrorRecord:
    """Immutable result of classifying a raw error.

    Attributes:
        kind: Taxonomy category; decides the defaults below.
        message: Human-readable description sent to clients.
        http_status: HTTP status code used for the response.
        description: Machine-stable label such as ``DATABASE_ERROR``.
        is_operational: ``False`` only for errors no classification rule matched.
        stack: Call-stack text captured when the raw error surfaced.
        cause: The raw error itself. Kept for logging, never serialized.
    """

    kind: ErrorKind
    message: str
    http_status: int
    description: str
    is_operational: bool
    stack: str = field(default="", compare=False)
    cause: Any = field(default=None, compare=False, repr=False)

    def to_dict(self) -> dict[str, Any]:
        """Serialize every field except ``cause``."""
        return {
            "kind": self.kind.value,
            "message": self.message,
            "http_status": self.http_status,
            "description": self.description,
            "is_operational": self.is_operational,
            "stack": self.stack,
        }


def _build(
    kind: ErrorKind,
    message: str,
    http_status: int | None,
    description: str | None,
    stack: str | None,
    cause: Any,
) -> ErrorRecord:
    defaults = defaults_for(kind)
    return ErrorRecord(
        kind=kind,
        message=message,
        http_status=defaults.http_status if http_status is None else http_status,
        description=defaults.description if description is None else description,
        is_operational=defaults.is_operational,
        stack=current_stack() if stack is None else stack,
        cause=cause,
    )


def database_error(
    message: str,
    *,
    kind: ErrorKind = ErrorKind.VALIDATION,
    http_status: int | None = None,
    description: str | None = None,
    stack: str | None = None,
    cause: Any = None,
) -> ErrorRecord:
    """Build an operational data-layer error (400 ``DATABASE_ERROR`` by default)."""
    if kind not in DATABASE_KINDS:
        raise ValueError(f"{kind.value} is not a database error kind")
    return _build(kind, message, http_status, description, stack, cause)


def api_error(
    message: str,
    *,
    http_status: int | None = None,
    description: str | None = None,
    stack: str | None = None,
    cause: Any = None,
) -> ErrorRecord:
    """Build an operational business error (500 ``INTERNAL_SERVER_ERROR`` by default)."""
    return _build(ErrorKind.BUSINESS_RULE, message, http_status, description, stack, cause)


def unclassified_error(
    message: str,
    *,
    http_status: int | None = None,
    description: str | None = None,
    stack: str | None = None,
    cause: Any = None,
) -> ErrorRecord:
    """Build a non-operational record for an error nothing recognised."""
    return _build(ErrorKind.UNCLASSIFIED, message, http_status, description, stack, cause)

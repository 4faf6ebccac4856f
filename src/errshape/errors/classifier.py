"""Turn raw errors from any layer into classified ``ErrorRecord`` values."""

import traceback
from typing import Any

from errshape.errors.kinds import INTERNAL_SERVER_ERROR, ErrorKind
from errshape.errors.messages import (
    CAST_TAGS,
    DUPLICATE_TAGS,
    VALIDATION_TAGS,
    error_tag,
    generate_message,
    get_field,
)
from errshape.errors.record import (
    ErrorRecord,
    api_error,
    current_stack,
    database_error,
    unclassified_error,
)

_DATABASE_KINDS = {
    **{tag: ErrorKind.DUPLICATE for tag in DUPLICATE_TAGS},
    **{tag: ErrorKind.CAST_OR_TYPE for tag in CAST_TAGS},
    **{tag: ErrorKind.VALIDATION for tag in VALIDATION_TAGS},
}


def raw_message(raw: Any) -> str:
    """Return the message ``raw`` carries about itself."""
    message = get_field(raw, "message")
    if isinstance(message, str):
        return message
    if isinstance(raw, BaseException):
        return str(raw)
    if message is not None:
        return str(message)
    return "" if get_field(raw, "name") is not None else str(raw)


def raw_stack(raw: Any) -> str:
    """Return the traceback or ``stack`` text of ``raw``, else the caller's stack."""
    if isinstance(raw, BaseException) and raw.__traceback__ is not None:
        return "".join(traceback.format_exception(type(raw), raw, raw.__traceback__))
    stack = get_field(raw, "stack")
    if isinstance(stack, str):
        return stack
    return current_stack()


def _explicit_status(raw: Any) -> int | None:
    status = get_field(raw, "http_status", "httpCode")
    if isinstance(status, int) and not isinstance(status, bool):
        return status
    return None


def _classify(raw: Any) -> ErrorRecord:
    stack = raw_stack(raw)

    kind = _DATABASE_KINDS.get(error_tag(raw) or "")
    if kind is not None:
        message = generate_message(raw)
        if message is None:
            message = raw_message(raw)
        return database_error(message, kind=kind, stack=stack, cause=raw)

    if get_field(raw, "description") == INTERNAL_SERVER_ERROR:
        return api_error(
            raw_message(raw),
            http_status=_explicit_status(raw),
            stack=stack,
            cause=raw,
        )

    description = get_field(raw, "description")
    return unclassified_error(
        raw_message(raw),
        http_status=_explicit_status(raw),
        description=description if isinstance(description, str) else None,
        stack=stack,
        cause=raw,
    )


def classify(raw: Any) -> ErrorRecord:
    """Classify ``raw`` into the error taxonomy.

    Rules, first match wins:

    1. A data-layer tag (duplicate key, cast, validation) becomes an
       operational database record with a generated message.
    2. A raw error whose ``description`` is ``INTERNAL_SERVER_ERROR`` becomes
       an operational business record keeping its own message.
    3. Anything else is passed through as a non-operational record.

    Never raises: inputs that break the rules above still come back as an
    unclassified record.
    """
    try:
        return _classify(raw)
    except Exception:
        try:
            message = repr(raw)
        except Exception:
            message = f"<unprintable {type(raw).__name__}>"
        return unclassified_error(message, stack=current_stack(), cause=raw)

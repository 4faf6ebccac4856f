"""Human-readable messages for errors raised by the data layer.

Each generator reads the shape a document-store driver gives its errors:
cast failures carry ``path`` and ``value``, duplicate-key failures carry the
conflicting ``keyValue`` mapping, validation failures carry an ``errors``
mapping of field to sub-error.
"""

from collections.abc import Mapping
from typing import Any

DUPLICATE_TAGS = frozenset({"MongoError", "MongoServerError", "DuplicateKeyError"})
CAST_TAGS = frozenset({"CastError"})
VALIDATION_TAGS = frozenset({"ValidationError"})
KNOWN_TAGS = DUPLICATE_TAGS | CAST_TAGS | VALIDATION_TAGS

_MISSING = object()


def get_field(raw: Any, *names: str, default: Any = None) -> Any:
    """Return the first of ``names`` present on ``raw`` as a key or attribute."""
    for name in names:
        if isinstance(raw, Mapping):
            value = raw.get(name, _MISSING)
        else:
            value = getattr(raw, name, _MISSING)
        if value is not _MISSING:
            return value
    return default


def error_tag(raw: Any) -> str | None:
    """Return the native error-type name of ``raw``.

    Exceptions are matched by class name anywhere in their MRO, so driver
    subclasses keep their parent's tag. Mappings and plain objects use their
    ``name`` field.
    """
    if isinstance(raw, BaseException):
        for cls in type(raw).__mro__:
            if cls.__name__ in KNOWN_TAGS:
                return cls.__name__
        return type(raw).__name__
    name = get_field(raw, "name")
    return name if isinstance(name, str) else None


def cast_error_message(raw: Any) -> str:
    path = get_field(raw, "path", default=_MISSING)
    value = get_field(raw, "value", default=_MISSING)
    if path is _MISSING or value is _MISSING:
        raise TypeError("cast error carries no path/value")
    return f"Invalid {path}: {value}"


def _duplicate_key_values(raw: Any) -> Mapping[str, Any]:
    key_value = get_field(raw, "keyValue", "key_value")
    if key_value is None:
        # PyMongo puts the server reply under ``details``.
        key_value = get_field(get_field(raw, "details", default={}), "keyValue")
    if not isinstance(key_value, Mapping):
        raise TypeError("duplicate-key error carries no key/value mapping")
    return key_value


def duplicate_error_message(raw: Any) -> str:
    key_value = _duplicate_key_values(raw)
    keys = ",".join(str(key) for key in key_value)
    values = ",".join(str(value) for value in key_value.values())
    return f"Property: {keys} has a duplicate field: {values}. Please use another value."


def _sub_messages(errors: Any) -> list[str]:
    if callable(errors):
        errors = errors()
    items = errors.values() if isinstance(errors, Mapping) else errors
    messages = []
    for item in items:
        message = get_field(item, "message", "msg")
        if message is None:
            raise TypeError(f"sub-error {item!r} has no message")
        messages.append(str(message))
    return messages


def validation_error_message(raw: Any) -> str:
    errors = get_field(raw, "errors")
    if errors is None:
        raise TypeError("validation error carries no sub-errors")
    return "Invalid data input: " + "\n".join(_sub_messages(errors))


def generate_message(raw: Any) -> str | None:
    """Pick the generator for ``raw``'s tag and return its message.

    Returns ``None`` when the tag is unknown or the error lacks the fields
    its generator needs; callers fall back to the raw error's own message.
    """
    tag = error_tag(raw)
    if tag in DUPLICATE_TAGS:
        generator = duplicate_error_message
    elif tag in CAST_TAGS:
        generator = cast_error_message
    elif tag in VALIDATION_TAGS:
        generator = validation_error_message
    else:
        return None
    try:
        return generator(raw)
    except (AttributeError, KeyError, TypeError, ValueError):
        return None

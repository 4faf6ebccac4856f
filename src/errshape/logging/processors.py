"""Structlog processors for errshape services."""

from collections.abc import Mapping
from typing import Any

REDACTED = "***REDACTED***"

# Matched case-insensitively against event keys at any nesting depth.
_SENSITIVE_KEYS = frozenset(
    {
        "password",
        "passwd",
        "token",
        "access_token",
        "refresh_token",
        "api_key",
        "apikey",
        "secret",
        "secret_key",
        "authorization",
        "cookie",
    }
)


def _redact(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {
            key: REDACTED if str(key).lower() in _SENSITIVE_KEYS else _redact(item)
            for key, item in value.items()
        }
    if isinstance(value, list):
        return [_redact(item) for item in value]
    return value


def censor_sensitive_data(logger: Any, method: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Redact secret-looking keys, including inside nested payloads.

    Error records often carry the document that failed to validate, so
    nested mappings are walked as well as the top-level event.
    """
    for key, value in event_dict.items():
        if key.lower() in _SENSITIVE_KEYS:
            event_dict[key] = REDACTED
        elif isinstance(value, (Mapping, list)):
            event_dict[key] = _redact(value)
    return event_dict


def add_service_name(service_name: str) -> Any:
    """Return a processor that binds service=<name> to every event."""

    def processor(logger: Any, method: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("service", service_name)
        return event_dict

    return processor


def add_environment(environment: str) -> Any:
    """Return a processor that binds environment=<mode> to every event."""

    def processor(logger: Any, method: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("environment", environment)
        return event_dict

    return processor

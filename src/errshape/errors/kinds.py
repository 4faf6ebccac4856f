"""Closed error taxonomy and the default metadata attached to each kind."""

from dataclasses import dataclass
from enum import Enum

# Common HTTP status codes used by the taxonomy defaults.
HTTP_BAD_REQUEST = 400
HTTP_INTERNAL_SERVER_ERROR = 500

DATABASE_ERROR = "DATABASE_ERROR"
INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"
UNCLASSIFIED_ERROR = "UNCLASSIFIED_ERROR"


class ErrorKind(str, Enum):
    """Category of a classified error."""

    VALIDATION = "validation"
    DUPLICATE = "duplicate"
    CAST_OR_TYPE = "cast_or_type"
    BUSINESS_RULE = "business_rule"
    UNCLASSIFIED = "unclassified"


@dataclass(frozen=True)
class KindDefaults:
    http_status: int
    description: str
    is_operational: bool


_DEFAULTS: dict[ErrorKind, KindDefaults] = {
    ErrorKind.VALIDATION: KindDefaults(HTTP_BAD_REQUEST, DATABASE_ERROR, True),
    ErrorKind.DUPLICATE: KindDefaults(HTTP_BAD_REQUEST, DATABASE_ERROR, True),
    ErrorKind.CAST_OR_TYPE: KindDefaults(HTTP_BAD_REQUEST, DATABASE_ERROR, True),
    ErrorKind.BUSINESS_RULE: KindDefaults(HTTP_INTERNAL_SERVER_ERROR, INTERNAL_SERVER_ERROR, True),
    ErrorKind.UNCLASSIFIED: KindDefaults(HTTP_INTERNAL_SERVER_ERROR, UNCLASSIFIED_ERROR, False),
}

DATABASE_KINDS = frozenset({ErrorKind.VALIDATION, ErrorKind.DUPLICATE, ErrorKind.CAST_OR_TYPE})


def defaults_for(kind: ErrorKind) -> KindDefaults:
    """Return the default status, description and operational flag for ``kind``."""
    return _DEFAULTS[kind]

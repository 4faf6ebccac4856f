"""Error taxonomy, classification and handling policy."""

from errshape.errors.classifier import classify
from errshape.errors.exceptions import APIError, GeneralError
from errshape.errors.handler import ErrorHandler, ResponseSink, response_status
from errshape.errors.kinds import ErrorKind
from errshape.errors.messages import (
    cast_error_message,
    duplicate_error_message,
    generate_message,
    validation_error_message,
)
from errshape.errors.record import (
    ErrorRecord,
    api_error,
    database_error,
    unclassified_error,
)

__all__ = [
    "APIError",
    "ErrorHandler",
    "ErrorKind",
    "ErrorRecord",
    "GeneralError",
    "ResponseSink",
    "api_error",
    "cast_error_message",
    "classify",
    "database_error",
    "duplicate_error_message",
    "generate_message",
    "response_status",
    "unclassified_error",
    "validation_error_message",
]

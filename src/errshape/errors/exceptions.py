"""Exceptions request handlers raise to report expected failures."""

from errshape.errors.kinds import (
    HTTP_INTERNAL_SERVER_ERROR,
    INTERNAL_SERVER_ERROR,
    UNCLASSIFIED_ERROR,
)


class GeneralError(Exception):
    """Base exception carrying response metadata.

    Attributes:
        message: Human-readable description.
        http_status: HTTP status code to use for the response.
        description: Machine-readable label for clients and logs.
        is_operational: Whether the failure is expected and safe to continue from.
    """

    http_status: int = HTTP_INTERNAL_SERVER_ERROR
    description: str = UNCLASSIFIED_ERROR
    is_operational: bool = False

    def __init__(
        self,
        message: str,
        http_status: int | None = None,
        description: str | None = None,
        is_operational: bool | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if http_status is not None:
            self.http_status = http_status
        if description is not None:
            self.description = description
        if is_operational is not None:
            self.is_operational = is_operational


class APIError(GeneralError):
    """A business rule failed while serving a request."""

    description: str = INTERNAL_SERVER_ERROR
    is_operational: bool = True

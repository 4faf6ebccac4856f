"""errshape - Error classification and response shaping for web services."""

__version__ = "0.1.0"

from errshape.config import LogOptions, RuntimeEnvironment, ServiceSettings
from errshape.errors import (
    APIError,
    ErrorHandler,
    ErrorKind,
    ErrorRecord,
    GeneralError,
    classify,
)
from errshape.lifecycle import ShutdownCoordinator, install_process_hooks
from errshape.logging import ConsoleLogSink, FileLogSink, get_logger, setup_logging
from errshape.middleware import ErrorHandlingMiddleware

__all__ = [
    "APIError",
    "ConsoleLogSink",
    "ErrorHandler",
    "ErrorHandlingMiddleware",
    "ErrorKind",
    "ErrorRecord",
    "FileLogSink",
    "GeneralError",
    "LogOptions",
    "RuntimeEnvironment",
    "ServiceSettings",
    "ShutdownCoordinator",
    "classify",
    "get_logger",
    "install_process_hooks",
    "setup_logging",
]

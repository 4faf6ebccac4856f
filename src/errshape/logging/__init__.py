"""Structured logging and error log sinks for errshape services."""

from errshape.logging.setup import get_logger, setup_logging
from errshape.logging.sinks import (
    ConsoleLogSink,
    FileLogSink,
    LogEntry,
    LogSink,
    build_log_entry,
)

__all__ = [
    "ConsoleLogSink",
    "FileLogSink",
    "LogEntry",
    "LogSink",
    "build_log_entry",
    "get_logger",
    "setup_logging",
]

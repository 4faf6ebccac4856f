"""Destinations for operational error log entries.

A sink's ``write_log`` never raises for I/O failures: it reports them on the
diagnostic logger and hands the error back to the caller instead.
"""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Protocol

import aiofiles
import aiofiles.os
import structlog

from errshape.errors.record import ErrorRecord

logger = structlog.get_logger()

_ENTRY_TEMPLATE = """----------- ERROR LOG START -----------
ERROR_MESSAGE: "{message}"
HTTP_CODE: "{http_status}"
DESCRIPTION: "{description}"
STACK: {stack}
----------- ERROR LOG END -----------
"""


@dataclass(frozen=True)
class LogEntry:
    timestamp: datetime
    description: str
    message: str
    http_status: int
    stack: str

    @property
    def identity(self) -> str:
        """Address of the entry: UTC timestamp plus description."""
        return f"{self.timestamp.strftime('%Y-%m-%dT%H-%M-%S.%fZ')} - {self.description}"

    def render(self) -> str:
        return _ENTRY_TEMPLATE.format(
            message=self.message,
            http_status=self.http_status,
            description=self.description,
            stack=self.stack,
        )


def build_log_entry(record: ErrorRecord, timestamp: datetime) -> LogEntry:
    return LogEntry(
        timestamp=timestamp,
        description=record.description,
        message=record.message,
        http_status=record.http_status,
        stack=record.stack,
    )


class LogSink(Protocol):
    async def write_log(self, entry: LogEntry) -> OSError | None: ...


class FileLogSink:
    """Write each entry to its own file under ``directory``."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def path_for(self, entry: LogEntry) -> Path:
        return self.directory / f"{entry.identity}.log"

    async def write_log(self, entry: LogEntry) -> OSError | None:
        path = self.path_for(entry)
        try:
            await aiofiles.os.makedirs(self.directory, exist_ok=True)
            async with aiofiles.open(path, "a", encoding="utf-8") as f:
                await f.write(entry.render())
        except OSError as exc:
            logger.warning(
                "error_log_write_failed",
                path=str(path),
                description=entry.description,
                error=str(exc),
            )
            return exc
        return None


class ConsoleLogSink:
    """Emit each entry as a structured ``error_logged`` event."""

    def __init__(self, log: structlog.stdlib.BoundLogger | None = None) -> None:
        self._log = log

    async def write_log(self, entry: LogEntry) -> OSError | None:
        log = self._log if self._log is not None else logger
        log.error(
            "error_logged",
            occurred_at=entry.timestamp.isoformat(),
            description=entry.description,
            message=entry.message,
            http_status=entry.http_status,
            stack=entry.stack,
        )
        return None

"""Apply response, logging and process-survival policy to classified errors."""

import asyncio
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any, Protocol

import structlog

from errshape.config.settings import LogOptions, RuntimeEnvironment, ServiceSettings
from errshape.errors.record import ErrorRecord
from errshape.lifecycle.shutdown import Lifecycle
from errshape.logging.sinks import (
    ConsoleLogSink,
    FileLogSink,
    LogEntry,
    LogSink,
    build_log_entry,
)

logger = structlog.get_logger()

EnvironmentProvider = Callable[[], RuntimeEnvironment]


class ResponseSink(Protocol):
    async def send_response(self, status: int, payload: dict[str, Any]) -> None: ...


def response_status(http_status: int) -> str:
    """``"fail"`` for client errors, ``"error"`` for everything else."""
    return "fail" if 400 <= http_status < 500 else "error"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ErrorHandler:
    """Single chokepoint that turns an ``ErrorRecord`` into a response and side effects.

    Operational errors are logged to the configured channels in background
    tasks that the response never waits on. Anything non-operational is a
    programmer error: it is reported on the diagnostic logger and the process
    is asked to shut down.

    Args:
        options: Which log channels to use for operational errors.
        environment: Returns the current runtime mode; read on every call.
        lifecycle: Receives ``request_shutdown`` for programmer errors.
        file_sink: Required when ``options.log_to_file`` is set.
        console_sink: Defaults to a ``ConsoleLogSink``.
        diagnostics: Logger for failures of the handler's own side effects.
        clock: Source of log entry timestamps.
    """

    def __init__(
        self,
        options: LogOptions,
        environment: EnvironmentProvider,
        lifecycle: Lifecycle,
        *,
        file_sink: LogSink | None = None,
        console_sink: LogSink | None = None,
        diagnostics: Any = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if options.log_to_file and file_sink is None:
            raise ValueError("log_to_file is enabled but no file sink was given")
        self.options = options
        self._environment = environment
        self._lifecycle = lifecycle
        self._file_sink = file_sink
        self._console_sink = console_sink if console_sink is not None else ConsoleLogSink()
        self._diagnostics = diagnostics if diagnostics is not None else logger
        self._clock = clock
        self._pending: set[asyncio.Task] = set()

    @classmethod
    def from_settings(cls, settings: ServiceSettings, lifecycle: Lifecycle) -> "ErrorHandler":
        return cls(
            settings.log_options(),
            lambda: settings.environment,
            lifecycle,
            file_sink=FileLogSink(settings.error_log_dir),
        )

    def render(self, record: ErrorRecord) -> tuple[int, dict[str, Any]]:
        """Return the HTTP status and client payload for ``record``.

        Development payloads carry the whole record and its stack. Production
        payloads carry ``status`` and ``message`` only.
        """
        status = response_status(record.http_status)
        if self._environment() == RuntimeEnvironment.DEVELOPMENT:
            payload = {
                "status": status,
                "error": record.to_dict(),
                "message": record.message,
                "stack": record.stack,
            }
        else:
            payload = {"status": status, "message": record.message}
        return record.http_status, payload

    async def handle(self, record: ErrorRecord, sink: ResponseSink) -> None:
        """Send the response once, then dispatch side effects."""
        status, payload = self.render(record)
        try:
            await sink.send_response(status, payload)
        except Exception:
            self._diagnostics.exception(
                "response_emission_failed",
                http_status=status,
                description=record.description,
            )
        await self.dispatch_side_effects(record)

    async def dispatch_side_effects(self, record: ErrorRecord) -> None:
        """Log operational errors, request shutdown for programmer errors.

        Log writes are scheduled as tasks and not awaited here.
        """
        if not record.is_operational:
            self._diagnostics.critical(
                "programmer_error",
                description=record.description,
                message=record.message,
                http_status=record.http_status,
                error_type=type(record.cause).__name__,
                stack=record.stack,
            )
            self._lifecycle.request_shutdown(f"programmer_error:{record.description}")
            return

        if not (self.options.log_to_file or self.options.log_to_console):
            return
        entry = build_log_entry(record, self._clock())
        if self.options.log_to_file:
            self._spawn("file", self._file_sink, entry)
        if self.options.log_to_console:
            self._spawn("console", self._console_sink, entry)

    async def drain(self) -> None:
        """Wait for every log write still in flight."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    @property
    def pending_writes(self) -> int:
        return len(self._pending)

    def _spawn(self, channel: str, sink: LogSink, entry: LogEntry) -> None:
        task = asyncio.get_running_loop().create_task(self._write(channel, sink, entry))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _write(self, channel: str, sink: LogSink, entry: LogEntry) -> None:
        try:
            error = await sink.write_log(entry)
        except Exception as exc:
            self._diagnostics.error(
                "error_log_failed",
                channel=channel,
                identity=entry.identity,
                error=str(exc),
                exc_info=True,
            )
            return
        if error is not None:
            self._diagnostics.warning(
                "error_log_failed",
                channel=channel,
                identity=entry.identity,
                error=str(error),
            )

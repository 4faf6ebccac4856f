"""Graceful process shutdown with a forced-exit deadline."""

import asyncio
import inspect
import os
import threading
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

import structlog

logger = structlog.get_logger()

DEFAULT_GRACE_SECONDS = 10.0

Cleanup = Callable[[], Awaitable[Any] | Any]


class Lifecycle(Protocol):
    def request_shutdown(self, reason: str) -> None: ...


class ShutdownCoordinator:
    """Run registered cleanups, then exit the process.

    Once shutdown is requested a watchdog timer is armed for the grace
    budget. Cleanups (closing the listener, disconnecting storage, draining
    log writes) run in reverse registration order. The process exits as soon
    as they finish, or when the watchdog fires, whichever comes first.

    Args:
        grace_seconds: Budget for the graceful sequence.
        exit_fn: Called with the exit code exactly once. Defaults to ``os._exit``
            so the deadline holds even when other threads are still running.
        exit_code: Code passed to ``exit_fn``.
    """

    def __init__(
        self,
        grace_seconds: float = DEFAULT_GRACE_SECONDS,
        exit_fn: Callable[[int], Any] = os._exit,
        exit_code: int = 1,
    ) -> None:
        self.grace_seconds = grace_seconds
        self.exit_code = exit_code
        self.reason: str | None = None
        self._exit_fn = exit_fn
        self._cleanups: list[tuple[str, Cleanup]] = []
        self._lock = threading.Lock()
        self._requested = False
        self._exited = False
        self._watchdog: threading.Timer | None = None
        self._task: asyncio.Task | None = None

    @property
    def requested(self) -> bool:
        return self._requested

    def add_cleanup(self, name: str, cleanup: Cleanup) -> None:
        """Register a sync or async callable to run during graceful shutdown."""
        self._cleanups.append((name, cleanup))

    def request_shutdown(self, reason: str) -> None:
        """Start shutting down. Later calls are ignored."""
        with self._lock:
            if self._requested:
                logger.info("shutdown_already_requested", reason=reason)
                return
            self._requested = True
            self.reason = reason

        logger.warning("shutdown_initiated", reason=reason, grace_seconds=self.grace_seconds)
        self._watchdog = threading.Timer(self.grace_seconds, self._force_exit)
        self._watchdog.daemon = True
        self._watchdog.start()

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(self._graceful())
        else:
            self._task = loop.create_task(self._graceful())

    async def wait(self) -> None:
        """Wait for the graceful sequence started on the running loop."""
        if self._task is not None:
            await self._task

    async def _graceful(self) -> None:
        for name, cleanup in reversed(self._cleanups):
            try:
                result = cleanup()
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("shutdown_cleanup_failed", cleanup=name)
            else:
                logger.info("shutdown_cleanup_completed", cleanup=name)
        logger.info("shutdown_complete", reason=self.reason)
        self._exit()

    def _force_exit(self) -> None:
        logger.error("forced_shutdown", reason=self.reason, grace_seconds=self.grace_seconds)
        self._exit()

    def _exit(self) -> None:
        with self._lock:
            if self._exited:
                return
            self._exited = True
        if self._watchdog is not None:
            self._watchdog.cancel()
        self._exit_fn(self.exit_code)

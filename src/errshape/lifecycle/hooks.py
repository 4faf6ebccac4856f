"""Route process-level failures and termination signals into a shutdown."""

import asyncio
import signal
import sys
import threading
from collections.abc import Callable
from typing import Any

import structlog

from errshape.lifecycle.shutdown import Lifecycle

logger = structlog.get_logger()

_SIGNALS = (signal.SIGTERM, signal.SIGINT)


def install_process_hooks(
    lifecycle: Lifecycle,
    loop: asyncio.AbstractEventLoop | None = None,
) -> Callable[[], None]:
    """Install hooks that request shutdown on uncaught failures and signals.

    Covers ``sys.excepthook``, ``threading.excepthook`` and, when ``loop`` is
    given, the loop's exception handler (failures in tasks nobody awaited)
    and SIGTERM/SIGINT.

    Returns:
        A callable that puts back the previous hooks.
    """
    previous_excepthook = sys.excepthook
    previous_threading_excepthook = threading.excepthook

    def excepthook(exc_type: type[BaseException], exc: BaseException, tb: Any) -> None:
        logger.critical(
            "uncaught_exception",
            error_type=exc_type.__name__,
            error=str(exc),
            exc_info=(exc_type, exc, tb),
        )
        lifecycle.request_shutdown("uncaught_exception")

    def threading_excepthook(args: threading.ExceptHookArgs) -> None:
        logger.critical(
            "uncaught_thread_exception",
            thread=args.thread.name if args.thread is not None else None,
            error_type=args.exc_type.__name__,
            error=str(args.exc_value),
            exc_info=(args.exc_type, args.exc_value, args.exc_traceback),
        )
        lifecycle.request_shutdown("uncaught_exception")

    sys.excepthook = excepthook
    threading.excepthook = threading_excepthook

    previous_loop_handler = None
    installed_signals: list[signal.Signals] = []
    if loop is not None:
        previous_loop_handler = loop.get_exception_handler()

        def loop_exception_handler(
            loop: asyncio.AbstractEventLoop, context: dict[str, Any]
        ) -> None:
            exc = context.get("exception")
            if exc is None:
                # Warnings such as destroyed pending tasks carry no failure.
                if previous_loop_handler is not None:
                    previous_loop_handler(loop, context)
                else:
                    loop.default_exception_handler(context)
                return
            logger.critical(
                "unhandled_async_failure",
                message=context.get("message"),
                error=str(exc),
                exc_info=exc,
            )
            lifecycle.request_shutdown("unhandled_async_failure")

        loop.set_exception_handler(loop_exception_handler)

        for sig in _SIGNALS:
            try:
                loop.add_signal_handler(sig, _on_signal, lifecycle, sig)
            except (NotImplementedError, RuntimeError, ValueError):
                logger.warning("signal_handler_unavailable", signal=sig.name)
            else:
                installed_signals.append(sig)

    def restore() -> None:
        sys.excepthook = previous_excepthook
        threading.excepthook = previous_threading_excepthook
        if loop is not None:
            loop.set_exception_handler(previous_loop_handler)
            for sig in installed_signals:
                loop.remove_signal_handler(sig)

    return restore


def _on_signal(lifecycle: Lifecycle, sig: signal.Signals) -> None:
    logger.warning("termination_signal_received", signal=sig.name)
    lifecycle.request_shutdown(f"signal:{sig.name}")

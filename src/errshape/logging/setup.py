"""Structlog configuration for errshape services."""

import logging
import sys

import structlog
from structlog.types import Processor

from errshape.logging.processors import (
    add_environment,
    add_service_name,
    censor_sensitive_data,
)

LOG_FORMATS = ("json", "dev")


def _pre_chain(service_name: str, environment: str | None) -> list[Processor]:
    """Processors applied to structlog events and foreign stdlib records alike."""
    bindings: list[Processor] = [add_service_name(service_name)]
    if environment is not None:
        bindings.append(add_environment(environment))
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        *bindings,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        censor_sensitive_data,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(log_format: str) -> Processor:
    if log_format == "dev":
        return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    return structlog.processors.JSONRenderer()


def setup_logging(
    service_name: str,
    log_level: str = "INFO",
    log_format: str = "json",
    environment: str | None = None,
) -> None:
    """Route structlog and stdlib logging through one stderr handler.

    Error events carry their own stacks, so no call-site parameters are
    added. Loggers are not cached on first use; reconfiguring (as tests do)
    takes effect on module-level loggers immediately.

    Raises:
        ValueError: If ``log_format`` is not ``"json"`` or ``"dev"``.
    """
    if log_format not in LOG_FORMATS:
        raise ValueError(f"Invalid log_format '{log_format}'. Must be one of: {', '.join(LOG_FORMATS)}")
    pre_chain = _pre_chain(service_name, environment)

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_format),
            ],
        )
    )
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.getLevelName(log_level.upper()))

    # uvicorn runs with log_config=None; its loggers only need to propagate.
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True


def get_logger(**initial_bindings: object) -> structlog.stdlib.BoundLogger:
    """Return a structlog bound logger."""
    return structlog.get_logger(**initial_bindings)

"""
Demo service.

Wires the classifier and error handler into a FastAPI application with
routes that raise each category of error:
- /databaseerror: data-layer errors from the in-memory record store
- /apierror: a business error raised by the handler itself
- /programmererror: a defect that takes the process down

No business logic belongs here.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Literal

import structlog
import uvicorn
from fastapi import FastAPI

from errshape import __version__
from errshape.config import ServiceSettings, get_settings
from errshape.demo_store import RecordStore
from errshape.errors import APIError, ErrorHandler
from errshape.lifecycle import Lifecycle, ShutdownCoordinator, install_process_hooks
from errshape.logging import setup_logging
from errshape.middleware import ErrorHandlingMiddleware

logger = structlog.get_logger()

_DATABASE_CASES = {
    "cast": {"_id": "invalid_id"},
    "validation": {"some_prop": "invalid_type"},
    "duplicate": {"some_prop": 1},
}


def create_app(
    settings: ServiceSettings | None = None,
    *,
    lifecycle: Lifecycle | None = None,
    store: RecordStore | None = None,
) -> FastAPI:
    """Create the demo application.

    Args:
        settings: Service configuration, defaults to ``get_settings()``.
        lifecycle: Shutdown collaborator. Defaults to a ``ShutdownCoordinator``
            using the configured grace budget. When it is a coordinator,
            cleanups are registered on it and process hooks are installed
            for the lifetime of the app.
        store: Record store the database route writes to.

    Returns:
        A configured FastAPI application.
    """
    settings = settings or get_settings()
    store = store or RecordStore()
    if lifecycle is None:
        lifecycle = ShutdownCoordinator(grace_seconds=settings.shutdown_grace_seconds)
    error_handler = ErrorHandler.from_settings(settings, lifecycle)
    coordinator = lifecycle if isinstance(lifecycle, ShutdownCoordinator) else None
    if coordinator is not None:
        coordinator.add_cleanup("record_store", store.disconnect)
        coordinator.add_cleanup("error_log_drain", error_handler.drain)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        restore_hooks = None
        if coordinator is not None:
            restore_hooks = install_process_hooks(coordinator, asyncio.get_running_loop())
        logger.info("service_started", environment=settings.environment.value)

        yield

        await error_handler.drain()
        if restore_hooks is not None:
            restore_hooks()
        logger.info("service_stopped")

    app = FastAPI(title=settings.service_name, version=__version__, lifespan=lifespan)
    app.state.error_handler = error_handler
    app.state.lifecycle = lifecycle
    app.state.store = store
    app.add_middleware(ErrorHandlingMiddleware, error_handler=error_handler)

    @app.get("/databaseerror")
    async def database_error(case: Literal["cast", "validation", "duplicate"] = "cast") -> dict:
        document = _DATABASE_CASES[case]
        if case == "duplicate":
            store.create(dict(document))
        created = store.create(dict(document))
        return {"created": created}

    @app.get("/apierror")
    async def api_error() -> dict:
        raise APIError("Some message")

    @app.get("/programmererror")
    async def programmer_error() -> dict:
        handler = None
        return handler()

    return app


async def serve(server: uvicorn.Server, coordinator: ShutdownCoordinator) -> None:
    """Run ``server`` until it stops, then let a requested shutdown finish.

    Registers the listener as the first cleanup to run. Closing it waits for
    uvicorn to stop accepting connections and finish in-flight requests, so
    the store and log cleanups only run once no request can still use them.
    """
    serving = asyncio.ensure_future(server.serve())

    async def close_listener() -> None:
        server.should_exit = True
        await asyncio.wait({serving})

    coordinator.add_cleanup("http_listener", close_listener)
    await serving
    await coordinator.wait()


def main() -> None:
    """Run the demo service with uvicorn."""
    settings = get_settings()
    setup_logging(
        settings.service_name,
        log_level=settings.log_level,
        log_format=settings.log_format,
        environment=settings.environment.value,
    )
    coordinator = ShutdownCoordinator(grace_seconds=settings.shutdown_grace_seconds)
    app = create_app(settings, lifecycle=coordinator)
    server = uvicorn.Server(
        uvicorn.Config(
            app,
            host=settings.host,
            port=settings.port,
            log_config=None,
            timeout_graceful_shutdown=int(settings.shutdown_grace_seconds),
        )
    )
    asyncio.run(serve(server, coordinator))


if __name__ == "__main__":
    main()

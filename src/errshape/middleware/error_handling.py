"""
Error Handling Middleware

Classifies every exception escaping a route and answers through the
ErrorHandler policy. Side effects run as a background task once the
response has been sent.
"""

from collections.abc import Callable

import structlog
from fastapi import Request, Response
from starlette.background import BackgroundTask
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse
from starlette.types import ASGIApp

from errshape.errors.classifier import classify
from errshape.errors.handler import ErrorHandler

logger = structlog.get_logger()


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Error handling middleware for FastAPI applications
    """

    def __init__(self, app: ASGIApp, error_handler: ErrorHandler):
        super().__init__(app)
        self.error_handler = error_handler

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            return self._respond(request, exc)

    def _respond(self, request: Request, exc: Exception) -> Response:
        record = classify(exc)
        status, payload = self.error_handler.render(record)
        logger.info(
            "request_error_classified",
            method=request.method,
            path=request.url.path,
            kind=record.kind.value,
            http_status=status,
            is_operational=record.is_operational,
        )
        return JSONResponse(
            status_code=status,
            content=payload,
            background=BackgroundTask(self.error_handler.dispatch_side_effects, record),
        )


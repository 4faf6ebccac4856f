"""FastAPI middleware for errshape services."""

from errshape.middleware.error_handling import ErrorHandlingMiddleware

__all__ = ["ErrorHandlingMiddleware"]

"""
Exception Handlers for the FastAPI Application.

Domain errors from ``founderos_ai.agent_core.errors`` are mapped to HTTP
status codes; anything else goes through the global handler, which logs the
full context and returns a 500 with an error id clients can report.
"""

import traceback
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from founderos_ai.agent_core.errors import (
    DataStoreError,
    FounderOSError,
    QueryError,
    UnauthorizedError,
    UnknownAgentError,
)
from founderos_ai.core.logging_config import get_logger
from founderos_ai.core.monitoring import log_error

logger = get_logger(__name__)


async def unauthorized_handler(request: Request, exc: UnauthorizedError) -> JSONResponse:
    return JSONResponse(
        status_code=401,
        content={"success": False, "error": str(exc) or "Unauthorized"},
        headers={"WWW-Authenticate": "Bearer"},
    )


async def founderos_error_handler(request: Request, exc: FounderOSError) -> JSONResponse:
    """Map domain errors that escaped a route to an HTTP status."""
    if isinstance(exc, UnknownAgentError):
        status_code = 404
    elif isinstance(exc, QueryError):
        status_code = 503
    elif isinstance(exc, DataStoreError):
        status_code = 400
    else:
        status_code = 500
    logger.warning(f"{type(exc).__name__} in {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=status_code, content={"success": False, "error": str(exc)})


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Global exception handler to log detailed error information.

    Args:
        request: The HTTP request that caused the exception
        exc: The exception that was raised

    Returns:
        JSONResponse with error details and error ID
    """
    error_id = str(uuid4())

    logger.error(
        f"Unhandled exception [{error_id}] in {request.method} {request.url.path}: {str(exc)}",
        exc_info=True,
        extra={
            "error_id": error_id,
            "method": request.method,
            "path": request.url.path,
            "query_params": dict(request.query_params),
            "client": request.client.host if request.client else "unknown",
            "error_type": type(exc).__name__,
            "traceback": traceback.format_exc(),
        },
    )
    log_error(type(exc).__name__, str(exc), {"error_id": error_id, "path": request.url.path})

    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "error_id": error_id,
            "error_type": type(exc).__name__,
        },
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """
    Register exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(UnauthorizedError, unauthorized_handler)
    app.add_exception_handler(FounderOSError, founderos_error_handler)
    app.add_exception_handler(Exception, global_exception_handler)
    logger.debug("Exception handlers registered successfully")

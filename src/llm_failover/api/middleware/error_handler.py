"""Error handler middleware for FastAPI application."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from llm_failover.api.models.responses import ErrorResponse

logger = logging.getLogger(__name__)


async def _value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    """Handle ValueError exceptions.

    Returns:
        JSONResponse with 400 status and ErrorResponse body.
    """
    error_message = str(exc) if exc.args else ""
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(detail=error_message).model_dump(),
    )


async def _lookup_error_handler(request: Request, exc: LookupError) -> JSONResponse:
    """Handle LookupError exceptions, including UnknownProviderError.

    Returns:
        JSONResponse with 404 status and ErrorResponse body.
    """
    # Use exc.args to avoid KeyError quote wrapping
    if exc.args and exc.args[0]:
        error_message = str(exc.args[0])
    else:
        error_message = "Not found"
    return JSONResponse(
        status_code=404,
        content=ErrorResponse(detail=error_message).model_dump(),
    )


async def _generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all unhandled exceptions.

    Returns:
        JSONResponse with 500 status and sanitized error message.
    """
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    # Never leak internal error details
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(detail="Internal server error").model_dump(),
    )


def register_error_handlers(app: FastAPI) -> None:
    """Register exception handlers for the FastAPI application.

    Args:
        app: The FastAPI application instance.
    """
    app.add_exception_handler(ValueError, _value_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(LookupError, _lookup_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _generic_exception_handler)

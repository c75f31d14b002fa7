"""Exception handlers for the application."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from spotify_bridge.exceptions import BridgeException, ControlRejectedException
from spotify_bridge.logging_config import get_logger, log_with_context

logger = get_logger(__name__)


async def bridge_exception_handler(request: Request, exc: BridgeException) -> PlainTextResponse:
    """Answer bridge errors in the legacy plain-text shape.

    Policy rejections are expected traffic and log at info; upstream failures
    log as warnings.
    """
    log_with_context(
        logger,
        "info" if isinstance(exc, ControlRejectedException) else "warning",
        "Command rejected" if isinstance(exc, ControlRejectedException) else "Bridge error",
        error_code=exc.code.value,
        error_message=exc.message,
        status_code=exc.status_code,
        method=request.method,
        path=request.url.path,
        event_type="bridge_error",
    )
    return PlainTextResponse(exc.message, status_code=exc.status_code)


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle general exceptions with logging."""
    log_with_context(
        logger,
        "error",
        "Unhandled exception",
        error=str(exc),
        error_type=type(exc).__name__,
        method=request.method,
        path=request.url.path,
        event_type="unhandled_error",
    )
    logger.error("Exception traceback:", exc_info=exc)

    # Don't expose internal error details to clients
    return JSONResponse(
        status_code=500,
        content={"error": {"code": "INTERNAL_ERROR", "message": "Internal server error"}},
    )


def register_error_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the application."""
    app.add_exception_handler(BridgeException, bridge_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

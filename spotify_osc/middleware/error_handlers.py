"""Exception handlers for the OAuth web server.

The setup pages are opened in a browser, so errors are answered as plain
text unless the client explicitly asks for JSON.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from spotify_osc.exceptions import ErrorCode, SpotifyOscException
from spotify_osc.logging_config import get_logger, log_with_context
from spotify_osc.middleware.logging_middleware import redact_sensitive_data

logger = get_logger(__name__)


def _wants_json(request: Request) -> bool:
    return "application/json" in request.headers.get("accept", "")


def error_response(
    request: Request, status_code: int, code: str, message: str, details: dict | None = None
) -> Response:
    """Render an error as JSON or as a one-line text page."""
    if _wants_json(request):
        return JSONResponse(
            status_code=status_code,
            content={"error": {"code": code, "message": message, "details": details or {}}},
        )
    return PlainTextResponse(f"Error: {message}", status_code=status_code)


async def bridge_exception_handler(request: Request, exc: SpotifyOscException) -> Response:
    log_with_context(
        logger,
        "warning",
        "Request failed",
        error_code=exc.code.value,
        error=exc.message,
        status_code=exc.status_code,
        path=request.url.path,
        event_type="http_error",
    )
    return error_response(request, exc.status_code, exc.code.value, exc.message, exc.details)


async def general_exception_handler(request: Request, exc: Exception) -> Response:
    log_with_context(
        logger,
        "error",
        "Unhandled exception",
        error=str(exc),
        error_type=type(exc).__name__,
        url=redact_sensitive_data(str(request.url)),
        event_type="unhandled_error",
    )
    logger.error("Exception traceback:", exc_info=True)

    # Internal details stay in the log
    return error_response(request, 500, ErrorCode.INTERNAL_ERROR.value, "Internal server error")


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SpotifyOscException, bridge_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

"""Application lifespan management."""

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any

import httpx
from fastapi import FastAPI

from spotify_osc import __version__
from spotify_osc.config import ConfigStore, Settings
from spotify_osc.engine.sync_engine import SyncEngine
from spotify_osc.exceptions import SpotifyOscException
from spotify_osc.logging_config import get_logger, log_with_context
from spotify_osc.middleware.logging_middleware import redact_sensitive_data
from spotify_osc.services.osc_service import OscTransport
from spotify_osc.services.session_client import SessionClient

logger = get_logger(__name__)


async def log_request(request: httpx.Request) -> None:
    """Event hook to log requests with redacted sensitive data."""
    log_with_context(
        logger,
        "debug",
        "HTTP Request",
        method=request.method,
        url=redact_sensitive_data(str(request.url)),
        event_type="http_request",
    )


async def log_response(response: httpx.Response) -> None:
    """Event hook to log responses with redacted sensitive data."""
    log_with_context(
        logger,
        "debug",
        "HTTP Response",
        status_code=response.status_code,
        url=redact_sensitive_data(str(response.request.url)),
        event_type="http_response",
    )


def create_http_client() -> httpx.AsyncClient:
    """Create the shared Spotify HTTP client with pooling and granular timeouts."""
    event_hooks: dict[str, list[Callable[..., Any]]] = {
        "request": [log_request],
        "response": [log_response],
    }
    return httpx.AsyncClient(
        timeout=httpx.Timeout(
            connect=5.0,
            read=10.0,
            write=5.0,
            pool=5.0,
        ),
        limits=httpx.Limits(
            max_keepalive_connections=5,
            max_connections=10,
            keepalive_expiry=30.0,
        ),
        follow_redirects=True,
        event_hooks=event_hooks,
    )


async def authenticate_on_startup(session: SessionClient, settings: Settings) -> None:
    """Refresh the stored session, or point the user at the setup page."""
    setup_url = f"{settings.http_base_url}/setup"

    if not session.has_refresh_token:
        log_with_context(
            logger,
            "warning",
            "No Spotify refresh token configured, open the setup page to authenticate",
            setup_url=setup_url,
            event_type="spotify_setup_required",
        )
        return

    log_with_context(logger, "info", "Refreshing Spotify session with refresh token", event_type="spotify_startup_auth")
    try:
        await session.authenticate()
    except SpotifyOscException as e:
        log_with_context(
            logger,
            "warning",
            "Spotify session couldn't be refreshed, please re-authenticate",
            error=e.message,
            setup_url=setup_url,
            event_type="spotify_startup_auth_failed",
        )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifespan - startup and shutdown events.

    A failure to bind the OSC socket is fatal; Spotify authentication
    problems are not, the engine waits for the OAuth setup instead.
    """
    settings: Settings = app.state.settings

    log_with_context(
        logger,
        "info",
        "Starting Spotify OSC bridge",
        version=__version__,
        event_type="app_startup",
    )

    client = create_http_client()
    app.state.http_client = client

    config_store = ConfigStore(settings)
    session = SessionClient(client, config_store)
    app.state.config_store = config_store
    app.state.session_client = session

    await authenticate_on_startup(session, settings)

    transport = OscTransport(settings.osc_listen, settings.osc_send, send_delay=settings.osc_send_delay_seconds)
    engine = SyncEngine(session, transport, settings)
    app.state.sync_engine = engine

    try:
        await engine.start()
    except SpotifyOscException as e:
        log_with_context(
            logger,
            "critical",
            "Failed to start sync engine",
            error=e.message,
            details=e.details,
            event_type="engine_start_failed",
        )
        await client.aclose()
        raise

    try:
        yield
    except Exception as e:
        log_with_context(
            logger,
            "error",
            "Application error during lifespan",
            error=str(e),
            error_type=type(e).__name__,
            event_type="app_error",
        )
        raise
    finally:
        log_with_context(
            logger,
            "info",
            "Shutting down Spotify OSC bridge",
            event_type="app_shutdown",
        )

        await engine.stop()
        await client.aclose()
        log_with_context(
            logger,
            "info",
            "HTTP client closed",
            event_type="http_client_cleanup",
        )

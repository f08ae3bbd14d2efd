"""Application factory for creating and configuring the FastAPI app."""

from fastapi import FastAPI

from spotify_osc import __version__
from spotify_osc.config import Settings, get_settings
from spotify_osc.core.lifespan import lifespan
from spotify_osc.middleware.error_handlers import register_error_handlers
from spotify_osc.routers import auth_router, health_router


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    The web server only hosts the Spotify OAuth setup and health checks; the
    OSC sync engine runs inside its lifespan.

    Args:
        settings: Settings to use (defaults to the singleton)

    Returns:
        Configured FastAPI application instance
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title="Spotify OSC",
        description="""
        Bridges Spotify playback to OSC avatar parameters and back.

        ## Setup
        1. Put your Spotify client id and secret in the .env file
        2. Visit /setup in your browser and approve access
        3. The callback stores the tokens and the bridge starts syncing
        """,
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    register_error_handlers(app)

    app.include_router(auth_router.router, tags=["auth"])
    app.include_router(health_router.router, tags=["health"])

    return app

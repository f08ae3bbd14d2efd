"""FastAPI dependencies for dependency injection."""

from fastapi import Request

from spotify_osc.engine.sync_engine import SyncEngine
from spotify_osc.services.session_client import SessionClient


async def get_session_client(request: Request) -> SessionClient:
    """
    Get the Spotify session client from app state.

    Args:
        request: The FastAPI request object.

    Returns:
        The shared SessionClient instance.

    Raises:
        RuntimeError: If the session client is not initialized.
    """
    session: SessionClient | None = getattr(request.app.state, "session_client", None)

    if session is None:
        raise RuntimeError("Session client not initialized.")

    return session


async def get_sync_engine(request: Request) -> SyncEngine:
    """
    Get the sync engine from app state.

    Args:
        request: The FastAPI request object.

    Returns:
        The running SyncEngine instance.

    Raises:
        RuntimeError: If the engine is not initialized.
    """
    engine: SyncEngine | None = getattr(request.app.state, "sync_engine", None)

    if engine is None:
        raise RuntimeError("Sync engine not initialized.")

    return engine

"""Health endpoints."""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from spotify_osc import __version__
from spotify_osc.dependencies import get_session_client, get_sync_engine
from spotify_osc.engine.sync_engine import SyncEngine
from spotify_osc.models import DetailedHealthResponse, HealthResponse, ReadinessChecks
from spotify_osc.services.session_client import SessionClient

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Basic liveness check."""
    return HealthResponse(version=__version__)


@router.get("/health/ready", response_model=DetailedHealthResponse)
async def readiness_check(
    session: SessionClient = Depends(get_session_client),
    engine: SyncEngine = Depends(get_sync_engine),
):
    """Readiness probe.

    **Returns:**
    - 200: Spotify session is authenticated and the sync loops are running
    - 503: Setup has not been completed or the engine stopped
    """
    checks = ReadinessChecks(
        spotify_auth="ok" if session.is_active else "not_authenticated",
        osc_transport="ok" if engine.transport.is_open else "closed",
        sync_engine="ok" if engine.is_running else "stopped",
    )
    all_healthy = checks.all_ok

    return JSONResponse(
        status_code=200 if all_healthy else 503,
        content=DetailedHealthResponse(
            status="healthy" if all_healthy else "unhealthy",
            version=__version__,
            timestamp=datetime.now(UTC),
            checks=checks,
        ).model_dump(mode="json"),
    )

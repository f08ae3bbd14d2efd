"""Spotify OAuth setup routes."""

import secrets
import time

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse, RedirectResponse

from spotify_osc.dependencies import get_session_client
from spotify_osc.exceptions import ConfigNotInitializedException, SpotifyOscException
from spotify_osc.logging_config import get_logger, log_with_context
from spotify_osc.services import spotify_service
from spotify_osc.services.session_client import SessionClient

router = APIRouter()
logger = get_logger(__name__)

# OAuth state storage with TTL cleanup
# States expire after 10 minutes to prevent memory leaks from abandoned auth flows
_oauth_states: dict[str, float] = {}  # state -> timestamp
OAUTH_STATE_TTL_SECONDS = 600


def _cleanup_expired_oauth_states() -> None:
    """Remove expired OAuth states."""
    current_time = time.time()
    expired_states = [
        state for state, timestamp in _oauth_states.items() if current_time - timestamp > OAUTH_STATE_TTL_SECONDS
    ]
    for state in expired_states:
        _oauth_states.pop(state, None)


@router.get("/setup")
async def setup(session: SessionClient = Depends(get_session_client)):
    """Redirect to the Spotify authorization page."""
    if not session.credentials.is_complete:
        raise ConfigNotInitializedException(
            "Client id, client secret or redirect URI missing. Set them in the .env file and restart."
        )

    _cleanup_expired_oauth_states()

    # Random state for CSRF protection
    state = secrets.token_urlsafe(32)
    _oauth_states[state] = time.time()

    return RedirectResponse(url=spotify_service.build_authorize_url(session.credentials, state), status_code=307)


@router.get("/callback", response_class=PlainTextResponse)
async def callback(
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    session: SessionClient = Depends(get_session_client),
):
    """Handle the Spotify OAuth callback and start the session."""
    if error:
        raise HTTPException(status_code=400, detail=f"Spotify auth failed: {error}")

    if not state or state not in _oauth_states:
        raise HTTPException(status_code=400, detail="Invalid state parameter")
    _oauth_states.pop(state, None)

    if not code:
        raise HTTPException(status_code=400, detail="No authorization code received")

    try:
        await session.init_credentials(code)
    except ConfigNotInitializedException:
        raise
    except SpotifyOscException as e:
        raise HTTPException(status_code=502, detail=f"Token exchange failed: {e.message}") from e

    log_with_context(logger, "info", "Spotify OAuth setup completed", event_type="spotify_setup_complete")
    return "Successfully authenticated, you can close this window."

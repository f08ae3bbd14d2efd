"""Spotify Web API service.

Stateless request functions. Every function takes the shared HTTP client and
the access token to use, returns a typed payload, and raises:

- ``SpotifyUnauthorizedException`` when Spotify answers 401 (token rejected)
- ``SpotifyAPIException`` for any other transport, status or parsing failure

A 204 from the currently-playing and player endpoints is not an error; it
means nothing is playing and is returned as ``None``.
"""

from urllib.parse import urlencode

import httpx
from pydantic import ValidationError

from spotify_osc.exceptions import SpotifyAPIException, SpotifyUnauthorizedException
from spotify_osc.models import Credentials, DeviceSet, PlaybackSnapshot, PlaybackState, TokenResponse

API_BASE_URL = "https://api.spotify.com/v1"
ACCOUNTS_BASE_URL = "https://accounts.spotify.com"
TOKEN_URL = f"{ACCOUNTS_BASE_URL}/api/token"
AUTHORIZE_URL = f"{ACCOUNTS_BASE_URL}/authorize"
REQUEST_TIMEOUT = 10.0

# Spotify OAuth scopes needed for playback control
SPOTIFY_SCOPES = [
    "user-read-currently-playing",
    "user-read-playback-state",
    "user-modify-playback-state",
]


def _auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _check_response(response: httpx.Response, action: str) -> None:
    """Classify a non-success response.

    Raises:
        SpotifyUnauthorizedException: On 401
        SpotifyAPIException: On any other non-2xx status
    """
    if response.status_code == 401:
        raise SpotifyUnauthorizedException(f"Spotify rejected the access token ({action})")
    if response.status_code >= 400:
        raise SpotifyAPIException(
            f"Spotify {action} failed with status {response.status_code}",
            details={"status": response.status_code, "action": action},
        )


def build_authorize_url(credentials: Credentials, state: str) -> str:
    """Build the Spotify authorization URL the user is redirected to during setup."""
    params = {
        "client_id": credentials.client_id,
        "response_type": "code",
        "redirect_uri": credentials.redirect_uri,
        "state": state,
        "scope": " ".join(SPOTIFY_SCOPES),
        "show_dialog": "false",
    }
    return f"{AUTHORIZE_URL}?{urlencode(params)}"


async def get_currently_playing(client: httpx.AsyncClient, token: str) -> PlaybackSnapshot | None:
    """
    Get the currently playing track.

    Args:
        client: Shared HTTP client.
        token: Spotify access token.

    Returns:
        PlaybackSnapshot, or None when nothing is playing (204, or no track
        item such as during ads).
    """
    try:
        response = await client.get(
            f"{API_BASE_URL}/me/player/currently-playing",
            headers=_auth_headers(token),
            timeout=REQUEST_TIMEOUT,
        )
        if response.status_code == 204:
            return None
        _check_response(response, "currently-playing")

        data = response.json()
        item = data.get("item")
        if not item:
            return None

        artist_names = [artist["name"] for artist in item.get("artists", [])]
        # Local files have no id, their uri still identifies the track
        track_id = item.get("id") or item.get("uri") or f"{item['name']} - {', '.join(artist_names)}"

        return PlaybackSnapshot(
            is_playing=data.get("is_playing", False),
            progress_ms=data.get("progress_ms") or 0,
            track_id=track_id,
            track_name=item["name"],
            artist_names=artist_names,
            duration_ms=item.get("duration_ms") or 0,
        )
    except httpx.HTTPError as e:
        raise SpotifyAPIException(f"Spotify currently-playing error: {str(e)}") from e
    except (KeyError, TypeError, ValueError, ValidationError) as e:
        raise SpotifyAPIException(f"Invalid currently-playing response: {str(e)}") from e


async def get_devices(client: httpx.AsyncClient, token: str) -> DeviceSet:
    """
    Get the user's available Spotify Connect devices.

    Args:
        client: Shared HTTP client.
        token: Spotify access token.

    Returns:
        DeviceSet (possibly empty).
    """
    try:
        response = await client.get(
            f"{API_BASE_URL}/me/player/devices",
            headers=_auth_headers(token),
            timeout=REQUEST_TIMEOUT,
        )
        _check_response(response, "devices")
        return DeviceSet.model_validate(response.json())
    except httpx.HTTPError as e:
        raise SpotifyAPIException(f"Spotify devices error: {str(e)}") from e
    except (ValueError, ValidationError) as e:
        raise SpotifyAPIException(f"Invalid devices response: {str(e)}") from e


async def get_playback_state(client: httpx.AsyncClient, token: str) -> PlaybackState | None:
    """
    Get the full player state.

    Args:
        client: Shared HTTP client.
        token: Spotify access token.

    Returns:
        PlaybackState, or None when there is no playback context (204).
    """
    try:
        response = await client.get(
            f"{API_BASE_URL}/me/player",
            headers=_auth_headers(token),
            timeout=REQUEST_TIMEOUT,
        )
        if response.status_code == 204:
            return None
        _check_response(response, "playback state")
        return PlaybackState.model_validate(response.json())
    except httpx.HTTPError as e:
        raise SpotifyAPIException(f"Spotify playback state error: {str(e)}") from e
    except (ValueError, ValidationError) as e:
        raise SpotifyAPIException(f"Invalid playback state response: {str(e)}") from e


async def set_volume(client: httpx.AsyncClient, token: str, device_id: str, volume_percent: int) -> None:
    """Set the volume of a device.

    Args:
        client: Shared HTTP client.
        token: Spotify access token.
        device_id: Target device.
        volume_percent: Volume between 0 and 100.
    """
    try:
        response = await client.put(
            f"{API_BASE_URL}/me/player/volume",
            headers=_auth_headers(token),
            params={"device_id": device_id, "volume_percent": volume_percent},
            timeout=REQUEST_TIMEOUT,
        )
        _check_response(response, "volume")
    except httpx.HTTPError as e:
        raise SpotifyAPIException(f"Spotify volume error: {str(e)}") from e


async def play(client: httpx.AsyncClient, token: str, device_id: str) -> None:
    """Resume playback on a device."""
    try:
        response = await client.put(
            f"{API_BASE_URL}/me/player/play",
            headers=_auth_headers(token),
            params={"device_id": device_id},
            timeout=REQUEST_TIMEOUT,
        )
        _check_response(response, "play")
    except httpx.HTTPError as e:
        raise SpotifyAPIException(f"Spotify play error: {str(e)}") from e


async def pause(client: httpx.AsyncClient, token: str, device_id: str) -> None:
    """Pause playback on a device."""
    try:
        response = await client.put(
            f"{API_BASE_URL}/me/player/pause",
            headers=_auth_headers(token),
            params={"device_id": device_id},
            timeout=REQUEST_TIMEOUT,
        )
        _check_response(response, "pause")
    except httpx.HTTPError as e:
        raise SpotifyAPIException(f"Spotify pause error: {str(e)}") from e


async def next_track(client: httpx.AsyncClient, token: str, device_id: str) -> None:
    """Skip to next track."""
    try:
        response = await client.post(
            f"{API_BASE_URL}/me/player/next",
            headers=_auth_headers(token),
            params={"device_id": device_id},
            timeout=REQUEST_TIMEOUT,
        )
        _check_response(response, "next")
    except httpx.HTTPError as e:
        raise SpotifyAPIException(f"Spotify next error: {str(e)}") from e


async def previous_track(client: httpx.AsyncClient, token: str, device_id: str) -> None:
    """Go to previous track."""
    try:
        response = await client.post(
            f"{API_BASE_URL}/me/player/previous",
            headers=_auth_headers(token),
            params={"device_id": device_id},
            timeout=REQUEST_TIMEOUT,
        )
        _check_response(response, "previous")
    except httpx.HTTPError as e:
        raise SpotifyAPIException(f"Spotify previous error: {str(e)}") from e


async def transfer_playback(client: httpx.AsyncClient, token: str, device_id: str, play: bool) -> None:
    """
    Make a device the active one.

    Args:
        client: Shared HTTP client.
        token: Spotify access token.
        device_id: Device to activate.
        play: True to start playing on the device, False to keep the current state.
    """
    try:
        response = await client.put(
            f"{API_BASE_URL}/me/player",
            headers=_auth_headers(token),
            json={"device_ids": [device_id], "play": play},
            timeout=REQUEST_TIMEOUT,
        )
        _check_response(response, "transfer playback")
    except httpx.HTTPError as e:
        raise SpotifyAPIException(f"Spotify transfer playback error: {str(e)}") from e


async def request_token(client: httpx.AsyncClient, credentials: Credentials, code: str) -> TokenResponse:
    """
    Exchange an authorization code for the first access/refresh token pair.

    Args:
        client: Shared HTTP client.
        credentials: Spotify application credentials (sent as Basic auth).
        code: Authorization code from the OAuth callback.

    Returns:
        TokenResponse including the refresh token.
    """
    try:
        response = await client.post(
            TOKEN_URL,
            auth=(credentials.client_id, credentials.client_secret),
            data={
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": credentials.redirect_uri,
            },
            timeout=REQUEST_TIMEOUT,
        )
        _check_response(response, "token exchange")
        token = TokenResponse.model_validate(response.json())
    except httpx.HTTPError as e:
        raise SpotifyAPIException(f"Spotify token exchange error: {str(e)}") from e
    except (ValueError, ValidationError) as e:
        raise SpotifyAPIException(f"Invalid token exchange response: {str(e)}") from e

    if not token.refresh_token:
        raise SpotifyAPIException("Spotify token exchange returned no refresh token")
    return token


async def refresh_access_token(
    client: httpx.AsyncClient, credentials: Credentials, refresh_token: str
) -> TokenResponse:
    """
    Get a new access token using the refresh token flow.

    Args:
        client: Shared HTTP client.
        credentials: Spotify application credentials (sent as Basic auth).
        refresh_token: Current refresh token.

    Returns:
        TokenResponse; ``refresh_token`` is set only when Spotify rotated it.
    """
    try:
        response = await client.post(
            TOKEN_URL,
            auth=(credentials.client_id, credentials.client_secret),
            data={"grant_type": "refresh_token", "refresh_token": refresh_token},
            timeout=REQUEST_TIMEOUT,
        )
        _check_response(response, "token refresh")
        return TokenResponse.model_validate(response.json())
    except httpx.HTTPError as e:
        raise SpotifyAPIException(f"Spotify auth error: {str(e)}") from e
    except (ValueError, ValidationError) as e:
        raise SpotifyAPIException(f"Invalid Spotify auth response: {str(e)}") from e

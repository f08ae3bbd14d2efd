"""Pytest configuration and shared fixtures."""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from spotify_osc.config import ConfigStore, Settings
from spotify_osc.models import DeviceInfo, DeviceSet
from spotify_osc.services.session_client import SessionClient


def build_response(status_code: int, json_data=None, method: str = "GET", url: str = "https://api.spotify.com/v1/me"):
    """Build a real httpx.Response bound to a request."""
    request = httpx.Request(method, url)
    if json_data is None:
        return httpx.Response(status_code, request=request)
    return httpx.Response(status_code, json=json_data, request=request)


@pytest.fixture
def mock_http_client():
    """Mock httpx.AsyncClient for Spotify API calls."""
    mock_client = AsyncMock(spec=httpx.AsyncClient)
    mock_client.get = AsyncMock()
    mock_client.put = AsyncMock()
    mock_client.post = AsyncMock()
    mock_client.aclose = AsyncMock()
    return mock_client


@pytest.fixture
def test_settings():
    """Settings instance with test values, isolated from any local .env file."""
    return Settings(
        _env_file=None,
        spotify_client_id="test-client-id",
        spotify_client_secret="test-client-secret",
        spotify_redirect_uri="http://127.0.0.1:8080/callback",
        spotify_access_token="stored-access-token",
        spotify_refresh_token="stored-refresh-token",
        osc_listen_address="127.0.0.1:9001",
        osc_send_address="127.0.0.1:9000",
        poll_interval_seconds=5.0,
        volume_check_interval_seconds=0.5,
    )


@pytest.fixture
def env_file(tmp_path):
    """Empty .env file in a temporary directory."""
    path = tmp_path / ".env"
    path.write_text("SPOTIFY_CLIENT_ID=test-client-id\n", encoding="utf-8")
    return path


@pytest.fixture
def config_store(test_settings, env_file):
    """ConfigStore writing to a temporary .env file."""
    return ConfigStore(test_settings, env_path=env_file)


@pytest.fixture
def session_client(mock_http_client, config_store):
    """SessionClient that has not been authenticated yet."""
    return SessionClient(mock_http_client, config_store)


@pytest.fixture
def mock_session():
    """Mock SessionClient with an active session and one active device."""
    session = MagicMock(spec=SessionClient)
    session.is_active = True
    session.has_refresh_token = True
    session.authenticate = AsyncMock()
    session.now_playing = AsyncMock(return_value=None)
    session.get_playback_state = AsyncMock(return_value=None)
    session.get_devices = AsyncMock(
        return_value=DeviceSet(devices=[DeviceInfo(id="device-1", name="Desktop", is_active=True, volume_percent=50)])
    )
    session.set_volume = AsyncMock()
    session.play = AsyncMock()
    session.pause = AsyncMock()
    session.next_track = AsyncMock()
    session.previous_track = AsyncMock()
    session.transfer_playback = AsyncMock()
    return session


@pytest.fixture
def spotify_currently_playing_response():
    """Spotify currently-playing response."""
    return {
        "is_playing": True,
        "progress_ms": 30000,
        "currently_playing_type": "track",
        "item": {
            "id": "track-123",
            "name": "Test Song",
            "duration_ms": 200000,
            "artists": [{"name": "Artist One"}, {"name": "Artist Two"}],
        },
    }


@pytest.fixture
def spotify_devices_response():
    """Spotify devices list response."""
    return {
        "devices": [
            {"id": "device-a", "is_active": False, "name": "Phone", "type": "Smartphone", "volume_percent": 80},
            {"id": "device-b", "is_active": True, "name": "Desktop", "type": "Computer", "volume_percent": 50},
        ]
    }


@pytest.fixture
def spotify_playback_response():
    """Spotify player state response."""
    return {
        "device": {"id": "device-b", "is_active": True, "name": "Desktop", "type": "Computer", "volume_percent": 50},
        "is_playing": True,
        "progress_ms": 60000,
        "shuffle_state": False,
        "repeat_state": "off",
        "item": {"id": "track-123", "name": "Test Song", "duration_ms": 240000},
    }


@pytest.fixture
def make_response():
    """Factory for httpx responses."""
    return build_response

"""Spotify OSC models"""

from spotify_osc.models.base_models import DetailedHealthResponse, HealthResponse, ReadinessChecks
from spotify_osc.models.spotify import (
    Credentials,
    DeviceInfo,
    DeviceSet,
    PlaybackSnapshot,
    PlaybackState,
    SessionSnapshot,
    TokenResponse,
)

__all__ = [
    "Credentials",
    "DetailedHealthResponse",
    "DeviceInfo",
    "DeviceSet",
    "HealthResponse",
    "PlaybackSnapshot",
    "PlaybackState",
    "ReadinessChecks",
    "SessionSnapshot",
    "TokenResponse",
]

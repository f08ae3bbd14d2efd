"""Pydantic models for Spotify Web API payloads."""

from pydantic import BaseModel, ConfigDict, Field


class Credentials(BaseModel):
    """Spotify application credentials."""

    model_config = ConfigDict(frozen=True)

    client_id: str
    client_secret: str
    redirect_uri: str

    @property
    def is_complete(self) -> bool:
        return bool(self.client_id and self.client_secret and self.redirect_uri)


class TokenResponse(BaseModel):
    """Response from the Spotify accounts token endpoint.

    ``refresh_token`` is only present on the initial code exchange and on
    refreshes where Spotify rotates the token.
    """

    access_token: str
    token_type: str = "Bearer"
    expires_in: int = 3600
    refresh_token: str | None = None
    scope: str = ""


class SessionSnapshot(BaseModel):
    """Read-only copy of the session state."""

    model_config = ConfigDict(frozen=True)

    access_token: str
    refresh_token: str
    is_active: bool


class PlaybackSnapshot(BaseModel):
    """Currently playing track, as reported by the currently-playing endpoint."""

    is_playing: bool
    progress_ms: int = 0
    track_id: str
    track_name: str
    artist_names: list[str] = Field(default_factory=list)
    duration_ms: int = 0

    @property
    def seek(self) -> float:
        """Playback position as a fraction of the track length."""
        if self.duration_ms <= 0:
            return 0.0
        return min(max(self.progress_ms / self.duration_ms, 0.0), 1.0)

    @property
    def announcement(self) -> str:
        """Chatbox line for this track."""
        return f"now playing: {', '.join(self.artist_names)} - {self.track_name}"


class DeviceInfo(BaseModel):
    """A Spotify Connect device."""

    id: str | None = None
    name: str = ""
    is_active: bool = False
    volume_percent: int | None = Field(default=None, ge=0, le=100)


class DeviceSet(BaseModel):
    """Devices available to the user."""

    devices: list[DeviceInfo] = Field(default_factory=list)

    def active_device(self) -> DeviceInfo | None:
        """Resolve the device that should receive control commands.

        First device flagged active, else the first device in the list,
        else None.
        """
        for device in self.devices:
            if device.is_active:
                return device
        if self.devices:
            return self.devices[0]
        return None

    def active_device_id(self) -> str | None:
        device = self.active_device()
        return device.id if device else None


class PlaybackState(BaseModel):
    """Full player state from ``GET /me/player``."""

    is_playing: bool = False
    progress_ms: int | None = None
    device: DeviceInfo | None = None

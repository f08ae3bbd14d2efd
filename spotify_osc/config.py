from pathlib import Path

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from spotify_osc.logging_config import get_logger, log_with_context
from spotify_osc.utils.env_updater import get_env_path, update_env_file

logger = get_logger(__name__)

BASE_DIR = Path(__file__).resolve().parent.parent  # spotify-osc/


def parse_host_port(value: str) -> tuple[str, int]:
    """Split a ``host:port`` string into its parts.

    Raises:
        ValueError: If the port is missing or out of range
    """
    host, sep, port = value.strip().rpartition(":")
    if not sep or not host:
        raise ValueError(f"Expected 'host:port', got '{value}'")
    try:
        port_number = int(port)
    except ValueError as e:
        raise ValueError(f"Port must be a number in '{value}'") from e
    if not 1 <= port_number <= 65535:
        raise ValueError(f"Port out of range in '{value}'")
    return host, port_number


class OscAddressMap(BaseModel):
    """OSC addresses for inbound controls and outbound state parameters."""

    # Inbound controls
    play: str = "/avatar/parameters/spotify_play"
    pause: str = "/avatar/parameters/spotify_pause"
    next: str = "/avatar/parameters/spotify_next"
    previous: str = "/avatar/parameters/spotify_previous"
    volume: str = "/avatar/parameters/spotify_volume"

    # Outbound state
    playing: str = "/avatar/parameters/spotify_playing"
    seek: str = "/avatar/parameters/spotify_seek"
    chatbox: str = "/chatbox/input"


class Settings(BaseSettings):
    """Application settings with validation.

    Spotify credentials default to empty so the bridge can start before the
    OAuth setup has been completed; the session client refuses to authenticate
    until they are present.
    """

    # Spotify API
    spotify_client_id: str = Field(default="", description="Spotify OAuth client ID")
    spotify_client_secret: str = Field(default="", description="Spotify OAuth client secret")
    spotify_redirect_uri: str = Field(
        default="http://127.0.0.1:8080/callback",
        pattern=r"^https?://",
        description="Spotify OAuth redirect URI",
    )
    spotify_access_token: str = Field(default="", description="Last access token (populated after OAuth)")
    spotify_refresh_token: str = Field(default="", description="Spotify refresh token (populated after OAuth)")

    # OSC transport
    osc_listen_address: str = Field(default="127.0.0.1:9001", description="UDP address to receive OSC on")
    osc_send_address: str = Field(default="127.0.0.1:9000", description="UDP address of the OSC client")
    osc_address_map: OscAddressMap = Field(default_factory=OscAddressMap)
    osc_send_delay_seconds: float = Field(default=0.02, ge=0, description="Pause between consecutive OSC sends")

    # OAuth web server
    http_host: str = Field(default="127.0.0.1", min_length=1, description="OAuth web server host")
    http_port: int = Field(default=8080, ge=1, le=65535, description="OAuth web server port")

    # Engine timings
    poll_interval_seconds: float = Field(default=5.0, gt=0, description="Playback polling interval")
    volume_check_interval_seconds: float = Field(default=0.5, gt=0, description="Volume debounce check interval")
    activate_device_when_idle: bool = Field(
        default=True,
        description="Use the set-active-device call (with play flag) when nothing is playing",
    )

    log_level: str = Field(default="INFO", description="Root log level")

    model_config = SettingsConfigDict(
        env_file=Path(BASE_DIR / ".env"),
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
        validate_default=True,
    )

    @field_validator("osc_listen_address", "osc_send_address", mode="after")
    @classmethod
    def validate_udp_address(cls, v: str) -> str:
        """Ensure OSC addresses are ``host:port`` strings."""
        parse_host_port(v)
        return v.strip()

    @field_validator("log_level", mode="after")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return v

    @property
    def osc_listen(self) -> tuple[str, int]:
        return parse_host_port(self.osc_listen_address)

    @property
    def osc_send(self) -> tuple[str, int]:
        return parse_host_port(self.osc_send_address)

    @property
    def http_base_url(self) -> str:
        return f"http://{self.http_host}:{self.http_port}"


class ConfigStore:
    """Loads settings and persists refreshed Spotify tokens to the .env file."""

    def __init__(self, settings: Settings | None = None, env_path: Path | None = None):
        self._settings = settings
        self._env_path = env_path or get_env_path()

    def load(self) -> Settings:
        """Return the current settings, reading environment and .env on first use."""
        if self._settings is None:
            self._settings = Settings()
        return self._settings

    def save_tokens(self, access_token: str, refresh_token: str) -> bool:
        """Update tokens in memory and persist them to the .env file.

        The in-memory update always happens; a failed write is logged and
        reported through the return value so callers can keep going.

        Returns:
            True if the tokens were written to disk
        """
        settings = self.load()
        settings.spotify_access_token = access_token
        settings.spotify_refresh_token = refresh_token

        try:
            update_env_file(
                self._env_path,
                {"SPOTIFY_ACCESS_TOKEN": access_token, "SPOTIFY_REFRESH_TOKEN": refresh_token},
            )
        except (OSError, ValueError) as e:
            log_with_context(
                logger,
                "error",
                "Failed to persist Spotify tokens (kept in memory)",
                env_path=str(self._env_path),
                error=str(e),
                event_type="config_save_failed",
            )
            return False

        log_with_context(
            logger,
            "debug",
            "Spotify tokens persisted",
            env_path=str(self._env_path),
            event_type="config_saved",
        )
        return True


# Singleton settings instance (cached for performance)
_settings_instance: Settings | None = None


def get_settings() -> Settings:
    """Get singleton Settings instance.

    Avoids re-reading the .env file for every consumer. Usable directly or
    with FastAPI's Depends().

    Returns:
        Cached Settings instance
    """
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance

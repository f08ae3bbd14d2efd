"""Authenticated Spotify session with retry-after-reauthentication."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

import httpx

from spotify_osc.config import ConfigStore
from spotify_osc.exceptions import (
    ConfigNotInitializedException,
    SpotifyAuthException,
    SpotifyException,
    SpotifyNotAuthenticatedException,
    SpotifyUnauthorizedException,
)
from spotify_osc.logging_config import get_logger, log_with_context
from spotify_osc.models import (
    Credentials,
    DeviceSet,
    PlaybackSnapshot,
    PlaybackState,
    SessionSnapshot,
    TokenResponse,
)
from spotify_osc.services import spotify_service

logger = get_logger(__name__)

T = TypeVar("T")

# One call plus one retry after re-authentication
AUTH_ATTEMPTS = 2


class SessionClient:
    """Owns the Spotify access/refresh tokens and wraps every remote call.

    All token reads and writes happen under a single ``asyncio.Lock``; the
    lock is held for the duration of a wrapped call including its retry, so
    concurrent callers queue instead of racing a refresh-token rotation.
    """

    def __init__(self, client: httpx.AsyncClient, config_store: ConfigStore):
        """Initialize the session from the stored configuration.

        Args:
            client: Shared HTTP client
            config_store: Configuration collaborator used to persist refreshed tokens
        """
        settings = config_store.load()
        self._http = client
        self._config_store = config_store
        self._credentials = Credentials(
            client_id=settings.spotify_client_id,
            client_secret=settings.spotify_client_secret,
            redirect_uri=settings.spotify_redirect_uri,
        )
        self._access_token = settings.spotify_access_token
        self._refresh_token = settings.spotify_refresh_token
        self._is_active = False
        self._lock = asyncio.Lock()

    @property
    def credentials(self) -> Credentials:
        return self._credentials

    @property
    def is_active(self) -> bool:
        return self._is_active

    @property
    def has_refresh_token(self) -> bool:
        return bool(self._refresh_token)

    def snapshot(self) -> SessionSnapshot:
        """Return a read-only copy of the session state."""
        return SessionSnapshot(
            access_token=self._access_token,
            refresh_token=self._refresh_token,
            is_active=self._is_active,
        )

    async def authenticate(self) -> None:
        """Obtain a fresh access token with the stored refresh token.

        Raises:
            ConfigNotInitializedException: Credentials or refresh token missing
            SpotifyAuthException: Spotify rejected the refresh
        """
        async with self._lock:
            await self._authenticate()

    async def init_credentials(self, authorization_code: str) -> None:
        """Exchange an OAuth authorization code for the first token pair.

        Raises:
            ConfigNotInitializedException: Client credentials missing
            SpotifyAuthException: Spotify rejected the code exchange
        """
        async with self._lock:
            if not self._credentials.is_complete:
                raise ConfigNotInitializedException(
                    "Client id, client secret or redirect URI missing in the configuration"
                )

            try:
                token = await spotify_service.request_token(self._http, self._credentials, authorization_code)
            except SpotifyException as e:
                self._is_active = False
                log_with_context(
                    logger,
                    "warning",
                    "Spotify authorization code exchange failed",
                    error=e.message,
                    event_type="spotify_code_exchange_failed",
                )
                raise SpotifyAuthException("Spotify authorization code exchange failed") from e

            self._store_token(token)
            log_with_context(logger, "info", "Spotify session initialized", event_type="spotify_auth_success")

    async def execute(self, operation: Callable[[str], Awaitable[T]]) -> T:
        """Run a remote operation with the current access token.

        If Spotify rejects the token the session re-authenticates once and the
        same operation is retried. Any other failure propagates unchanged.

        Args:
            operation: Coroutine function taking the access token

        Returns:
            Whatever the operation returns

        Raises:
            SpotifyNotAuthenticatedException: Session was never authenticated
            SpotifyAuthException: Re-authentication failed or the retry was rejected too
        """
        async with self._lock:
            if not self._is_active:
                raise SpotifyNotAuthenticatedException()

            for attempt in range(1, AUTH_ATTEMPTS + 1):
                try:
                    return await operation(self._access_token)
                except SpotifyUnauthorizedException:
                    self._is_active = False
                    if attempt == AUTH_ATTEMPTS:
                        break
                    log_with_context(
                        logger,
                        "info",
                        "Spotify access token rejected, re-authenticating",
                        attempt=attempt,
                        event_type="spotify_token_rejected",
                    )
                    await self._authenticate()

            log_with_context(
                logger,
                "warning",
                "Spotify rejected the access token after re-authentication",
                attempts=AUTH_ATTEMPTS,
                event_type="spotify_auth_exhausted",
            )
            raise SpotifyAuthException("Spotify rejected the access token after re-authentication")

    async def now_playing(self) -> PlaybackSnapshot | None:
        return await self.execute(lambda token: spotify_service.get_currently_playing(self._http, token))

    async def get_devices(self) -> DeviceSet:
        return await self.execute(lambda token: spotify_service.get_devices(self._http, token))

    async def get_playback_state(self) -> PlaybackState | None:
        return await self.execute(lambda token: spotify_service.get_playback_state(self._http, token))

    async def set_volume(self, device_id: str, volume_percent: int) -> None:
        await self.execute(lambda token: spotify_service.set_volume(self._http, token, device_id, volume_percent))

    async def play(self, device_id: str) -> None:
        await self.execute(lambda token: spotify_service.play(self._http, token, device_id))

    async def pause(self, device_id: str) -> None:
        await self.execute(lambda token: spotify_service.pause(self._http, token, device_id))

    async def next_track(self, device_id: str) -> None:
        await self.execute(lambda token: spotify_service.next_track(self._http, token, device_id))

    async def previous_track(self, device_id: str) -> None:
        await self.execute(lambda token: spotify_service.previous_track(self._http, token, device_id))

    async def transfer_playback(self, device_id: str, play: bool) -> None:
        await self.execute(lambda token: spotify_service.transfer_playback(self._http, token, device_id, play))

    async def _authenticate(self) -> None:
        # Caller must hold self._lock
        if not self._credentials.client_id or not self._credentials.client_secret or not self._refresh_token:
            raise ConfigNotInitializedException()

        try:
            token = await spotify_service.refresh_access_token(self._http, self._credentials, self._refresh_token)
        except SpotifyException as e:
            self._is_active = False
            log_with_context(
                logger,
                "warning",
                "Spotify session couldn't be refreshed, please re-authenticate",
                error=e.message,
                event_type="spotify_refresh_failed",
            )
            raise SpotifyAuthException("Spotify token refresh failed") from e

        self._store_token(token)
        log_with_context(logger, "info", "Spotify session refreshed", event_type="spotify_refresh_success")

    def _store_token(self, token: TokenResponse) -> None:
        self._access_token = token.access_token
        if token.refresh_token:
            self._refresh_token = token.refresh_token
        self._is_active = True
        self._config_store.save_tokens(self._access_token, self._refresh_token)

"""Custom exceptions for the Spotify OSC bridge with HTTP status codes."""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes for structured error responses."""

    # Generic errors
    BRIDGE_ERROR = "BRIDGE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    # Spotify errors
    SPOTIFY_ERROR = "SPOTIFY_ERROR"
    SPOTIFY_AUTH_ERROR = "SPOTIFY_AUTH_ERROR"
    SPOTIFY_NOT_AUTHENTICATED = "SPOTIFY_NOT_AUTHENTICATED"
    SPOTIFY_UNAUTHORIZED = "SPOTIFY_UNAUTHORIZED"
    SPOTIFY_API_ERROR = "SPOTIFY_API_ERROR"

    # OSC errors
    OSC_ERROR = "OSC_ERROR"
    OSC_TRANSPORT_ERROR = "OSC_TRANSPORT_ERROR"

    # Configuration errors
    CONFIG_ERROR = "CONFIG_ERROR"
    CONFIG_NOT_INITIALIZED = "CONFIG_NOT_INITIALIZED"


class SpotifyOscException(Exception):
    """Base exception for bridge errors with HTTP status code support.

    All custom exceptions should inherit from this class to ensure
    consistent error handling across the application.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.BRIDGE_ERROR,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ):
        """Initialize bridge exception.

        Args:
            message: Human-readable error message
            code: Error code from ErrorCode enum
            status_code: HTTP status code (default 500)
            details: Additional error context/details
        """
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class SpotifyException(SpotifyOscException):
    """Spotify-related errors."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.SPOTIFY_ERROR,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code, status_code, details)


class SpotifyAuthException(SpotifyException):
    """Re-authentication against the Spotify token endpoint was rejected."""

    def __init__(self, message: str = "Spotify authentication failed", details: dict[str, Any] | None = None):
        super().__init__(
            message,
            code=ErrorCode.SPOTIFY_AUTH_ERROR,
            status_code=401,
            details=details,
        )


class SpotifyNotAuthenticatedException(SpotifyException):
    """Session has never been authenticated (or was invalidated)."""

    def __init__(self, message: str = "Not authenticated with Spotify", details: dict[str, Any] | None = None):
        super().__init__(
            message,
            code=ErrorCode.SPOTIFY_NOT_AUTHENTICATED,
            status_code=401,
            details=details,
        )


class SpotifyUnauthorizedException(SpotifyException):
    """Spotify rejected the access token (HTTP 401)."""

    def __init__(self, message: str = "Spotify access token rejected", details: dict[str, Any] | None = None):
        super().__init__(
            message,
            code=ErrorCode.SPOTIFY_UNAUTHORIZED,
            status_code=401,
            details=details,
        )


class SpotifyAPIException(SpotifyException):
    """Spotify API request failed for a reason other than authorization."""

    def __init__(self, message: str, status_code: int = 502, details: dict[str, Any] | None = None):
        super().__init__(
            message,
            code=ErrorCode.SPOTIFY_API_ERROR,
            status_code=status_code,
            details=details,
        )


class OscException(SpotifyOscException):
    """OSC errors."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.OSC_ERROR,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code, status_code, details)


class OscTransportException(OscException):
    """OSC UDP socket could not be opened."""

    def __init__(self, message: str = "Failed to open OSC socket", details: dict[str, Any] | None = None):
        super().__init__(
            message,
            code=ErrorCode.OSC_TRANSPORT_ERROR,
            status_code=503,
            details=details,
        )


class ConfigurationException(SpotifyOscException):
    """Configuration errors."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.CONFIG_ERROR,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code, status_code, details)


class ConfigNotInitializedException(ConfigurationException):
    """Client credentials or refresh token are missing; run the OAuth setup first."""

    def __init__(
        self,
        message: str = "Spotify credentials are not configured, visit /setup first",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message,
            code=ErrorCode.CONFIG_NOT_INITIALIZED,
            status_code=412,
            details=details,
        )

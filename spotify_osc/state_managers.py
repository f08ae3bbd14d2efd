"""State managers for handling application-wide mutable state.

This module provides task-safe state management using asyncio.Lock
for async operations. All state managers inherit from StateManager ABC.
"""

import asyncio
from abc import ABC, abstractmethod
from enum import Enum


class StateManager(ABC):
    """Base class for all state managers.

    State managers provide task-safe access to mutable engine state.
    All subclasses must implement lifecycle methods.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize the state manager (called during app startup)."""
        pass

    @abstractmethod
    async def cleanup(self) -> None:
        """Cleanup resources (called during app shutdown)."""
        pass


class VolumeState(str, Enum):
    """Volume debounce states."""

    IDLE = "idle"
    PENDING = "pending"
    APPLYING = "applying"


class VolumeRequestManager(StateManager):
    """Holds the pending and last applied volume for the debouncer.

    ``pending`` is overwritten by every inbound volume message. ``last_applied``
    only changes after Spotify accepted a volume call, and an equal pending
    value is treated as already applied.
    """

    def __init__(self):
        """Initialize the volume request manager."""
        self._pending: float | None = None
        self._last_applied: float | None = None
        self._state = VolumeState.IDLE
        self._lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Initialize the volume request manager."""
        pass

    async def cleanup(self) -> None:
        """Drop any pending request."""
        async with self._lock:
            self._pending = None
            self._state = VolumeState.IDLE

    async def submit(self, value: float) -> None:
        """Record a new requested volume (last write wins).

        Args:
            value: Requested volume between 0.0 and 1.0
        """
        async with self._lock:
            self._pending = value
            self._state = VolumeState.PENDING

    async def begin_apply(self) -> float | None:
        """Move a pending request to applying.

        Returns:
            The value to apply, or None if there is nothing new to apply
        """
        async with self._lock:
            if self._state != VolumeState.PENDING:
                return None
            if self._pending is None or self._pending == self._last_applied:
                self._state = VolumeState.IDLE
                return None
            self._state = VolumeState.APPLYING
            return self._pending

    async def finish_apply(self, value: float, success: bool) -> None:
        """Finish an apply cycle.

        A request submitted while the call was in flight stays pending.

        Args:
            value: The value that was sent
            success: Whether Spotify accepted the call
        """
        async with self._lock:
            if success:
                self._last_applied = value
            if self._state == VolumeState.APPLYING:
                self._state = VolumeState.IDLE

    async def get_state(self) -> VolumeState:
        async with self._lock:
            return self._state

    async def get_pending(self) -> float | None:
        async with self._lock:
            return self._pending

    async def get_last_applied(self) -> float | None:
        async with self._lock:
            return self._last_applied


class ChatboxStateManager(StateManager):
    """Tracks the last announced track to suppress duplicate chatbox messages."""

    def __init__(self):
        """Initialize the chatbox state manager."""
        self._track_id: str | None = None
        self._lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Initialize the chatbox state manager."""
        pass

    async def cleanup(self) -> None:
        """Forget the last announced track."""
        async with self._lock:
            self._track_id = None

    async def get_track_id(self) -> str | None:
        async with self._lock:
            return self._track_id

    async def has_changed(self, track_id: str) -> bool:
        """Check whether a track differs from the last announced one.

        Args:
            track_id: Spotify track ID

        Returns:
            True if the track should be announced
        """
        async with self._lock:
            return self._track_id != track_id

    async def set_track_id(self, track_id: str) -> None:
        """Record the track that was just announced."""
        async with self._lock:
            self._track_id = track_id

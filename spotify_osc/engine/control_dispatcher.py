"""Maps inbound OSC control messages to Spotify playback actions."""

import asyncio
from collections.abc import Coroutine
from enum import Enum
from typing import Any

from spotify_osc.config import OscAddressMap
from spotify_osc.engine.volume_debouncer import VolumeDebouncer
from spotify_osc.exceptions import SpotifyOscException
from spotify_osc.logging_config import get_logger, log_with_context
from spotify_osc.protocols import OscArgument
from spotify_osc.services.session_client import SessionClient

logger = get_logger(__name__)


class ControlAction(str, Enum):
    """High-level playback actions."""

    PLAY = "play"
    PAUSE = "pause"
    NEXT = "next"
    PREVIOUS = "previous"
    VOLUME = "volume"


class ControlDispatcher:
    """Turns OSC messages into independent action tasks.

    ``dispatch`` never awaits a remote call; each action runs as its own task
    so a slow Spotify response cannot stall the inbound message loop. Play and
    pause check the current playback first and do nothing if it already
    matches.
    """

    def __init__(
        self,
        session: SessionClient,
        volume_debouncer: VolumeDebouncer,
        address_map: OscAddressMap,
        activate_device_when_idle: bool = True,
    ):
        self._session = session
        self._volume = volume_debouncer
        self._addresses = address_map
        self._activate_device_when_idle = activate_device_when_idle
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending_tasks(self) -> int:
        return len(self._tasks)

    def resolve(self, address: str, args: list[OscArgument]) -> tuple[ControlAction, float | None] | None:
        """Map an OSC message to an action.

        Bool controls fire on True; the play address also accepts False as
        pause. The volume address expects a number in [0, 1].

        Returns:
            (action, volume) or None if the message is not a control
        """
        if not args:
            return None
        value = args[0]

        if address == self._addresses.play and isinstance(value, bool):
            return (ControlAction.PLAY if value else ControlAction.PAUSE), None
        if address == self._addresses.pause and value is True:
            return ControlAction.PAUSE, None
        if address == self._addresses.next and value is True:
            return ControlAction.NEXT, None
        if address == self._addresses.previous and value is True:
            return ControlAction.PREVIOUS, None
        if address == self._addresses.volume and isinstance(value, (int, float)) and not isinstance(value, bool):
            return ControlAction.VOLUME, float(value)
        return None

    def dispatch(self, address: str, args: list[OscArgument]) -> asyncio.Task | None:
        """Spawn the action for an inbound message.

        Must be called from within the running event loop.

        Returns:
            The spawned task, or None if the message was ignored
        """
        resolved = self.resolve(address, args)
        if resolved is None:
            logger.debug(f"Ignoring OSC message: {address}")
            return None

        action, volume = resolved

        # Transport actions wait on the session lock during a re-authentication
        if action != ControlAction.VOLUME and not self._session.has_refresh_token:
            log_with_context(
                logger,
                "debug",
                "Dropping control message, Spotify setup not completed",
                address=address,
                event_type="control_unauthenticated",
            )
            return None

        log_with_context(logger, "info", "Received control message", address=address, action=action.value)

        if action == ControlAction.PLAY:
            coro = self.set_playing(True)
        elif action == ControlAction.PAUSE:
            coro = self.set_playing(False)
        elif action == ControlAction.NEXT:
            coro = self.skip_next()
        elif action == ControlAction.PREVIOUS:
            coro = self.skip_previous()
        else:
            coro = self._volume.request(volume)

        task = asyncio.create_task(self._run_action(action, coro))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def set_playing(self, playing: bool) -> None:
        """Start or stop playback unless it is already in that state."""
        playback = await self._session.get_playback_state()

        if playback is None:
            device_id = await self._resolve_device()
            if device_id is None:
                return
            log_with_context(
                logger,
                "info",
                "No playback context, activating device",
                device_id=device_id,
                play=playing,
                event_type="control_activate_device",
            )
            if self._activate_device_when_idle:
                await self._session.transfer_playback(device_id, play=playing)
            elif playing:
                await self._session.play(device_id)
            else:
                await self._session.pause(device_id)
            return

        if playback.is_playing == playing:
            logger.debug(f"Playback already {'playing' if playing else 'paused'}, nothing to do")
            return

        if playback.device is not None and playback.device.id:
            device_id = playback.device.id
        else:
            device_id = await self._resolve_device()
            if device_id is None:
                return

        if playing:
            await self._session.play(device_id)
        else:
            await self._session.pause(device_id)

    async def skip_next(self) -> None:
        device_id = await self._resolve_device()
        if device_id is not None:
            await self._session.next_track(device_id)

    async def skip_previous(self) -> None:
        device_id = await self._resolve_device()
        if device_id is not None:
            await self._session.previous_track(device_id)

    async def cancel_pending(self) -> None:
        """Cancel in-flight action tasks (shutdown only)."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    async def _resolve_device(self) -> str | None:
        devices = await self._session.get_devices()
        device_id = devices.active_device_id()
        if device_id is None:
            log_with_context(logger, "warning", "No Spotify device available", event_type="control_no_device")
        return device_id

    async def _run_action(self, action: ControlAction, coro: Coroutine[Any, Any, None]) -> None:
        try:
            await coro
        except SpotifyOscException as e:
            log_with_context(
                logger,
                "warning",
                "Control action failed",
                action=action.value,
                error=e.message,
                error_code=e.code.value,
                event_type="control_failed",
            )
        except Exception as e:
            log_with_context(
                logger,
                "error",
                "Unexpected error in control action",
                action=action.value,
                error=str(e),
                error_type=type(e).__name__,
                event_type="control_error",
            )
            logger.error("Exception traceback:", exc_info=True)

"""Polls Spotify playback and publishes it as OSC parameters."""

import asyncio

from spotify_osc.config import OscAddressMap
from spotify_osc.exceptions import (
    ConfigNotInitializedException,
    OscException,
    SpotifyNotAuthenticatedException,
    SpotifyOscException,
)
from spotify_osc.logging_config import get_logger, log_with_context
from spotify_osc.models import PlaybackSnapshot
from spotify_osc.protocols import OscSenderProtocol
from spotify_osc.services.session_client import SessionClient
from spotify_osc.state_managers import ChatboxStateManager

logger = get_logger(__name__)


class StateBroadcaster:
    """Publishes playing state, seek position and track changes.

    Each cycle either skips (poll failed), reports nothing playing, or reports
    the current snapshot. The chatbox announcement is only sent when the
    track differs from the last one announced.
    """

    def __init__(
        self,
        session: SessionClient,
        sender: OscSenderProtocol,
        chatbox_manager: ChatboxStateManager,
        address_map: OscAddressMap,
        interval: float = 5.0,
    ):
        self._session = session
        self._sender = sender
        self._chatbox = chatbox_manager
        self._addresses = address_map
        self._interval = interval

    async def tick(self) -> None:
        """Run one poll-and-publish cycle."""
        try:
            snapshot = await self._session.now_playing()
        except SpotifyNotAuthenticatedException:
            await self._recover_session()
            return
        except SpotifyOscException as e:
            log_with_context(
                logger,
                "warning",
                "Failed to fetch current playback, skipping cycle",
                error=e.message,
                error_code=e.code.value,
                event_type="broadcast_poll_failed",
            )
            return

        try:
            await self.publish(snapshot)
        except (OSError, OscException) as e:
            log_with_context(
                logger,
                "warning",
                "Failed to send OSC update",
                error=str(e),
                error_type=type(e).__name__,
                event_type="broadcast_send_failed",
            )

    async def publish(self, snapshot: PlaybackSnapshot | None) -> None:
        """Send the OSC messages for one poll result."""
        if snapshot is None:
            await self._sender.send(self._addresses.playing, [False])
            await self._sender.send(self._addresses.seek, [0.0])
            return

        await self._sender.send(self._addresses.playing, [snapshot.is_playing])
        await self._sender.send(self._addresses.seek, [snapshot.seek])

        if await self._chatbox.has_changed(snapshot.track_id):
            # Text, send immediately, no notification sound
            await self._sender.send(self._addresses.chatbox, [snapshot.announcement, True, False])
            await self._chatbox.set_track_id(snapshot.track_id)
            log_with_context(
                logger,
                "info",
                "Now playing changed",
                track=snapshot.track_name,
                artists=snapshot.artist_names,
                event_type="broadcast_track_changed",
            )

    async def run(self) -> None:
        """Poll and publish until cancelled."""
        while True:
            try:
                await self.tick()
            except Exception as e:
                log_with_context(
                    logger,
                    "error",
                    "Unexpected error in broadcast loop",
                    error=str(e),
                    error_type=type(e).__name__,
                    event_type="broadcast_loop_error",
                )
                logger.error("Exception traceback:", exc_info=True)
            await asyncio.sleep(self._interval)

    async def _recover_session(self) -> None:
        # Nothing to recover with until the OAuth setup has produced a refresh token
        if not self._session.has_refresh_token:
            logger.debug("Spotify not authenticated yet, waiting for setup")
            return

        try:
            await self._session.authenticate()
        except ConfigNotInitializedException:
            logger.debug("Spotify credentials incomplete, waiting for setup")
        except SpotifyOscException as e:
            log_with_context(
                logger,
                "warning",
                "Spotify session recovery failed",
                error=e.message,
                event_type="broadcast_recovery_failed",
            )

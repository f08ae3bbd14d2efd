"""Owns the background loops that keep Spotify and OSC in sync."""

import asyncio

from spotify_osc.config import Settings
from spotify_osc.engine.control_dispatcher import ControlDispatcher
from spotify_osc.engine.state_broadcaster import StateBroadcaster
from spotify_osc.engine.volume_debouncer import VolumeDebouncer
from spotify_osc.logging_config import get_logger, log_with_context
from spotify_osc.services.osc_service import OscTransport
from spotify_osc.services.session_client import SessionClient
from spotify_osc.state_managers import ChatboxStateManager, VolumeRequestManager

logger = get_logger(__name__)


class SyncEngine:
    """Wires the dispatcher, debouncer and broadcaster to one OSC transport.

    ``start`` opens the socket and spawns the volume and broadcast loops;
    ``stop`` cancels everything, including in-flight control actions.
    """

    def __init__(self, session: SessionClient, transport: OscTransport, settings: Settings):
        self.session = session
        self.transport = transport
        self.volume_manager = VolumeRequestManager()
        self.chatbox_manager = ChatboxStateManager()
        self.volume_debouncer = VolumeDebouncer(
            session,
            self.volume_manager,
            check_interval=settings.volume_check_interval_seconds,
        )
        self.dispatcher = ControlDispatcher(
            session,
            self.volume_debouncer,
            settings.osc_address_map,
            activate_device_when_idle=settings.activate_device_when_idle,
        )
        self.broadcaster = StateBroadcaster(
            session,
            transport,
            self.chatbox_manager,
            settings.osc_address_map,
            interval=settings.poll_interval_seconds,
        )
        self._loops: list[asyncio.Task] = []

    @property
    def is_running(self) -> bool:
        return bool(self._loops) and not all(task.done() for task in self._loops)

    async def start(self) -> None:
        """Open the OSC socket and start the loops.

        Raises:
            OscTransportException: If the socket cannot be bound
        """
        await self.volume_manager.initialize()
        await self.chatbox_manager.initialize()

        self.transport.set_handler(self.dispatcher.dispatch)
        await self.transport.start()

        self._loops = [
            asyncio.create_task(self.volume_debouncer.run(), name="volume-debouncer"),
            asyncio.create_task(self.broadcaster.run(), name="state-broadcaster"),
        ]
        log_with_context(logger, "info", "Sync engine started", event_type="engine_started")

    async def stop(self) -> None:
        """Stop all loops and close the socket."""
        for task in self._loops:
            task.cancel()
        await asyncio.gather(*self._loops, return_exceptions=True)
        self._loops = []

        await self.dispatcher.cancel_pending()
        self.transport.close()

        await self.volume_manager.cleanup()
        await self.chatbox_manager.cleanup()
        log_with_context(logger, "info", "Sync engine stopped", event_type="engine_stopped")

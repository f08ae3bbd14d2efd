"""OSC transport over a single UDP socket.

Packet encoding and decoding is handled by python-osc; this module owns the
socket lifecycle, inbound routing to a single handler and spacing between
outbound messages.
"""

import asyncio
from collections.abc import Callable, Sequence

from pythonosc.dispatcher import Dispatcher
from pythonosc.osc_message_builder import OscMessageBuilder
from pythonosc.osc_server import AsyncIOOSCUDPServer

from spotify_osc.exceptions import OscException, OscTransportException
from spotify_osc.logging_config import get_logger, log_with_context
from spotify_osc.protocols import OscArgument

logger = get_logger(__name__)

MessageHandler = Callable[[str, list[OscArgument]], None]


def build_message(address: str, args: Sequence[OscArgument]) -> bytes:
    """Encode an OSC message datagram."""
    builder = OscMessageBuilder(address=address)
    for arg in args:
        builder.add_arg(arg)
    return builder.build().dgram


class OscTransport:
    """Receives and sends OSC messages on one UDP socket.

    Inbound messages are handed to the registered handler from the event loop's
    datagram callback, so the handler must not block. Outbound sends are
    serialized and followed by a short pause because some OSC receivers drop
    packets that arrive back to back.
    """

    def __init__(
        self,
        listen_address: tuple[str, int],
        send_address: tuple[str, int],
        send_delay: float = 0.02,
    ):
        self._listen_address = listen_address
        self._send_address = send_address
        self._send_delay = send_delay
        self._dispatcher = Dispatcher()
        self._dispatcher.set_default_handler(self._on_message)
        self._handler: MessageHandler | None = None
        self._transport: asyncio.DatagramTransport | None = None
        self._send_lock = asyncio.Lock()

    @property
    def is_open(self) -> bool:
        return self._transport is not None and not self._transport.is_closing()

    def set_handler(self, handler: MessageHandler) -> None:
        """Register the callback for inbound messages."""
        self._handler = handler

    async def start(self) -> None:
        """Bind the UDP socket.

        Raises:
            OscTransportException: If the socket cannot be bound
        """
        server = AsyncIOOSCUDPServer(self._listen_address, self._dispatcher, asyncio.get_running_loop())
        try:
            self._transport, _ = await server.create_serve_endpoint()
        except OSError as e:
            raise OscTransportException(
                "Can't open OSC UDP socket, another program may be using the same port",
                details={"address": f"{self._listen_address[0]}:{self._listen_address[1]}", "error": str(e)},
            ) from e

        log_with_context(
            logger,
            "info",
            "OSC UDP socket initialized",
            listen=f"{self._listen_address[0]}:{self._listen_address[1]}",
            send=f"{self._send_address[0]}:{self._send_address[1]}",
            event_type="osc_ready",
        )

    async def send(self, address: str, args: Sequence[OscArgument]) -> None:
        """Send one OSC message to the configured client address.

        Raises:
            OscException: If the transport is not open
        """
        if self._transport is None:
            raise OscException("OSC transport is not started")

        datagram = build_message(address, args)
        async with self._send_lock:
            self._transport.sendto(datagram, self._send_address)
            await asyncio.sleep(self._send_delay)

    def close(self) -> None:
        if self._transport is not None:
            self._transport.close()
            self._transport = None
            log_with_context(logger, "info", "OSC UDP socket closed", event_type="osc_closed")

    def _on_message(self, address: str, *args: OscArgument) -> None:
        logger.debug(f"Received OSC message: {address}")
        if self._handler is not None:
            self._handler(address, list(args))

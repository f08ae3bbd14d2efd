"""Protocol definitions for dependency injection."""

from collections.abc import Sequence
from typing import Protocol

OscArgument = bool | float | int | str


class OscSenderProtocol(Protocol):
    """Protocol for outbound OSC senders.

    Allows the broadcaster to be driven by the UDP transport in production
    and by a recording fake in tests.
    """

    async def send(self, address: str, args: Sequence[OscArgument]) -> None:
        """Send one OSC message.

        Args:
            address: OSC address pattern
            args: Message arguments
        """
        ...

"""Coalesces bursts of volume changes into a single Spotify call."""

import asyncio

from spotify_osc.exceptions import SpotifyOscException
from spotify_osc.logging_config import get_logger, log_with_context
from spotify_osc.services.session_client import SessionClient
from spotify_osc.state_managers import VolumeRequestManager

logger = get_logger(__name__)


def to_volume_percent(value: float) -> int:
    """Convert an OSC volume in [0, 1] to a Spotify percentage."""
    return max(0, min(100, round(value * 100)))


class VolumeDebouncer:
    """Applies the latest requested volume once per check interval.

    Idle -> Pending on every request; each tick moves a pending value that
    differs from the last applied one to Applying, issues exactly one volume
    call against the active device and returns to Idle whatever the outcome.
    Failed calls are not retried here; the next distinct request retries.
    """

    def __init__(
        self,
        session: SessionClient,
        volume_manager: VolumeRequestManager,
        check_interval: float = 0.5,
    ):
        self._session = session
        self._volume = volume_manager
        self._check_interval = check_interval

    async def request(self, value: float) -> None:
        """Record a requested volume in [0, 1]."""
        await self._volume.submit(min(max(float(value), 0.0), 1.0))

    async def tick(self) -> bool:
        """Run one debounce check.

        Returns:
            True if a volume call was issued and accepted
        """
        value = await self._volume.begin_apply()
        if value is None:
            return False

        success = False
        try:
            devices = await self._session.get_devices()
            device_id = devices.active_device_id()
            if device_id is None:
                log_with_context(
                    logger,
                    "warning",
                    "No Spotify device available for volume change",
                    event_type="volume_no_device",
                )
            else:
                percent = to_volume_percent(value)
                await self._session.set_volume(device_id, percent)
                success = True
                log_with_context(
                    logger,
                    "debug",
                    "Volume applied",
                    device_id=device_id,
                    volume_percent=percent,
                    event_type="volume_applied",
                )
        except SpotifyOscException as e:
            log_with_context(
                logger,
                "warning",
                "Failed to apply volume",
                error=e.message,
                error_code=e.code.value,
                event_type="volume_failed",
            )
        finally:
            await self._volume.finish_apply(value, success)

        return success

    async def run(self) -> None:
        """Check for pending volume changes until cancelled."""
        while True:
            try:
                await self.tick()
            except Exception as e:
                log_with_context(
                    logger,
                    "error",
                    "Unexpected error in volume loop",
                    error=str(e),
                    error_type=type(e).__name__,
                    event_type="volume_loop_error",
                )
                logger.error("Exception traceback:", exc_info=True)
            await asyncio.sleep(self._check_interval)

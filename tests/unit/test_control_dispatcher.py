"""Unit tests for the control dispatcher."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from spotify_osc.config import OscAddressMap
from spotify_osc.engine.control_dispatcher import ControlAction, ControlDispatcher
from spotify_osc.engine.volume_debouncer import VolumeDebouncer
from spotify_osc.exceptions import SpotifyAPIException, SpotifyUnauthorizedException
from spotify_osc.models import DeviceInfo, DeviceSet, PlaybackState, TokenResponse
from spotify_osc.state_managers import VolumeRequestManager

ADDRESSES = OscAddressMap()
REFRESH_PATH = "spotify_osc.services.spotify_service.refresh_access_token"


@pytest.fixture
def mock_debouncer():
    debouncer = MagicMock(spec=VolumeDebouncer)
    debouncer.request = AsyncMock()
    return debouncer


@pytest.fixture
def dispatcher(mock_session, mock_debouncer):
    return ControlDispatcher(mock_session, mock_debouncer, ADDRESSES)


def playback(is_playing: bool, device_id: str | None = "playback-device") -> PlaybackState:
    device = DeviceInfo(id=device_id, is_active=True) if device_id else None
    return PlaybackState(is_playing=is_playing, progress_ms=1000, device=device)


class TestResolve:
    """Tests for mapping OSC messages to actions."""

    def test_play_true_is_play(self, dispatcher):
        assert dispatcher.resolve(ADDRESSES.play, [True]) == (ControlAction.PLAY, None)

    def test_play_false_is_pause(self, dispatcher):
        assert dispatcher.resolve(ADDRESSES.play, [False]) == (ControlAction.PAUSE, None)

    def test_pause_true(self, dispatcher):
        assert dispatcher.resolve(ADDRESSES.pause, [True]) == (ControlAction.PAUSE, None)

    def test_button_release_ignored(self, dispatcher):
        assert dispatcher.resolve(ADDRESSES.next, [False]) is None
        assert dispatcher.resolve(ADDRESSES.previous, [False]) is None
        assert dispatcher.resolve(ADDRESSES.pause, [False]) is None

    def test_skip_buttons(self, dispatcher):
        assert dispatcher.resolve(ADDRESSES.next, [True]) == (ControlAction.NEXT, None)
        assert dispatcher.resolve(ADDRESSES.previous, [True]) == (ControlAction.PREVIOUS, None)

    def test_volume_float(self, dispatcher):
        assert dispatcher.resolve(ADDRESSES.volume, [0.42]) == (ControlAction.VOLUME, 0.42)

    def test_volume_rejects_bool(self, dispatcher):
        assert dispatcher.resolve(ADDRESSES.volume, [True]) is None

    def test_unmapped_address(self, dispatcher):
        assert dispatcher.resolve("/avatar/parameters/VelocityX", [0.3]) is None

    def test_no_arguments(self, dispatcher):
        assert dispatcher.resolve(ADDRESSES.play, []) is None


@pytest.mark.asyncio
async def test_play_when_already_playing_is_noop(dispatcher, mock_session):
    """Test play issues no transport call if already playing."""
    mock_session.get_playback_state.return_value = playback(is_playing=True)

    await dispatcher.set_playing(True)

    mock_session.play.assert_not_awaited()
    mock_session.pause.assert_not_awaited()
    mock_session.transfer_playback.assert_not_awaited()


@pytest.mark.asyncio
async def test_pause_when_already_paused_is_noop(dispatcher, mock_session):
    """Test pause issues no transport call if already paused."""
    mock_session.get_playback_state.return_value = playback(is_playing=False)

    await dispatcher.set_playing(False)

    mock_session.pause.assert_not_awaited()
    mock_session.play.assert_not_awaited()


@pytest.mark.asyncio
async def test_play_when_paused_uses_playback_device(dispatcher, mock_session):
    """Test play targets the device from the playback context."""
    mock_session.get_playback_state.return_value = playback(is_playing=False)

    await dispatcher.set_playing(True)

    mock_session.play.assert_awaited_once_with("playback-device")
    mock_session.get_devices.assert_not_awaited()


@pytest.mark.asyncio
async def test_pause_when_playing(dispatcher, mock_session):
    mock_session.get_playback_state.return_value = playback(is_playing=True)

    await dispatcher.set_playing(False)

    mock_session.pause.assert_awaited_once_with("playback-device")


@pytest.mark.asyncio
async def test_play_without_playback_device_resolves_active(dispatcher, mock_session):
    """Test a playback context without a device id falls back to the device list."""
    mock_session.get_playback_state.return_value = playback(is_playing=False, device_id=None)

    await dispatcher.set_playing(True)

    mock_session.play.assert_awaited_once_with("device-1")


@pytest.mark.asyncio
async def test_play_without_playback_activates_device(dispatcher, mock_session):
    """Test no playback context activates the resolved device with the play flag."""
    mock_session.get_playback_state.return_value = None

    await dispatcher.set_playing(True)

    mock_session.transfer_playback.assert_awaited_once_with("device-1", play=True)
    mock_session.play.assert_not_awaited()


@pytest.mark.asyncio
async def test_pause_without_playback_activates_device(dispatcher, mock_session):
    mock_session.get_playback_state.return_value = None

    await dispatcher.set_playing(False)

    mock_session.transfer_playback.assert_awaited_once_with("device-1", play=False)


@pytest.mark.asyncio
async def test_play_without_playback_transport_mode(mock_session, mock_debouncer):
    """Test idle activation can be switched to a plain transport command."""
    dispatcher = ControlDispatcher(mock_session, mock_debouncer, ADDRESSES, activate_device_when_idle=False)
    mock_session.get_playback_state.return_value = None

    await dispatcher.set_playing(True)

    mock_session.play.assert_awaited_once_with("device-1")
    mock_session.transfer_playback.assert_not_awaited()


@pytest.mark.asyncio
async def test_play_without_playback_or_devices(dispatcher, mock_session):
    """Test nothing is sent when there is no device at all."""
    mock_session.get_playback_state.return_value = None
    mock_session.get_devices.return_value = DeviceSet(devices=[])

    await dispatcher.set_playing(True)

    mock_session.transfer_playback.assert_not_awaited()
    mock_session.play.assert_not_awaited()


@pytest.mark.asyncio
async def test_skip_next_is_unconditional(dispatcher, mock_session):
    """Test skip resolves the active device without checking playback."""
    mock_session.get_devices.return_value = DeviceSet(
        devices=[DeviceInfo(id="a", is_active=False), DeviceInfo(id="b", is_active=True)]
    )

    await dispatcher.skip_next()

    mock_session.get_playback_state.assert_not_awaited()
    mock_session.next_track.assert_awaited_once_with("b")


@pytest.mark.asyncio
async def test_skip_previous(dispatcher, mock_session):
    await dispatcher.skip_previous()

    mock_session.previous_track.assert_awaited_once_with("device-1")


@pytest.mark.asyncio
async def test_dispatch_spawns_task(dispatcher, mock_session):
    """Test dispatch returns immediately with a task that runs the action."""
    mock_session.get_playback_state.return_value = playback(is_playing=False)

    task = dispatcher.dispatch(ADDRESSES.play, [True])

    assert isinstance(task, asyncio.Task)
    await task
    mock_session.play.assert_awaited_once_with("playback-device")
    assert dispatcher.pending_tasks == 0


@pytest.mark.asyncio
async def test_dispatch_volume_goes_to_debouncer(dispatcher, mock_debouncer, mock_session):
    """Test volume messages are handed to the debouncer, not sent directly."""
    task = dispatcher.dispatch(ADDRESSES.volume, [0.65])
    await task

    mock_debouncer.request.assert_awaited_once_with(0.65)
    mock_session.set_volume.assert_not_awaited()


@pytest.mark.asyncio
async def test_dispatch_ignores_unmapped(dispatcher):
    assert dispatcher.dispatch("/avatar/parameters/Grounded", [True]) is None


@pytest.mark.asyncio
async def test_transport_controls_dropped_before_setup(dispatcher, mock_session, mock_debouncer):
    """Test play and skip are dropped until the OAuth setup stored a refresh token."""
    mock_session.is_active = False
    mock_session.has_refresh_token = False

    assert dispatcher.dispatch(ADDRESSES.next, [True]) is None
    mock_session.get_devices.assert_not_awaited()

    task = dispatcher.dispatch(ADDRESSES.volume, [0.4])
    await task
    mock_debouncer.request.assert_awaited_once_with(0.4)


@pytest.mark.asyncio
async def test_dispatch_during_reauthentication(session_client):
    """Test controls arriving while the session refreshes its token wait for it."""
    refreshed = TokenResponse(access_token="fresh-access-token", expires_in=3600)
    with patch(REFRESH_PATH, new=AsyncMock(return_value=refreshed)):
        await session_client.authenticate()

    volume_manager = VolumeRequestManager()
    dispatcher = ControlDispatcher(session_client, VolumeDebouncer(session_client, volume_manager), ADDRESSES)

    refresh_started = asyncio.Event()
    release_refresh = asyncio.Event()

    async def slow_refresh(*args):
        refresh_started.set()
        await release_refresh.wait()
        return refreshed

    attempts = []

    async def rejected_once(token):
        attempts.append(token)
        if len(attempts) == 1:
            raise SpotifyUnauthorizedException()

    with patch(REFRESH_PATH, new=AsyncMock(side_effect=slow_refresh)):
        poll = asyncio.create_task(session_client.execute(rejected_once))
        await refresh_started.wait()
        assert session_client.is_active is False

        volume_task = dispatcher.dispatch(ADDRESSES.volume, [0.7])
        next_task = dispatcher.dispatch(ADDRESSES.next, [True])
        assert volume_task is not None
        assert next_task is not None

        await volume_task
        assert await volume_manager.get_pending() == 0.7
        assert not next_task.done()

        with (
            patch(
                "spotify_osc.services.spotify_service.get_devices",
                new=AsyncMock(return_value=DeviceSet(devices=[DeviceInfo(id="device-1", is_active=True)])),
            ),
            patch("spotify_osc.services.spotify_service.next_track", new=AsyncMock()) as mock_next,
        ):
            release_refresh.set()
            await poll
            await next_task

    assert session_client.is_active is True
    mock_next.assert_awaited_once()
    assert mock_next.call_args[0][1:] == ("fresh-access-token", "device-1")


@pytest.mark.asyncio
async def test_dispatch_swallows_action_failures(dispatcher, mock_session):
    """Test a failing action is logged and does not raise from the task."""
    mock_session.get_devices.side_effect = SpotifyAPIException("Service unavailable", status_code=503)

    task = dispatcher.dispatch(ADDRESSES.next, [True])
    await task

    assert task.exception() is None


@pytest.mark.asyncio
async def test_dispatch_does_not_block_on_slow_actions(dispatcher, mock_session):
    """Test a slow remote call does not delay later dispatches."""
    release = asyncio.Event()

    async def slow_devices():
        await release.wait()
        return DeviceSet(devices=[DeviceInfo(id="device-1", is_active=True)])

    mock_session.get_devices.side_effect = slow_devices

    first = dispatcher.dispatch(ADDRESSES.next, [True])
    second = dispatcher.dispatch(ADDRESSES.volume, [0.3])
    await second

    assert not first.done()
    assert dispatcher.pending_tasks == 1

    release.set()
    await first
    mock_session.next_track.assert_awaited_once_with("device-1")


@pytest.mark.asyncio
async def test_cancel_pending(dispatcher, mock_session):
    """Test shutdown cancels in-flight actions."""
    async def never_returns():
        await asyncio.sleep(10)

    mock_session.get_devices.side_effect = never_returns

    task = dispatcher.dispatch(ADDRESSES.next, [True])
    await asyncio.sleep(0)
    await dispatcher.cancel_pending()

    assert task.cancelled()

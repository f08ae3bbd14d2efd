"""Tests for dependency injection functions."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from spotify_osc.dependencies import get_session_client, get_sync_engine
from spotify_osc.engine.sync_engine import SyncEngine
from spotify_osc.services.session_client import SessionClient


def make_request(**state):
    request = MagicMock()
    request.app.state = SimpleNamespace(**state)
    return request


class TestDependencies:
    @pytest.mark.asyncio
    async def test_get_session_client(self):
        """Test getting the session client from app state."""
        session = MagicMock(spec=SessionClient)

        assert await get_session_client(make_request(session_client=session)) is session

    @pytest.mark.asyncio
    async def test_get_sync_engine(self):
        engine = MagicMock(spec=SyncEngine)

        assert await get_sync_engine(make_request(sync_engine=engine)) is engine

    @pytest.mark.asyncio
    async def test_missing_session_client(self):
        """Test a clear error when the lifespan has not run."""
        with pytest.raises(RuntimeError, match="Session client not initialized"):
            await get_session_client(make_request())

    @pytest.mark.asyncio
    async def test_missing_sync_engine(self):
        with pytest.raises(RuntimeError, match="Sync engine not initialized"):
            await get_sync_engine(make_request())

"""Pydantic models for the health endpoints."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Liveness response."""

    status: Literal["ok"] = "ok"
    version: str


class ReadinessChecks(BaseModel):
    """Per-component readiness of the bridge."""

    spotify_auth: Literal["ok", "not_authenticated"]
    osc_transport: Literal["ok", "closed"]
    sync_engine: Literal["ok", "stopped"]

    @property
    def all_ok(self) -> bool:
        return all(value == "ok" for value in self.model_dump().values())


class DetailedHealthResponse(BaseModel):
    status: Literal["healthy", "unhealthy"] = Field(
        ..., description="healthy once Spotify is authenticated and syncing"
    )
    version: str
    timestamp: datetime
    checks: ReadinessChecks

"""Health and operational response schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel


class FlowInfo(BaseModel):
    """A registered flow."""

    name: str
    streaming: bool


class ProviderInfo(BaseModel):
    """A registered model provider and the result of its health check."""

    name: str
    models: list[str]
    healthy: bool
    latency_ms: float


class HealthResponse(BaseModel):
    """Health check response."""

    status: Literal["healthy", "degraded"]
    version: str
    timestamp: datetime
    uptime_seconds: float
    default_model: str | None = None
    flows: list[FlowInfo]
    providers: list[ProviderInfo]

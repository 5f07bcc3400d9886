"""
Health check endpoint.

Reports the registered flows and checks every model provider. The service
is degraded when the flow runtime failed to initialize or any provider
fails its check.
"""

import logging
import time
from datetime import UTC, datetime

from fastapi import APIRouter, Request

from barista import __version__
from barista.api.schemas.health import FlowInfo, HealthResponse, ProviderInfo
from barista.providers.base import LLMProvider

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Operations"])


async def _check_provider(provider: LLMProvider) -> ProviderInfo:
    start = time.perf_counter()
    try:
        healthy = await provider.health_check()
    except Exception as e:
        logger.warning("Health check failed for provider %s: %s", provider.name, e)
        healthy = False
    latency_ms = round((time.perf_counter() - start) * 1000, 2)
    return ProviderInfo(name=provider.name, models=provider.models, healthy=healthy, latency_ms=latency_ms)


@router.get("/health", summary="System health check")
async def health_check(request: Request) -> HealthResponse:
    runtime = getattr(request.app.state, "runtime", None)
    flows: list[FlowInfo] = []
    providers: list[ProviderInfo] = []
    default_model = None

    if runtime is not None:
        flows = [FlowInfo(name=f.name, streaming=f.streaming) for f in runtime.list_flows()]
        for provider in runtime.registry.list_providers():
            providers.append(await _check_provider(provider))
        default_model = runtime.default_model

    healthy = runtime is not None and all(p.healthy for p in providers)
    start_time = getattr(request.app.state, "start_time", time.time())

    return HealthResponse(
        status="healthy" if healthy else "degraded",
        version=__version__,
        timestamp=datetime.now(UTC),
        uptime_seconds=round(time.time() - start_time, 1),
        default_model=default_model,
        flows=flows,
        providers=providers,
    )

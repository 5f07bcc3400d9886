"""
Barista: HTTP headers propagated into prompt flows.

Application entry point. Builds the flow runtime (model providers,
prompts and flows), configures middleware, registers routes and starts
the HTTP listener.
"""

import logging
import sys
import time
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from prometheus_client import make_asgi_app

from barista import __version__
from barista.ai.runtime import FlowRuntime
from barista.api.routes.coffee import router as coffee_router
from barista.api.routes.flows import router as flows_router
from barista.api.routes.health import router as health_router
from barista.core.config import Settings, get_settings
from barista.core.logging_config import configure_logging
from barista.domain.models import ModelParameters
from barista.flows.coffee import register_coffee_flows
from barista.middleware.trace import TraceMiddleware
from barista.providers.registry import build_registry, effective_model

logger = logging.getLogger(__name__)


def build_runtime(settings: Settings) -> FlowRuntime:
    """Create the provider registry and define every prompt and flow.

    Raises on any misconfiguration; callers treat that as fatal.
    """
    registry = build_registry(settings)
    runtime = FlowRuntime(
        registry,
        default_model=effective_model(settings, registry),
        default_parameters=ModelParameters(
            temperature=settings.generation_temperature,
            max_tokens=settings.generation_max_tokens,
        ),
    )
    register_coffee_flows(runtime, require_headers=settings.auth.require_headers)
    return runtime


def create_app(settings: Settings | None = None, runtime: FlowRuntime | None = None) -> FastAPI:
    """Build the FastAPI application.

    A prebuilt ``runtime`` is used as is; otherwise one is built from
    ``settings`` during startup.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler for startup and shutdown."""
        app.state.start_time = time.time()
        if getattr(app.state, "runtime", None) is None:
            app.state.runtime = build_runtime(settings)
        logger.info(
            "Barista started (version %s, %d flow(s), model %s)",
            __version__,
            len(app.state.runtime.list_flows()),
            app.state.runtime.default_model,
        )
        yield
        logger.info("Barista shutdown complete")

    app = FastAPI(
        title="Barista Flows",
        description=(
            "Sample service that passes HTTP request headers through an explicit "
            "request context into prompt flows, gated by a bearer Authorization header."
        ),
        version=__version__,
        openapi_tags=[
            {"name": "Flows", "description": "Coffee shop prompt flows."},
            {"name": "Operations", "description": "Health checks and metrics."},
        ],
        lifespan=lifespan,
    )
    app.state.runtime = runtime

    app.add_middleware(TraceMiddleware)

    app.include_router(coffee_router)
    app.include_router(flows_router)
    app.include_router(health_router)

    app.mount("/prometheus", make_asgi_app())
    return app


def run() -> None:
    """Start the HTTP listener. Any startup error exits the process."""
    settings = get_settings()
    configure_logging(settings.log_level)

    try:
        runtime = build_runtime(settings)
    except Exception:
        logger.exception("Failed to initialize flow runtime")
        sys.exit(1)

    app = create_app(settings, runtime=runtime)
    try:
        uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
    except Exception:
        logger.exception("Server failed")
        sys.exit(1)


if __name__ == "__main__":
    run()

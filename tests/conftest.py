"""Pytest configuration for Barista tests."""

from collections.abc import AsyncIterator

import pytest

from barista.ai.runtime import FlowRuntime
from barista.domain.models import (
    ChatRequest,
    ChatResponse,
    FinishReason,
    Message,
    Role,
)
from barista.flows.coffee import CoffeeFlows, register_coffee_flows
from barista.providers.base import LLMProvider
from barista.providers.registry import ProviderRegistry


class ScriptedProvider(LLMProvider):
    """In-memory provider that replays scripted replies and records requests."""

    def __init__(self, replies: list[str] | None = None, error: Exception | None = None):
        self.replies = list(replies or [])
        self.error = error
        self.healthy = True
        self.requests: list[ChatRequest] = []

    @property
    def name(self) -> str:
        return "script"

    @property
    def models(self) -> list[str]:
        return ["barista"]

    def _next_reply(self, request: ChatRequest) -> str:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.replies:
            return self.replies.pop(0)
        return f"reply {len(self.requests)}"

    async def health_check(self) -> bool:
        return self.healthy

    async def complete(self, request: ChatRequest) -> ChatResponse:
        return ChatResponse(
            request_id=request.id,
            message=Message(role=Role.MODEL, content=self._next_reply(request)),
            model=request.model,
            provider=self.name,
            finish_reason=FinishReason.STOP,
        )

    async def stream(self, request: ChatRequest) -> AsyncIterator[str]:
        reply = self._next_reply(request)
        for word in reply.split(" "):
            yield word + " "


@pytest.fixture
def anyio_backend():
    """Configure anyio to use asyncio backend."""
    return "asyncio"


@pytest.fixture
def provider() -> ScriptedProvider:
    return ScriptedProvider(replies=["Hi Sam, try a flat white.", "Welcome back, Sam!"])


@pytest.fixture
def runtime(provider: ScriptedProvider) -> FlowRuntime:
    registry = ProviderRegistry()
    registry.register(provider)
    return FlowRuntime(registry, default_model="script/barista")


@pytest.fixture
def coffee(runtime: FlowRuntime) -> CoffeeFlows:
    return register_coffee_flows(runtime)

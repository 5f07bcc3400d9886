"""Offline provider used when no model API key is configured."""

import asyncio
import re
from collections.abc import AsyncIterator

from barista.domain.models import (
    ChatRequest,
    ChatResponse,
    FinishReason,
    Message,
    Role,
    TokenUsage,
)
from barista.providers.base import LLMProvider


class EchoProvider(LLMProvider):
    """Replies with the last user message. Streams it word by word."""

    def __init__(self, chunk_delay: float = 0.0):
        self._chunk_delay = chunk_delay

    @property
    def name(self) -> str:
        return "echo"

    @property
    def models(self) -> list[str]:
        return ["barista"]

    def _reply(self, request: ChatRequest) -> str:
        for message in reversed(request.messages):
            if message.role == Role.USER:
                return f"You said: {message.content.strip()}"
        return "You said nothing."

    async def health_check(self) -> bool:
        return True

    async def complete(self, request: ChatRequest) -> ChatResponse:
        content = self._reply(request)
        return ChatResponse(
            request_id=request.id,
            message=Message(role=Role.MODEL, content=content),
            model=request.model,
            provider=self.name,
            finish_reason=FinishReason.STOP,
            usage=TokenUsage(
                prompt_tokens=sum(len(m.content.split()) for m in request.messages),
                completion_tokens=len(content.split()),
            ),
        )

    async def stream(self, request: ChatRequest) -> AsyncIterator[str]:
        # Keep whitespace attached so the joined chunks equal the full reply
        for chunk in re.findall(r"\S+\s*", self._reply(request)):
            yield chunk
            if self._chunk_delay:
                await asyncio.sleep(self._chunk_delay)

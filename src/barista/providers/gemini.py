import json
import time
from collections.abc import AsyncIterator
from typing import Any

import httpx

from barista.domain.exceptions import (
    ProviderError,
    ProviderRateLimitError,
    ProviderUnavailableError,
)
from barista.domain.models import (
    ChatRequest,
    ChatResponse,
    FinishReason,
    Message,
    Role,
    TokenUsage,
)
from barista.providers.base import LLMProvider


class GeminiProvider(LLMProvider):
    """Google AI (Gemini) provider over the generativelanguage REST API."""

    def __init__(
        self,
        api_key: str | None,
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: float = 60.0,
    ):
        if not api_key:
            raise ValueError("GEMINI_API_KEY is not set")
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    def _map_finish_reason(self, finish_reason: str | None) -> FinishReason:
        """Map Gemini finishReason to internal FinishReason."""
        mapping = {
            "STOP": FinishReason.STOP,
            "MAX_TOKENS": FinishReason.LENGTH,
            "SAFETY": FinishReason.CONTENT_FILTER,
            "RECITATION": FinishReason.CONTENT_FILTER,
        }
        return mapping.get(finish_reason or "STOP", FinishReason.ERROR)

    @property
    def name(self) -> str:
        return "googleai"

    @property
    def models(self) -> list[str]:
        return ["gemini-2.0-flash", "gemini-2.5-flash"]

    def _prepare_contents(self, messages: list[Message]) -> tuple[dict | None, list[dict]]:
        """Split system messages into systemInstruction, the rest into contents."""
        system_parts = [{"text": m.content} for m in messages if m.role == Role.SYSTEM]
        contents = [
            {"role": "model" if m.role == Role.MODEL else "user", "parts": [{"text": m.content}]}
            for m in messages
            if m.role != Role.SYSTEM
        ]
        system_instruction = {"parts": system_parts} if system_parts else None
        return system_instruction, contents

    def _payload(self, request: ChatRequest) -> dict:
        system_instruction, contents = self._prepare_contents(request.messages)
        payload: dict[str, Any] = {"contents": contents}
        if system_instruction is not None:
            payload["systemInstruction"] = system_instruction
        generation_config: dict[str, Any] = {}
        if request.parameters.temperature is not None:
            generation_config["temperature"] = request.parameters.temperature
        if request.parameters.max_tokens:
            generation_config["maxOutputTokens"] = request.parameters.max_tokens
        if generation_config:
            payload["generationConfig"] = generation_config
        return payload

    @staticmethod
    def _candidate_text(data: dict) -> str:
        candidates = data.get("candidates") or []
        if not candidates:
            return ""
        parts = candidates[0].get("content", {}).get("parts") or []
        return "".join(part.get("text", "") for part in parts)

    def _raise_for_status(self, response: httpx.Response) -> None:
        if response.status_code == 429:
            raise ProviderRateLimitError(
                "Rate limit exceeded",
                "googleai",
                429,
                {"retry_after": response.headers.get("retry-after", "unknown")},
            )
        if response.status_code == 503:
            raise ProviderUnavailableError("Gemini service unavailable", "googleai", 503)
        if response.status_code != 200:
            raise ProviderError(
                f"Request failed with status {response.status_code}",
                "googleai",
                response.status_code,
                {"response": response.text},
            )

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            headers={"x-goog-api-key": self._api_key, "content-type": "application/json"},
            timeout=self._timeout,
        )

    async def health_check(self) -> bool:
        try:
            async with self._client() as client:
                response = await client.get("/models")
                if response.status_code == 503:
                    raise ProviderUnavailableError("Gemini service unavailable", "googleai", 503)
                return response.status_code == 200
        except (ProviderUnavailableError, ProviderRateLimitError):
            raise
        except Exception as e:
            raise ProviderError(f"Health check failed: {e}", "googleai", None) from e

    async def complete(self, request: ChatRequest) -> ChatResponse:
        start = time.perf_counter()
        try:
            async with self._client() as client:
                response = await client.post(
                    f"/models/{request.model}:generateContent", json=self._payload(request)
                )
        except httpx.TransportError as e:
            raise ProviderUnavailableError(f"Gemini request failed: {e}", "googleai") from e

        self._raise_for_status(response)
        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError(f"Malformed response body: {e}", "googleai", 200) from e
        candidates = (data.get("candidates") if isinstance(data, dict) else None) or []
        if not candidates:
            raise ProviderError(
                "Response contained no candidates",
                "googleai",
                200,
                {"prompt_feedback": data.get("promptFeedback")},
            )
        usage = data.get("usageMetadata") or {}
        return ChatResponse(
            request_id=request.id,
            message=Message(role=Role.MODEL, content=self._candidate_text(data)),
            model=data.get("modelVersion", request.model),
            provider="googleai",
            finish_reason=self._map_finish_reason(candidates[0].get("finishReason")),
            usage=TokenUsage(
                prompt_tokens=usage.get("promptTokenCount", 0),
                completion_tokens=usage.get("candidatesTokenCount", 0),
            ),
            latency_ms=(time.perf_counter() - start) * 1000,
        )

    async def stream(self, request: ChatRequest) -> AsyncIterator[str]:
        """Stream a completion from Gemini via server-sent events."""
        try:
            async with self._client() as client:
                async with client.stream(
                    "POST",
                    f"/models/{request.model}:streamGenerateContent",
                    params={"alt": "sse"},
                    json=self._payload(request),
                ) as resp:
                    if resp.status_code != 200:
                        await resp.aread()
                        self._raise_for_status(resp)

                    async for line in resp.aiter_lines():
                        if not line.startswith("data: "):
                            continue
                        try:
                            data = json.loads(line[6:])
                        except json.JSONDecodeError:
                            continue
                        text = self._candidate_text(data)
                        if text:
                            yield text
        except httpx.TransportError as e:
            raise ProviderUnavailableError(f"Gemini request failed: {e}", "googleai") from e

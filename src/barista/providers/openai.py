import json
import time
from collections.abc import AsyncIterator

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

_ROLE_MAP = {Role.SYSTEM: "system", Role.USER: "user", Role.MODEL: "assistant"}


class OpenAIProvider(LLMProvider):
    """OpenAI chat completions provider."""

    def __init__(self, api_key: str | None, base_url: str = "https://api.openai.com/v1", timeout: float = 60.0):
        if not api_key:
            raise ValueError("OPENAI_API_KEY is not set")
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "openai"

    @property
    def models(self) -> list[str]:
        return ["gpt-4o", "gpt-4o-mini"]

    def _payload(self, request: ChatRequest, stream: bool) -> dict:
        payload: dict = {
            "model": request.model,
            "messages": [
                {"role": _ROLE_MAP[msg.role], "content": msg.content} for msg in request.messages
            ],
        }
        if stream:
            payload["stream"] = True
        if request.parameters.temperature is not None:
            payload["temperature"] = request.parameters.temperature
        if request.parameters.max_tokens:
            payload["max_tokens"] = request.parameters.max_tokens
        return payload

    def _raise_for_status(self, response: httpx.Response) -> None:
        if response.status_code == 429:
            raise ProviderRateLimitError(
                "Rate limit exceeded",
                "openai",
                429,
                {"retry_after": response.headers.get("retry-after", "unknown")},
            )
        elif response.status_code == 503:
            raise ProviderUnavailableError("OpenAI service unavailable", "openai", 503)
        elif response.status_code != 200:
            raise ProviderError(
                f"Request failed with status {response.status_code}",
                "openai",
                response.status_code,
                {"response": response.text},
            )

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            headers={"Authorization": f"Bearer {self._api_key}"},
            timeout=self._timeout,
        )

    async def stream(self, request: ChatRequest) -> AsyncIterator[str]:
        """Stream a chat completion from OpenAI, yielding content deltas."""
        try:
            async with self._client() as client:
                async with client.stream(
                    "POST", "/chat/completions", json=self._payload(request, stream=True)
                ) as resp:
                    if resp.status_code != 200:
                        await resp.aread()
                        self._raise_for_status(resp)

                    async for line in resp.aiter_lines():
                        if not line.startswith("data: "):
                            continue
                        data_str = line[6:]
                        if data_str == "[DONE]":
                            break
                        try:
                            data = json.loads(data_str)
                        except json.JSONDecodeError:
                            continue
                        choices = data.get("choices", [])
                        if choices:
                            content = choices[0].get("delta", {}).get("content", "")
                            if content:
                                yield content
        except httpx.TransportError as e:
            raise ProviderUnavailableError(f"OpenAI request failed: {e}", "openai") from e

    async def health_check(self) -> bool:
        try:
            async with self._client() as client:
                response = await client.get("/models")
                if response.status_code == 503:
                    raise ProviderUnavailableError("OpenAI service unavailable", "openai", 503)
                return response.status_code == 200
        except (ProviderUnavailableError, ProviderRateLimitError):
            raise
        except Exception as e:
            raise ProviderError(f"Health check failed: {e}", "openai", None) from e

    async def complete(self, request: ChatRequest) -> ChatResponse:
        start = time.perf_counter()
        try:
            async with self._client() as client:
                response = await client.post(
                    "/chat/completions", json=self._payload(request, stream=False)
                )
        except httpx.TransportError as e:
            raise ProviderUnavailableError(f"OpenAI request failed: {e}", "openai") from e

        self._raise_for_status(response)
        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError(f"Malformed response body: {e}", "openai", 200) from e
        choices = data.get("choices") if isinstance(data, dict) else None
        if not choices or not isinstance(choices[0], dict) or not isinstance(choices[0].get("message"), dict):
            raise ProviderError(
                "Response contained no choices",
                "openai",
                200,
                {"response": response.text},
            )
        choice = choices[0]
        usage = data.get("usage") or {}
        try:
            finish_reason = FinishReason(choice.get("finish_reason") or "stop")
        except ValueError:
            finish_reason = FinishReason.ERROR
        return ChatResponse(
            request_id=request.id,
            message=Message(role=Role.MODEL, content=choice["message"].get("content") or ""),
            model=data.get("model", request.model),
            provider="openai",
            finish_reason=finish_reason,
            usage=TokenUsage(
                prompt_tokens=usage.get("prompt_tokens", 0),
                completion_tokens=usage.get("completion_tokens", 0),
            ),
            latency_ms=(time.perf_counter() - start) * 1000,
        )

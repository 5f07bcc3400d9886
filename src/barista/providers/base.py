"""Abstract base class for LLM providers."""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

from barista.domain.models import ChatRequest, ChatResponse


class LLMProvider(ABC):
    """Base class for all LLM providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the name of the provider, used as the model reference prefix."""
        ...

    @property
    @abstractmethod
    def models(self) -> list[str]:
        """Return the list of models supported by the provider."""
        ...

    @abstractmethod
    async def health_check(self) -> bool: ...

    @abstractmethod
    async def complete(self, request: ChatRequest) -> ChatResponse: ...

    @abstractmethod
    def stream(self, request: ChatRequest) -> AsyncIterator[str]: ...

    def supports(self, model: str) -> bool:
        """Return True if the provider serves ``model``.

        Providers accept any model name by default; the remote API decides.
        """
        return True

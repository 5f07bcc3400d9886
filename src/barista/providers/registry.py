"""Provider registry for resolving "provider/model" references."""

import logging

from barista.core.config import Settings
from barista.domain.exceptions import NoProviderError
from barista.providers.base import LLMProvider
from barista.providers.echo import EchoProvider
from barista.providers.gemini import GeminiProvider
from barista.providers.openai import OpenAIProvider

logger = logging.getLogger(__name__)

ECHO_MODEL = "echo/barista"


def parse_model_ref(model_ref: str) -> tuple[str, str]:
    """Split ``"provider/model"`` into its parts.

    A bare model name is looked up against every provider's model list by
    the registry; it is returned with an empty provider name.
    """
    provider, sep, model = model_ref.partition("/")
    if not sep:
        return "", model_ref
    if not provider or not model:
        raise NoProviderError(f"Invalid model reference: {model_ref!r}")
    return provider, model


class ProviderRegistry:
    """Registry of LLM providers keyed by name."""

    def __init__(self) -> None:
        self._providers: dict[str, LLMProvider] = {}

    def __len__(self) -> int:
        """Return the number of registered providers."""
        return len(self._providers)

    def __contains__(self, name: str) -> bool:
        """Return True if the provider is registered."""
        return name in self._providers

    def register(self, provider: LLMProvider) -> None:
        """Register a provider."""
        if provider.name in self._providers:
            logger.warning(
                "Provider '%s' already registered, overwriting",
                provider.name,
            )
        self._providers[provider.name] = provider
        logger.info(
            "Registered provider '%s' with %d model(s)",
            provider.name,
            len(provider.models),
        )

    def get_provider(self, name: str) -> LLMProvider | None:
        """Look up by provider name, return None if not found."""
        return self._providers.get(name)

    def resolve(self, model_ref: str) -> tuple[LLMProvider, str]:
        """Return the provider and bare model name for a model reference."""
        provider_name, model = parse_model_ref(model_ref)
        if not provider_name:
            for provider in self._providers.values():
                if model in provider.models:
                    return provider, model
            raise NoProviderError(f"No provider for model: {model_ref!r}")

        provider = self._providers.get(provider_name)
        if provider is None or not provider.supports(model):
            raise NoProviderError(f"No provider for model: {model_ref!r}")
        return provider, model

    def list_providers(self) -> list[LLMProvider]:
        """Return all registered providers."""
        return list(self._providers.values())


def build_registry(settings: Settings) -> ProviderRegistry:
    """Register every provider that has credentials, plus the offline echo provider."""
    registry = ProviderRegistry()
    if settings.gemini_api_key:
        registry.register(
            GeminiProvider(
                api_key=settings.gemini_api_key,
                base_url=settings.gemini_base_url,
                timeout=settings.request_timeout_seconds,
            )
        )
    if settings.openai_api_key:
        registry.register(
            OpenAIProvider(
                api_key=settings.openai_api_key,
                base_url=settings.openai_base_url,
                timeout=settings.request_timeout_seconds,
            )
        )
    registry.register(EchoProvider())
    return registry


def effective_model(settings: Settings, registry: ProviderRegistry) -> str:
    """Return the configured default model, or the echo model if it cannot be served."""
    try:
        registry.resolve(settings.default_model)
    except NoProviderError:
        logger.info(
            "No provider configured for %s; prompts will use %s",
            settings.default_model,
            ECHO_MODEL,
        )
        return ECHO_MODEL
    return settings.default_model

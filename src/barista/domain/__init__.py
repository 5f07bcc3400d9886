"""Barista Domain Layer."""

from barista.domain.models import (
    Role,
    FinishReason,
    Message,
    ModelParameters,
    ChatRequest,
    TokenUsage,
    ChatResponse,
)

from barista.domain.exceptions import (
    BaristaError,
    UnauthorizedError,
    SerializationError,
    UpstreamError,
    ProviderError,
    ProviderUnavailableError,
    ProviderRateLimitError,
    NoProviderError,
    TransportError,
    InvalidRequestError,
    FlowNotFoundError,
)

__all__ = [
    # Models
    "Role",
    "FinishReason",
    "Message",
    "ModelParameters",
    "ChatRequest",
    "TokenUsage",
    "ChatResponse",
    # Exceptions
    "BaristaError",
    "UnauthorizedError",
    "SerializationError",
    "UpstreamError",
    "ProviderError",
    "ProviderUnavailableError",
    "ProviderRateLimitError",
    "NoProviderError",
    "TransportError",
    "InvalidRequestError",
    "FlowNotFoundError",
]

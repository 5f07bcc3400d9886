"""
Provider-agnostic domain models.

These represent the internal truth of the system.
No external dependencies - only Python standard library.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any
import uuid


def _utc_now() -> datetime:
    """Helper function for UTC now."""
    return datetime.now(timezone.utc)


class Role(str, Enum):
    """Message roles in a conversation."""
    SYSTEM = "system"
    USER = "user"
    MODEL = "model"


class FinishReason(str, Enum):
    """Why the model stopped generating."""
    STOP = "stop"
    LENGTH = "length"
    CONTENT_FILTER = "content_filter"
    ERROR = "error"


@dataclass(frozen=True)
class Message:
    """A single message. Frozen to prevent modification after creation."""
    role: Role
    content: str


@dataclass(frozen=True)
class ModelParameters:
    """Generation parameters. Frozen for consistency."""
    temperature: float | None = None
    max_tokens: int | None = None


@dataclass
class ChatRequest:
    """Internal representation of a model request."""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    messages: list[Message] = field(default_factory=list)
    model: str = ""
    parameters: ModelParameters = field(default_factory=ModelParameters)
    created_at: datetime = field(default_factory=_utc_now)
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TokenUsage:
    """Token consumption for a request."""
    prompt_tokens: int = 0
    completion_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


@dataclass
class ChatResponse:
    """Internal representation of a model response."""
    request_id: str
    message: Message
    model: str
    provider: str
    finish_reason: FinishReason
    usage: TokenUsage = field(default_factory=TokenUsage)
    latency_ms: float = 0.0
    created_at: datetime = field(default_factory=_utc_now)

    @property
    def text(self) -> str:
        return self.message.content

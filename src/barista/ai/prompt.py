"""
Prompt templates and their execution against a model provider.

Templates are Jinja2. A ``{{ role("user") }}`` / ``{{ role("model") }}``
marker starts a new message with that role; text before the first marker
forms a single user message. Template variables are the fields of the
prompt's input record, by their JSON alias (``customerName``, ...).
"""

import logging
import re
from collections.abc import Awaitable, Callable
from contextlib import aclosing
from typing import Any, Literal

from jinja2 import Environment, StrictUndefined, TemplateError
from pydantic import BaseModel, ValidationError

from barista.core.context import Context
from barista.core.metrics import barista_metrics
from barista.domain.exceptions import BaristaError, SerializationError, UpstreamError
from barista.domain.models import (
    ChatRequest,
    ChatResponse,
    FinishReason,
    Message,
    ModelParameters,
    Role,
)
from barista.providers.registry import ProviderRegistry

logger = logging.getLogger(__name__)

# Receives each incremental piece of model output before the final result.
StreamCallback = Callable[[Context, str], Awaitable[None]]

_ROLE_MARKER = "\x00role:{}\x00"
_ROLE_SPLIT = re.compile(r"\x00role:(\w+)\x00")
_ROLES = {"user": Role.USER, "model": Role.MODEL, "system": Role.SYSTEM}


def _model_call_failed(provider: str, error: Exception) -> UpstreamError:
    return UpstreamError(f"model call failed: {error}", {"provider": provider})


def _role(name: str) -> str:
    if name not in _ROLES:
        raise ValueError(f"Unknown role in prompt template: {name!r}")
    return _ROLE_MARKER.format(name)


_env = Environment(undefined=StrictUndefined, autoescape=False, keep_trailing_newline=True)
_env.globals["role"] = _role


class PromptTemplate:
    """A compiled prompt template that renders to a list of messages."""

    def __init__(self, source: str):
        self.source = source
        self._template = _env.from_string(source)

    def render(self, variables: dict[str, Any]) -> list[Message]:
        text = self._template.render(**variables)
        pieces = _ROLE_SPLIT.split(text)

        messages: list[Message] = []
        # pieces = [preamble, role1, body1, role2, body2, ...]
        if pieces[0].strip():
            messages.append(Message(role=Role.USER, content=pieces[0].strip()))
        for role_name, body in zip(pieces[1::2], pieces[2::2]):
            if body.strip():
                messages.append(Message(role=_ROLES[role_name], content=body.strip()))
        return messages


class Prompt:
    """A named prompt bound to a model and an input schema."""

    def __init__(
        self,
        name: str,
        template: str,
        model: str,
        input_schema: type[BaseModel],
        registry: ProviderRegistry,
        output_format: Literal["text"] = "text",
        parameters: ModelParameters | None = None,
    ):
        if output_format != "text":
            raise ValueError(f"Unsupported output format: {output_format!r}")
        self.name = name
        self.model = model
        self.parameters = parameters or ModelParameters()
        self.input_schema = input_schema
        self.output_format = output_format
        self.template = PromptTemplate(template)
        self._registry = registry

    def _coerce_input(self, input: Any) -> BaseModel:
        if isinstance(input, self.input_schema):
            return input
        try:
            return self.input_schema.model_validate(input or {})
        except ValidationError as e:
            raise SerializationError(
                f"invalid input for prompt {self.name}",
                {"errors": e.errors(include_url=False)},
            ) from e

    def render(self, input: Any) -> list[Message]:
        """Render the template for ``input`` into messages."""
        record = self._coerce_input(input)
        try:
            return self.template.render(record.model_dump(by_alias=True, mode="json"))
        except TemplateError as e:
            raise SerializationError(f"failed to render prompt {self.name}: {e}") from e

    async def execute(
        self,
        ctx: Context,
        input: Any,
        on_chunk: StreamCallback | None = None,
    ) -> ChatResponse:
        """Send the rendered prompt to the model and return its response.

        When ``on_chunk`` is given the model output is streamed and the
        callback is awaited for every chunk before the final response is
        returned. Errors raised by the callback propagate unchanged.
        """
        messages = self.render(input)
        provider, model = self._registry.resolve(self.model)
        request = ChatRequest(
            messages=messages,
            model=model,
            parameters=self.parameters,
            metadata={"prompt": self.name},
        )
        barista_metrics.record_model_call(provider.name, model, streaming=on_chunk is not None)
        logger.debug("Executing prompt %s on %s/%s", self.name, provider.name, model)

        if on_chunk is None:
            try:
                return await provider.complete(request)
            except BaristaError:
                raise
            except Exception as e:
                raise _model_call_failed(provider.name, e) from e

        chunks: list[str] = []
        async with aclosing(provider.stream(request)) as stream:
            while True:
                try:
                    chunk = await anext(stream)
                except StopAsyncIteration:
                    break
                except BaristaError:
                    raise
                except Exception as e:
                    raise _model_call_failed(provider.name, e) from e
                chunks.append(chunk)
                await on_chunk(ctx, chunk)

        return ChatResponse(
            request_id=request.id,
            message=Message(role=Role.MODEL, content="".join(chunks)),
            model=model,
            provider=provider.name,
            finish_reason=FinishReason.STOP,
        )

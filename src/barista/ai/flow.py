"""Named, independently invokable flows."""

import time
from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from barista.ai.prompt import StreamCallback
from barista.core import telemetry
from barista.core.context import Context
from barista.core.metrics import barista_metrics
from barista.domain.exceptions import BaristaError, SerializationError

O = TypeVar("O")

FlowFn = Callable[[Context, Any], Awaitable[O]]
StreamingFlowFn = Callable[[Context, Any, StreamCallback | None], Awaitable[O]]


class Flow(Generic[O]):
    """A flow wraps an async function taking ``(ctx, input[, on_chunk])``.

    ``run`` returns the function's output or raises. Every run is timed and
    counted; failures are logged with their error type before re-raising.
    """

    def __init__(
        self,
        name: str,
        fn: FlowFn | StreamingFlowFn,
        input_schema: type[BaseModel] | None = None,
        streaming: bool = False,
    ):
        self.name = name
        self.input_schema = input_schema
        self.streaming = streaming
        self._fn = fn

    def __repr__(self) -> str:
        kind = "streaming " if self.streaming else ""
        return f"<{kind}flow {self.name}>"

    def coerce_input(self, input: Any) -> Any:
        """Validate raw input (a dict from JSON) against the flow's input schema."""
        if self.input_schema is None or isinstance(input, self.input_schema):
            return input
        try:
            return self.input_schema.model_validate(input or {})
        except ValidationError as e:
            raise SerializationError(
                f"invalid input for flow {self.name}",
                {"errors": e.errors(include_url=False)},
            ) from e

    async def run(self, ctx: Context, input: Any = None, on_chunk: StreamCallback | None = None) -> O:
        start = time.perf_counter()
        try:
            record = self.coerce_input(input)
            if self.streaming:
                output = await self._fn(ctx, record, on_chunk)
            else:
                output = await self._fn(ctx, record)
        except BaristaError as e:
            barista_metrics.record_flow_run(self.name, "error", time.perf_counter() - start)
            telemetry.log_flow_failed(self.name, e)
            raise
        except Exception as e:
            barista_metrics.record_flow_run(self.name, "crash", time.perf_counter() - start)
            telemetry.log_flow_failed(self.name, e)
            raise

        elapsed = time.perf_counter() - start
        barista_metrics.record_flow_run(self.name, "ok", elapsed)
        telemetry.log_flow_completed(self.name, elapsed * 1000)
        return output


def to_jsonable(output: Any) -> Any:
    """Convert a flow output into plain JSON data."""
    if isinstance(output, BaseModel):
        return output.model_dump(by_alias=True, exclude_none=True, mode="json")
    return output

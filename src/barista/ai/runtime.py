"""Process-wide registry of prompts and flows."""

import logging
from typing import Any, Literal

from pydantic import BaseModel

from barista.ai.flow import Flow, FlowFn, StreamingFlowFn
from barista.ai.prompt import Prompt
from barista.domain.exceptions import FlowNotFoundError
from barista.domain.models import ModelParameters
from barista.providers.registry import ProviderRegistry

logger = logging.getLogger(__name__)


class FlowRuntime:
    """Holds the provider registry and every defined prompt and flow.

    Built once at startup by the process entry point and treated as
    read-only afterwards; request handlers only look things up.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        default_model: str,
        default_parameters: ModelParameters | None = None,
    ):
        self.registry = registry
        self.default_model = default_model
        self.default_parameters = default_parameters or ModelParameters()
        self._prompt_names: set[str] = set()
        self._flows: dict[str, Flow[Any]] = {}

    def define_prompt(
        self,
        name: str,
        template: str,
        input_schema: type[BaseModel],
        model: str | None = None,
        output_format: Literal["text"] = "text",
        parameters: ModelParameters | None = None,
    ) -> Prompt:
        if name in self._prompt_names:
            raise ValueError(f"Prompt '{name}' is already defined")
        model_ref = model or self.default_model
        # Fail at startup rather than on the first request
        self.registry.resolve(model_ref)
        prompt = Prompt(
            name=name,
            template=template,
            model=model_ref,
            input_schema=input_schema,
            registry=self.registry,
            output_format=output_format,
            parameters=parameters or self.default_parameters,
        )
        self._prompt_names.add(name)
        logger.info("Defined prompt '%s' on model %s", name, model_ref)
        return prompt

    def _add_flow(self, flow: Flow[Any]) -> None:
        if flow.name in self._flows:
            raise ValueError(f"Flow '{flow.name}' is already defined")
        self._flows[flow.name] = flow
        logger.info("Defined %r", flow)

    def define_flow(self, name: str, fn: FlowFn, input_schema: type[BaseModel] | None = None) -> Flow[Any]:
        flow: Flow[Any] = Flow(name, fn, input_schema=input_schema)
        self._add_flow(flow)
        return flow

    def define_streaming_flow(
        self, name: str, fn: StreamingFlowFn, input_schema: type[BaseModel] | None = None
    ) -> Flow[Any]:
        flow: Flow[Any] = Flow(name, fn, input_schema=input_schema, streaming=True)
        self._add_flow(flow)
        return flow

    def lookup_flow(self, name: str) -> Flow[Any]:
        """Return the flow registered under ``name`` or raise FlowNotFoundError."""
        flow = self._flows.get(name)
        if flow is None:
            raise FlowNotFoundError(name)
        return flow

    def list_flows(self) -> list[Flow[Any]]:
        return list(self._flows.values())

"""Prompt and flow runtime."""

from barista.ai.flow import Flow, to_jsonable
from barista.ai.prompt import Prompt, PromptTemplate, StreamCallback
from barista.ai.runtime import FlowRuntime

__all__ = [
    "Flow",
    "FlowRuntime",
    "Prompt",
    "PromptTemplate",
    "StreamCallback",
    "to_jsonable",
]

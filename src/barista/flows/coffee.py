"""
Coffee shop prompts and flows.

Each flow reads the inbound HTTP headers from the context it is given,
logs them, applies the authorization gate and then calls its prompt.
``testAllCoffeeFlows`` runs both greeting flows with the same context and
reports their replies, or the first failure, as a result record.
"""

from barista.ai.flow import Flow
from barista.ai.prompt import Prompt, StreamCallback
from barista.ai.runtime import FlowRuntime
from barista.core import telemetry
from barista.core.auth import INVALID_AUTHORIZATION, authorize, check_authorization
from barista.core.context import Context, get_headers
from barista.core.metrics import barista_metrics
from barista.domain.exceptions import BaristaError, SerializationError
from barista.flows.schemas import (
    CustomerTimeAndHistoryInput,
    SimpleGreetingInput,
    TestAllCoffeeFlowsOutput,
)

SIMPLE_GREETING_PROMPT = """
You're a barista at a nice coffee shop.
A regular customer named {{ customerName }} enters.
Greet the customer in one sentence, and recommend a coffee drink.
"""

GREETING_WITH_HISTORY_PROMPT = """
{{ role("user") }}
Hi, my name is {{ customerName }}. The time is {{ currentTime }}. Who are you?

{{ role("model") }}
I am Barb, a barista at this nice underwater-themed coffee shop called Krabby Kooffee.
I know pretty much everything there is to know about coffee,
and I can cheerfully recommend delicious coffee drinks to you based on whatever you like.

{{ role("user") }}
Great. Last time I had {{ previousOrder }}.
I want you to greet me in one sentence, and recommend a drink.
"""

SIMPLE_GREETING = "simpleGreeting"
GREETING_WITH_HISTORY = "greetingWithHistory"
TEST_ALL_COFFEE_FLOWS = "testAllCoffeeFlows"


def _input_json(flow: str, record: SimpleGreetingInput | CustomerTimeAndHistoryInput) -> str:
    try:
        return record.model_dump_json(by_alias=True)
    except ValueError as e:
        raise SerializationError(f"failed to encode input of {flow}: {e}") from e


class CoffeeFlows:
    """The three coffee flows and the prompts behind them."""

    def __init__(self, runtime: FlowRuntime, require_headers: bool = False):
        self.require_headers = require_headers

        self.simple_greeting_prompt: Prompt = runtime.define_prompt(
            SIMPLE_GREETING,
            SIMPLE_GREETING_PROMPT,
            input_schema=SimpleGreetingInput,
        )
        self.greeting_with_history_prompt: Prompt = runtime.define_prompt(
            GREETING_WITH_HISTORY,
            GREETING_WITH_HISTORY_PROMPT,
            input_schema=CustomerTimeAndHistoryInput,
        )

        self.simple_greeting: Flow[str] = runtime.define_streaming_flow(
            SIMPLE_GREETING, self._simple_greeting, input_schema=SimpleGreetingInput
        )
        self.greeting_with_history: Flow[str] = runtime.define_flow(
            GREETING_WITH_HISTORY, self._greeting_with_history, input_schema=CustomerTimeAndHistoryInput
        )
        self.test_all_coffee_flows: Flow[TestAllCoffeeFlowsOutput] = runtime.define_flow(
            TEST_ALL_COFFEE_FLOWS, self._test_all_coffee_flows
        )

    def _gate(self, flow: str, ctx: Context) -> None:
        headers = get_headers(ctx)
        if headers is not None:
            telemetry.log_headers_received(flow, headers)
        check_authorization(headers, require_headers=self.require_headers)

    async def _simple_greeting(
        self, ctx: Context, input: SimpleGreetingInput, on_chunk: StreamCallback | None
    ) -> str:
        self._gate(SIMPLE_GREETING, ctx)
        telemetry.log_flow_input(SIMPLE_GREETING, _input_json(SIMPLE_GREETING, input))

        response = await self.simple_greeting_prompt.execute(ctx, input, on_chunk=on_chunk)
        return response.text

    async def _greeting_with_history(self, ctx: Context, input: CustomerTimeAndHistoryInput) -> str:
        self._gate(GREETING_WITH_HISTORY, ctx)
        telemetry.log_flow_input(GREETING_WITH_HISTORY, _input_json(GREETING_WITH_HISTORY, input))

        response = await self.greeting_with_history_prompt.execute(ctx, input)
        return response.text

    async def _test_all_coffee_flows(self, ctx: Context, input: object) -> TestAllCoffeeFlowsOutput:
        headers = get_headers(ctx)
        if headers is not None:
            telemetry.log_headers_received(TEST_ALL_COFFEE_FLOWS, headers)

        if not authorize(headers, require_headers=self.require_headers):
            barista_metrics.record_auth_rejection("missing" if headers is None else "invalid")
            return TestAllCoffeeFlowsOutput.failed(INVALID_AUTHORIZATION)

        if headers is not None:
            telemetry.log_all_headers(TEST_ALL_COFFEE_FLOWS, headers)

        try:
            first = await self.simple_greeting.run(ctx, SimpleGreetingInput(customer_name="Sam"))
        except BaristaError as e:
            return TestAllCoffeeFlowsOutput.failed(str(e))

        try:
            second = await self.greeting_with_history.run(
                ctx,
                CustomerTimeAndHistoryInput(
                    customer_name="Sam",
                    current_time="09:45am",
                    previous_order="Caramel Macchiato",
                ),
            )
        except BaristaError as e:
            return TestAllCoffeeFlowsOutput.failed(str(e))

        return TestAllCoffeeFlowsOutput.succeeded([first, second])


def register_coffee_flows(runtime: FlowRuntime, require_headers: bool = False) -> CoffeeFlows:
    """Define the coffee prompts and flows on ``runtime``."""
    return CoffeeFlows(runtime, require_headers=require_headers)

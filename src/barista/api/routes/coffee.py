"""
Composite coffee flow endpoint.

Binds the inbound request headers into a fresh context and runs
``testAllCoffeeFlows`` with it. Authorization failures are part of the
flow result (``{"pass": false, ...}`` with status 200); only a failure of
the flow invocation itself becomes a 500.
"""

import logging

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse

from barista.ai.flow import to_jsonable
from barista.api.deps import get_runtime, read_optional_json
from barista.core.context import Context, with_headers
from barista.domain.exceptions import InvalidRequestError
from barista.flows.coffee import TEST_ALL_COFFEE_FLOWS
from barista.flows.schemas import TestAllCoffeeFlowsOutput

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Flows"])


@router.post(
    "/testAllCoffeeFlows",
    response_model=TestAllCoffeeFlowsOutput,
    responses={
        200: {"description": "Flow result, passing or failing"},
        400: {
            "description": "Malformed JSON body",
            "content": {"application/json": {"example": {"detail": "Invalid input"}}},
        },
        500: {
            "description": "The flow could not be executed",
            "content": {"application/json": {"example": {"detail": "Flow error: ..."}}},
        },
    },
    summary="Run all coffee flows",
    description="Runs simpleGreeting and greetingWithHistory with the request headers "
    "propagated to both. Requires `Authorization: Bearer <token>`.",
)
async def test_all_coffee_flows(request: Request) -> JSONResponse:
    # The route is POST-only already; kept for handlers mounted without a method filter.
    if request.method != "POST":
        raise HTTPException(status_code=405, detail="Method not allowed")

    try:
        payload = await read_optional_json(request)
    except InvalidRequestError as e:
        logger.error("Failed to decode request body: %s", e.details.get("reason"))
        raise HTTPException(status_code=400, detail="Invalid input") from e

    runtime = get_runtime(request)
    ctx = with_headers(Context.background(), request.headers)

    try:
        flow = runtime.lookup_flow(TEST_ALL_COFFEE_FLOWS)
        output = await flow.run(ctx, payload or {})
    except Exception as e:
        logger.exception("Flow execution failed")
        raise HTTPException(status_code=500, detail=f"Flow error: {e}") from e

    return JSONResponse(status_code=200, content=to_jsonable(output))

"""
Generic flow endpoints.

Every registered flow is reachable at ``POST /flows/{name}`` with a
``{"data": <input>}`` body and answers ``{"result": <output>}``. Streaming
flows called with ``?stream=true`` answer with Server-Sent Events: one
``{"message": <chunk>}`` event per chunk, then ``{"result": <output>}``.
"""

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse, StreamingResponse

from barista.ai.flow import Flow, to_jsonable
from barista.api.deps import get_runtime, read_optional_json
from barista.api.errors import error_body, error_status
from barista.core.context import Context, with_headers
from barista.domain.exceptions import BaristaError, FlowNotFoundError, InvalidRequestError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/flows", tags=["Flows"])


def _sse(data: dict[str, Any]) -> str:
    return f"data: {json.dumps(data)}\n\n"


async def _stream_flow(flow: Flow[Any], ctx: Context, data: Any) -> AsyncIterator[str]:
    """Run a streaming flow, relaying its chunks as SSE events."""
    queue: asyncio.Queue[str | None] = asyncio.Queue()

    async def on_chunk(_ctx: Context, chunk: str) -> None:
        await queue.put(chunk)

    task = asyncio.create_task(flow.run(ctx, data, on_chunk=on_chunk))
    task.add_done_callback(lambda _: queue.put_nowait(None))
    try:
        while (chunk := await queue.get()) is not None:
            yield _sse({"message": chunk})
        output = task.result()
    except BaristaError as e:
        yield _sse(error_body(e))
        return
    except Exception as e:
        logger.exception("Streaming flow %s failed", flow.name)
        yield _sse(error_body(e))
        return
    finally:
        if not task.done():
            task.cancel()

    yield _sse({"result": to_jsonable(output)})


@router.post("/{name}", summary="Run a registered flow")
async def run_flow(name: str, request: Request, stream: bool = False) -> Any:
    runtime = get_runtime(request)
    try:
        flow = runtime.lookup_flow(name)
    except FlowNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message) from e

    try:
        payload = await read_optional_json(request)
    except InvalidRequestError as e:
        raise HTTPException(status_code=400, detail="Invalid input") from e

    data = (payload or {}).get("data")
    ctx = with_headers(Context.background(), request.headers)

    if stream and flow.streaming:
        return StreamingResponse(
            _stream_flow(flow, ctx, data),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "X-Accel-Buffering": "no",
                "Connection": "keep-alive",
            },
        )

    try:
        output = await flow.run(ctx, data)
    except BaristaError as e:
        status_code, _ = error_status(e)
        return JSONResponse(status_code=status_code, content=error_body(e))
    except Exception as e:
        logger.exception("Flow %s failed", flow.name)
        return JSONResponse(status_code=500, content=error_body(e))

    return {"result": to_jsonable(output)}

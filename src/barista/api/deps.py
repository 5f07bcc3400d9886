"""Shared request helpers for the API routes."""

import json
from typing import Any

from fastapi import HTTPException, Request

from barista.ai.runtime import FlowRuntime
from barista.domain.exceptions import InvalidRequestError


def get_runtime(request: Request) -> FlowRuntime:
    """Return the flow runtime built at startup."""
    runtime = getattr(request.app.state, "runtime", None)
    if runtime is None:
        raise HTTPException(status_code=503, detail="Flow runtime not initialized")
    return runtime


async def read_optional_json(request: Request) -> dict[str, Any] | None:
    """Decode an optional JSON object body.

    An empty body yields None. Anything that is not a JSON object (or
    ``null``) raises InvalidRequestError.
    """
    body = await request.body()
    if not body.strip():
        return None
    try:
        payload = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidRequestError("Invalid input", {"reason": str(e)}) from e
    if payload is not None and not isinstance(payload, dict):
        raise InvalidRequestError("Invalid input", {"reason": "body must be a JSON object"})
    return payload

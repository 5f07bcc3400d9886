"""
Structured logging for flow telemetry.

Logs metadata about each flow run: the headers it saw, the input record,
and how the run ended. Model output text is never logged.
"""

from typing import Any

import structlog
from starlette.datastructures import Headers

from barista.core.context import get_request_id
from barista.domain.exceptions import BaristaError


def _add_request_id(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    event_dict.setdefault("request_id", get_request_id())
    return event_dict


# Configure structlog for JSON output
structlog.configure(
    processors=[
        structlog.stdlib.add_log_level,
        _add_request_id,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
)

logger = structlog.get_logger("barista.telemetry")


def log_headers_received(flow: str, headers: Headers) -> None:
    """Log the Authorization and X-Request-ID headers a flow received."""
    logger.info(
        "headers_received",
        flow=flow,
        authorization=headers.get("Authorization", ""),
        x_request_id=headers.get("X-Request-ID", ""),
    )


def log_all_headers(flow: str, headers: Headers) -> None:
    """Log the full header collection, keeping repeated headers as lists."""
    grouped: dict[str, list[str]] = {}
    for key, value in headers.items():
        grouped.setdefault(key, []).append(value)
    logger.debug("headers_dump", flow=flow, headers=grouped)


def log_flow_input(flow: str, input_json: str) -> None:
    """Log the serialized input record of a flow."""
    logger.info("flow_input", flow=flow, input=input_json)


def log_flow_completed(flow: str, latency_ms: float) -> None:
    logger.info("flow_completed", flow=flow, latency_ms=round(latency_ms, 2))


def log_flow_failed(flow: str, error: Exception) -> None:
    """Log flow failure with error details."""
    log_data: dict[str, Any] = {
        "flow": flow,
        "error_type": type(error).__name__,
        "error_message": str(error),
    }

    if isinstance(error, BaristaError):
        log_data["error"] = error.to_dict()

    logger.error("flow_failed", **log_data)

"""Mapping of domain errors to HTTP status codes."""

from barista.domain.exceptions import (
    BaristaError,
    FlowNotFoundError,
    ProviderRateLimitError,
    SerializationError,
    TransportError,
    UnauthorizedError,
    UpstreamError,
)

# Checked in order, so subclasses come before their bases.
_STATUS_MAP: list[tuple[type[BaristaError], int, str]] = [
    (UnauthorizedError, 401, "UNAUTHENTICATED"),
    (SerializationError, 400, "INVALID_ARGUMENT"),
    (TransportError, 400, "INVALID_ARGUMENT"),
    (FlowNotFoundError, 404, "NOT_FOUND"),
    (ProviderRateLimitError, 429, "RESOURCE_EXHAUSTED"),
    (UpstreamError, 502, "UNAVAILABLE"),
]


def error_status(error: Exception) -> tuple[int, str]:
    """Return the HTTP status code and status name for an error."""
    for error_type, status_code, status in _STATUS_MAP:
        if isinstance(error, error_type):
            return status_code, status
    return 500, "INTERNAL"


def error_body(error: Exception) -> dict:
    """Build the ``{"error": {...}}`` body for an error."""
    _, status = error_status(error)
    if isinstance(error, BaristaError):
        message = error.message
    else:
        message = "internal error"
    return {"error": {"status": status, "message": message}}

"""
Authorization gate for flows.

Only the shape of the Authorization header is checked: it must start with
the literal ``"Bearer "`` prefix. The token itself is never verified.

A context that carries no headers at all (a flow invoked directly rather
than through the HTTP endpoint) passes the gate unless ``require_headers``
is set. See ``Settings.auth.require_headers``.
"""

from starlette.datastructures import Headers

from barista.core.metrics import barista_metrics
from barista.domain.exceptions import UnauthorizedError

BEARER_PREFIX = "Bearer "
INVALID_AUTHORIZATION = "invalid authorization header"


def authorize(headers: Headers | None, *, require_headers: bool = False) -> bool:
    """Return True if the request described by ``headers`` may proceed."""
    if headers is None:
        return not require_headers
    return headers.get("Authorization", "").startswith(BEARER_PREFIX)


def check_authorization(headers: Headers | None, *, require_headers: bool = False) -> None:
    """Raise UnauthorizedError if ``authorize`` rejects the headers."""
    if not authorize(headers, require_headers=require_headers):
        barista_metrics.record_auth_rejection("missing" if headers is None else "invalid")
        raise UnauthorizedError(INVALID_AUTHORIZATION)

"""
Request context for cross-cutting concerns.

Two mechanisms live here:

- ``Context``: an immutable key/value chain that is passed explicitly into
  every flow invocation. Inbound HTTP headers are attached to it once at the
  edge and read back anywhere downstream.
- ``request_id_var``: a ContextVar holding the trace ID, used only by logging
  so every log line carries the correlation ID without explicit passing.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from contextvars import ContextVar
from typing import Any

from starlette.datastructures import Headers

# Trace ID for the current request, accessible anywhere in the async call chain.
request_id_var: ContextVar[str] = ContextVar("request_id", default="no-trace")


def get_request_id() -> str:
    """Get the current request's trace ID."""
    return request_id_var.get()


def set_request_id(request_id: str) -> None:
    """Set the trace ID for the current request."""
    request_id_var.set(request_id)


class Context:
    """Immutable, append-only chain of key/value bindings.

    ``with_value`` never mutates the receiver; it returns a child context
    whose lookup falls back to the parent. Lookups resolve to the most
    recently attached binding for a key.
    """

    __slots__ = ("_parent", "_key", "_value")

    def __init__(self, parent: Context | None = None, key: Any = None, value: Any = None) -> None:
        object.__setattr__(self, "_parent", parent)
        object.__setattr__(self, "_key", key)
        object.__setattr__(self, "_value", value)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("Context is immutable")

    @classmethod
    def background(cls) -> Context:
        """Return an empty root context."""
        return cls()

    def with_value(self, key: Any, value: Any) -> Context:
        """Return a new context carrying ``key -> value`` on top of this one."""
        if key is None:
            raise ValueError("Context key must not be None")
        return Context(self, key, value)

    def value(self, key: Any) -> Any:
        """Return the nearest value bound to ``key``, or None."""
        node: Context | None = self
        while node is not None:
            if node._parent is not None and node._key == key:
                return node._value
            node = node._parent
        return None

    def __repr__(self) -> str:
        depth = 0
        node = self._parent
        while node is not None:
            depth += 1
            node = node._parent
        return f"Context(depth={depth})"


class _HeadersKey:
    """Private key type for the header binding."""

    def __repr__(self) -> str:
        return "<headers>"


_HEADERS_KEY = _HeadersKey()


def as_headers(raw: Headers | Mapping[str, str] | Iterable[tuple[str, str]]) -> Headers:
    """Build a read-only header multi-map from a mapping or a list of pairs."""
    if isinstance(raw, Headers):
        return raw
    if isinstance(raw, Mapping):
        return Headers(headers=dict(raw))
    return Headers(raw=[(k.lower().encode("latin-1"), v.encode("latin-1")) for k, v in raw])


def with_headers(ctx: Context, headers: Headers) -> Context:
    """Attach an HTTP header collection to the context."""
    return ctx.with_value(_HEADERS_KEY, headers)


def get_headers(ctx: Context) -> Headers | None:
    """Return the attached header collection, or None if none was attached."""
    return ctx.value(_HEADERS_KEY)

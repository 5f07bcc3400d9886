"""
Domain-level exceptions.

Hierarchical exceptions allow catching at different granularities.
Flows raise these; the composite flow turns them into a failed result and
the HTTP layer maps them to status codes.
"""


class BaristaError(Exception):
    """Base exception for all barista errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert exception to dictionary for serialization."""
        return {
            "message": self.message,
            "details": self.details,
            "type": type(self).__name__
        }


class UnauthorizedError(BaristaError):
    """Authorization header missing the bearer prefix."""
    pass


class SerializationError(BaristaError):
    """Input or output could not be encoded or validated as JSON."""
    pass


# =============================================================================
# UPSTREAM (MODEL) EXCEPTIONS
# =============================================================================

class UpstreamError(BaristaError):
    """The model call failed or returned an error."""
    pass


class ProviderError(UpstreamError):
    """Error from an LLM provider."""

    def __init__(
        self,
        message: str,
        provider: str,
        status_code: int | None = None,
        details: dict | None = None
    ):
        super().__init__(message, details)
        self.provider = provider
        self.status_code = status_code

    def to_dict(self) -> dict:
        result = super().to_dict()
        result["provider"] = self.provider
        if self.status_code is not None:
            result["status_code"] = self.status_code
        return result


class ProviderUnavailableError(ProviderError):
    """Provider is temporarily unavailable (timeout, 5xx, connection error)."""
    pass


class ProviderRateLimitError(ProviderError):
    """Provider rate limit exceeded (429)."""
    pass


class NoProviderError(UpstreamError):
    """No provider is registered for the requested model reference."""
    pass


# =============================================================================
# TRANSPORT EXCEPTIONS
# =============================================================================

class TransportError(BaristaError):
    """Request could not be read or the listener failed."""
    pass


class InvalidRequestError(TransportError):
    """Request body was malformed."""
    pass


class FlowNotFoundError(BaristaError):
    """No flow is registered under the requested name."""

    def __init__(self, name: str):
        super().__init__(f"flow not found: {name}", {"flow": name})
        self.name = name

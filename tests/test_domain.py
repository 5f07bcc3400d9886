"""Tests for exceptions, error mapping, settings and telemetry."""

import logging

import pytest
from starlette.datastructures import Headers
from structlog.testing import capture_logs

from barista.api.errors import error_body, error_status
from barista.core import telemetry
from barista.core.config import AuthSettings, Settings
from barista.core.context import set_request_id
from barista.core.logging_config import RequestIdFilter
from barista.domain.exceptions import (
    BaristaError,
    FlowNotFoundError,
    InvalidRequestError,
    NoProviderError,
    ProviderError,
    ProviderRateLimitError,
    ProviderUnavailableError,
    SerializationError,
    TransportError,
    UnauthorizedError,
    UpstreamError,
)
from barista.domain.models import ModelParameters
from barista.main import build_runtime


class TestExceptions:
    """Test suite for the exception hierarchy."""

    @pytest.mark.parametrize(
        "error_type",
        [UnauthorizedError, SerializationError, UpstreamError, TransportError],
    )
    def test_is_barista_error(self, error_type):
        assert issubclass(error_type, BaristaError)

    def test_provider_errors_are_upstream(self):
        assert issubclass(ProviderUnavailableError, UpstreamError)
        assert issubclass(ProviderRateLimitError, ProviderError)
        assert issubclass(NoProviderError, UpstreamError)
        assert issubclass(InvalidRequestError, TransportError)

    def test_str_is_message(self):
        assert str(UnauthorizedError("invalid authorization header")) == "invalid authorization header"

    def test_to_dict(self):
        error = SerializationError("bad input", {"field": "customerName"})
        assert error.to_dict() == {
            "message": "bad input",
            "details": {"field": "customerName"},
            "type": "SerializationError",
        }

    def test_provider_error_to_dict(self):
        error = ProviderRateLimitError("Rate limit exceeded", "googleai", 429)
        data = error.to_dict()
        assert data["provider"] == "googleai"
        assert data["status_code"] == 429
        assert data["type"] == "ProviderRateLimitError"

    def test_provider_error_without_status(self):
        assert "status_code" not in ProviderError("oops", "openai").to_dict()

    def test_flow_not_found(self):
        error = FlowNotFoundError("espresso")
        assert error.name == "espresso"
        assert error.message == "flow not found: espresso"


class TestErrorMapping:
    """Test suite for mapping errors to HTTP statuses."""

    @pytest.mark.parametrize(
        "error,expected",
        [
            (UnauthorizedError("x"), (401, "UNAUTHENTICATED")),
            (SerializationError("x"), (400, "INVALID_ARGUMENT")),
            (InvalidRequestError("x"), (400, "INVALID_ARGUMENT")),
            (FlowNotFoundError("x"), (404, "NOT_FOUND")),
            (ProviderRateLimitError("x", "p", 429), (429, "RESOURCE_EXHAUSTED")),
            (ProviderUnavailableError("x", "p", 503), (502, "UNAVAILABLE")),
            (NoProviderError("x"), (502, "UNAVAILABLE")),
            (BaristaError("x"), (500, "INTERNAL")),
            (RuntimeError("x"), (500, "INTERNAL")),
        ],
    )
    def test_error_status(self, error, expected):
        assert error_status(error) == expected

    def test_unexpected_error_message_is_hidden(self):
        assert error_body(RuntimeError("secret")) == {
            "error": {"status": "INTERNAL", "message": "internal error"}
        }


class TestSettings:
    """Test suite for settings loading."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("DEFAULT_MODEL", raising=False)
        monkeypatch.delenv("PORT", raising=False)
        settings = Settings(_env_file=None)
        assert settings.default_model == "googleai/gemini-2.0-flash"
        assert settings.port == 8000
        assert settings.auth.require_headers is False

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("PORT", "3400")
        monkeypatch.setenv("DEFAULT_MODEL", "openai/gpt-4o-mini")
        settings = Settings(_env_file=None)
        assert settings.port == 3400
        assert settings.default_model == "openai/gpt-4o-mini"

    def test_auth_settings_prefix(self, monkeypatch):
        monkeypatch.setenv("BARISTA_AUTH_REQUIRE_HEADERS", "true")
        assert AuthSettings().require_headers is True

    def test_generation_parameters_from_env(self, monkeypatch):
        monkeypatch.setenv("GENERATION_TEMPERATURE", "0.4")
        monkeypatch.setenv("GENERATION_MAX_TOKENS", "100")
        settings = Settings(_env_file=None)
        assert settings.generation_temperature == 0.4
        assert settings.generation_max_tokens == 100

    def test_runtime_receives_generation_parameters(self):
        settings = Settings(
            _env_file=None,
            openai_api_key=None,
            gemini_api_key=None,
            generation_temperature=0.4,
            generation_max_tokens=100,
        )
        runtime = build_runtime(settings)
        assert runtime.default_parameters == ModelParameters(temperature=0.4, max_tokens=100)


class TestLogging:
    """Test suite for request ID injection and flow telemetry."""

    def test_request_id_filter(self):
        set_request_id("trace-7")
        record = logging.LogRecord("barista", logging.INFO, __file__, 1, "hello", None, None)
        assert RequestIdFilter().filter(record) is True
        assert record.request_id == "trace-7"

    def test_headers_received_logged(self):
        headers = Headers(headers={"Authorization": "Bearer abc", "X-Request-ID": "r-1"})
        with capture_logs() as logs:
            telemetry.log_headers_received("simpleGreeting", headers)
        assert logs[0]["event"] == "headers_received"
        assert logs[0]["authorization"] == "Bearer abc"
        assert logs[0]["x_request_id"] == "r-1"

    def test_all_headers_keep_repeated_values(self):
        headers = Headers(raw=[(b"accept", b"text/plain"), (b"accept", b"application/json")])
        with capture_logs() as logs:
            telemetry.log_all_headers("testAllCoffeeFlows", headers)
        assert logs[0]["headers"] == {"accept": ["text/plain", "application/json"]}

    def test_flow_failed_includes_details(self):
        with capture_logs() as logs:
            telemetry.log_flow_failed("simpleGreeting", SerializationError("bad", {"field": "x"}))
        assert logs[0]["log_level"] == "error"
        assert logs[0]["error_type"] == "SerializationError"
        assert logs[0]["error"] == {
            "type": "SerializationError",
            "message": "bad",
            "details": {"field": "x"},
        }


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

"""Tests for FastAPI endpoints."""

import json

import httpx
import pytest
import respx
from fastapi.testclient import TestClient

from barista.ai.runtime import FlowRuntime
from barista.domain.exceptions import ProviderError, ProviderRateLimitError
from barista.flows.coffee import register_coffee_flows
from barista.main import create_app
from barista.providers.openai import OpenAIProvider
from barista.providers.registry import ProviderRegistry

BEARER = {"Authorization": "Bearer test-token"}


@pytest.fixture
def client(runtime, coffee):
    return TestClient(create_app(runtime=runtime))


def _sse_events(body: str) -> list[dict]:
    return [json.loads(line[6:]) for line in body.splitlines() if line.startswith("data: ")]


class TestAllCoffeeFlowsEndpoint:
    """Test suite for POST /testAllCoffeeFlows."""

    def test_bearer_token_passes(self, client, provider):
        response = client.post("/testAllCoffeeFlows", json={}, headers=BEARER)
        assert response.status_code == 200
        assert response.json() == {
            "pass": True,
            "replies": ["Hi Sam, try a flat white.", "Welcome back, Sam!"],
        }
        assert len(provider.requests) == 2

    def test_basic_auth_is_failed_result(self, client, provider):
        """Authorization failures are reported in the body, not the status."""
        response = client.post("/testAllCoffeeFlows", json={}, headers={"Authorization": "Basic xyz"})
        assert response.status_code == 200
        assert response.json() == {"pass": False, "error": "invalid authorization header"}
        assert provider.requests == []

    def test_missing_authorization_is_failed_result(self, client):
        response = client.post("/testAllCoffeeFlows", json={})
        assert response.status_code == 200
        assert response.json()["pass"] is False

    def test_empty_body_is_accepted(self, client):
        response = client.post("/testAllCoffeeFlows", headers=BEARER)
        assert response.status_code == 200
        assert response.json()["pass"] is True

    def test_malformed_json_is_400(self, client, provider):
        response = client.post(
            "/testAllCoffeeFlows",
            content=b"{invalid",
            headers={**BEARER, "Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json() == {"detail": "Invalid input"}
        assert provider.requests == []

    def test_non_object_body_is_400(self, client):
        response = client.post("/testAllCoffeeFlows", json=[1, 2], headers=BEARER)
        assert response.status_code == 400

    def test_get_not_allowed(self, client):
        response = client.get("/testAllCoffeeFlows", headers=BEARER)
        assert response.status_code == 405

    def test_model_failure_is_failed_result(self, client, provider):
        provider.error = ProviderRateLimitError("Rate limit exceeded", "script", 429)
        response = client.post("/testAllCoffeeFlows", json={}, headers=BEARER)
        assert response.status_code == 200
        assert response.json() == {"pass": False, "error": "Rate limit exceeded"}

    def test_model_crash_is_failed_result(self, client, provider):
        provider.error = RuntimeError("boom")
        response = client.post("/testAllCoffeeFlows", json={}, headers=BEARER)
        assert response.status_code == 200
        assert response.json() == {"pass": False, "error": "model call failed: boom"}

    @respx.mock
    def test_empty_openai_reply_is_failed_result(self):
        respx.post("https://api.openai.com/v1/chat/completions").mock(
            return_value=httpx.Response(200, json={"choices": []})
        )
        registry = ProviderRegistry()
        registry.register(OpenAIProvider(api_key="sk-test"))
        runtime = FlowRuntime(registry, default_model="openai/gpt-4o-mini")
        register_coffee_flows(runtime)

        response = TestClient(create_app(runtime=runtime)).post("/testAllCoffeeFlows", json={}, headers=BEARER)
        assert response.status_code == 200
        assert response.json() == {"pass": False, "error": "Response contained no choices"}

    def test_unregistered_flow_is_500(self, runtime):
        """A runtime without the composite flow cannot serve the endpoint."""
        client = TestClient(create_app(runtime=runtime))
        response = client.post("/testAllCoffeeFlows", json={}, headers=BEARER)
        assert response.status_code == 500
        assert response.json() == {"detail": "Flow error: flow not found: testAllCoffeeFlows"}

    def test_missing_runtime_is_503(self):
        client = TestClient(create_app())
        response = client.post("/testAllCoffeeFlows", json={}, headers=BEARER)
        assert response.status_code == 503

    def test_request_id_echoed(self, client):
        response = client.post("/testAllCoffeeFlows", json={}, headers={**BEARER, "X-Request-ID": "trace-42"})
        assert response.headers["X-Request-ID"] == "trace-42"
        assert response.headers["X-Response-Time"].endswith("ms")

    def test_request_id_generated(self, client):
        response = client.post("/testAllCoffeeFlows", json={}, headers=BEARER)
        assert response.headers["X-Request-ID"]


class TestFlowEndpoints:
    """Test suite for POST /flows/{name}."""

    def test_simple_greeting(self, client, provider):
        response = client.post("/flows/simpleGreeting", json={"data": {"customerName": "Sam"}}, headers=BEARER)
        assert response.status_code == 200
        assert response.json() == {"result": "Hi Sam, try a flat white."}
        assert "named Sam" in provider.requests[0].messages[0].content

    def test_greeting_with_history(self, client, provider):
        payload = {"data": {"customerName": "Sam", "currentTime": "noon", "previousOrder": "Mocha"}}
        response = client.post("/flows/greetingWithHistory", json=payload, headers=BEARER)
        assert response.status_code == 200
        assert response.json() == {"result": "Hi Sam, try a flat white."}

    def test_composite_through_generic_endpoint(self, client):
        response = client.post("/flows/testAllCoffeeFlows", json={}, headers={"Authorization": "Basic xyz"})
        assert response.status_code == 200
        assert response.json() == {"result": {"pass": False, "error": "invalid authorization header"}}

    def test_unauthorized_leaf_flow_is_401(self, client, provider):
        response = client.post(
            "/flows/simpleGreeting",
            json={"data": {"customerName": "Sam"}},
            headers={"Authorization": "Basic xyz"},
        )
        assert response.status_code == 401
        assert response.json() == {
            "error": {"status": "UNAUTHENTICATED", "message": "invalid authorization header"}
        }
        assert provider.requests == []

    def test_invalid_input_is_400(self, client):
        response = client.post("/flows/simpleGreeting", json={"data": {"name": "Sam"}}, headers=BEARER)
        assert response.status_code == 400
        assert response.json()["error"]["status"] == "INVALID_ARGUMENT"

    def test_upstream_error_is_502(self, client, provider):
        provider.error = ProviderError("bad gateway", "script", 500)
        response = client.post("/flows/simpleGreeting", json={"data": {"customerName": "Sam"}}, headers=BEARER)
        assert response.status_code == 502

    def test_unknown_flow_is_404(self, client):
        response = client.post("/flows/espresso", json={}, headers=BEARER)
        assert response.status_code == 404
        assert response.json() == {"detail": "flow not found: espresso"}

    def test_streaming(self, client):
        with client.stream(
            "POST",
            "/flows/simpleGreeting?stream=true",
            json={"data": {"customerName": "Sam"}},
            headers=BEARER,
        ) as response:
            assert response.status_code == 200
            assert response.headers["content-type"].startswith("text/event-stream")
            body = response.read().decode()

        events = _sse_events(body)
        messages = [e["message"] for e in events if "message" in e]
        assert len(messages) > 1
        assert events[-1] == {"result": "".join(messages)}

    def test_streaming_error_event(self, client):
        response = client.post(
            "/flows/simpleGreeting?stream=true",
            json={"data": {"customerName": "Sam"}},
            headers={"Authorization": "Basic xyz"},
        )
        events = _sse_events(response.text)
        assert events == [
            {"error": {"status": "UNAUTHENTICATED", "message": "invalid authorization header"}}
        ]

    def test_stream_flag_ignored_for_non_streaming_flow(self, client):
        payload = {"data": {"customerName": "Sam", "currentTime": "noon", "previousOrder": "Mocha"}}
        response = client.post("/flows/greetingWithHistory?stream=true", json=payload, headers=BEARER)
        assert response.json() == {"result": "Hi Sam, try a flat white."}


class TestOperationalEndpoints:
    """Test suite for health and metrics endpoints."""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == "0.1.0"
        assert data["default_model"] == "script/barista"
        assert {f["name"] for f in data["flows"]} == {
            "simpleGreeting",
            "greetingWithHistory",
            "testAllCoffeeFlows",
        }
        provider = data["providers"][0]
        assert (provider["name"], provider["models"], provider["healthy"]) == ("script", ["barista"], True)
        assert provider["latency_ms"] >= 0

    def test_unhealthy_provider_degrades(self, client, provider):
        provider.healthy = False
        data = client.get("/health").json()
        assert data["status"] == "degraded"
        assert data["providers"][0]["healthy"] is False

    def test_failing_health_check_degrades(self, client, provider):
        async def broken() -> bool:
            raise ProviderError("Health check failed", "script")

        provider.health_check = broken
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "degraded"

    def test_missing_runtime_degrades(self):
        client = TestClient(create_app())
        data = client.get("/health").json()
        assert data["status"] == "degraded"
        assert data["flows"] == []

    @respx.mock
    def test_openai_health_check(self):
        respx.get("https://api.openai.com/v1/models").mock(return_value=httpx.Response(200, json={"data": []}))
        registry = ProviderRegistry()
        registry.register(OpenAIProvider(api_key="sk-test"))
        client = TestClient(create_app(runtime=FlowRuntime(registry, default_model="openai/gpt-4o-mini")))
        data = client.get("/health").json()
        assert data["status"] == "healthy"
        assert data["providers"][0]["name"] == "openai"

    def test_metrics_exposed(self, client):
        client.post("/testAllCoffeeFlows", json={}, headers=BEARER)
        response = client.get("/prometheus/")
        assert response.status_code == 200
        assert "barista_flow_runs_total" in response.text


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

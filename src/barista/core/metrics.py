"""Prometheus metrics for flow runs and the authorization gate."""

from prometheus_client import Counter, Gauge, Histogram

barista_active_requests = Gauge(
    "barista_active_requests", "Number of active (in-flight) HTTP requests"
)

barista_flow_runs_total = Counter(
    "barista_flow_runs_total",
    "Total number of flow runs",
    ["flow", "outcome"],
)

barista_flow_duration_seconds = Histogram(
    "barista_flow_duration_seconds",
    "Flow run latency in seconds",
    ["flow"],
    buckets=[0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0],
)

barista_auth_rejections_total = Counter(
    "barista_auth_rejections_total",
    "Requests rejected by the authorization gate",
    ["reason"],
)

barista_model_calls_total = Counter(
    "barista_model_calls_total",
    "Model calls made by prompts",
    ["provider", "model", "mode"],
)


class BaristaMetrics:
    def record_flow_run(self, flow: str, outcome: str, duration: float) -> None:
        barista_flow_runs_total.labels(flow=flow, outcome=outcome).inc()
        barista_flow_duration_seconds.labels(flow=flow).observe(duration)

    def record_auth_rejection(self, reason: str) -> None:
        barista_auth_rejections_total.labels(reason=reason).inc()

    def record_model_call(self, provider: str, model: str, streaming: bool) -> None:
        barista_model_calls_total.labels(
            provider=provider, model=model, mode="stream" if streaming else "complete"
        ).inc()

    def increment_active_requests(self) -> None:
        barista_active_requests.inc()

    def decrement_active_requests(self) -> None:
        barista_active_requests.dec()


barista_metrics = BaristaMetrics()

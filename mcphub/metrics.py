"""Prometheus metrics for the gateway.

Each ``GatewayMetrics`` owns its own ``CollectorRegistry`` so that several
applications in one process never register the same collector twice.
"""

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Counter, Histogram, generate_latest


class GatewayMetrics:
    """Request, latency and rate-limit metrics for one application."""

    def __init__(self, registry: CollectorRegistry | None = None):
        self.registry = registry or CollectorRegistry()

        self.requests_total = Counter(
            "mcphub_requests_total",
            "Total MCP requests",
            ["integration", "method", "outcome"],
            registry=self.registry,
        )
        self.request_duration_seconds = Histogram(
            "mcphub_request_duration_seconds",
            "MCP request duration in seconds",
            ["integration", "method"],
            registry=self.registry,
        )
        self.rate_limit_hits_total = Counter(
            "mcphub_rate_limit_hits_total",
            "Total tool calls rejected by the rate limiter",
            ["integration"],
            registry=self.registry,
        )

    def record_request(self, integration: str, method: str, outcome: str, duration: float) -> None:
        """Record one handled request.

        Args:
            integration: Registered integration name, or "unknown".
            method: JSON-RPC method label.
            outcome: "success", "tool_error" or "error".
            duration: Wall-clock seconds spent in the dispatcher.
        """
        self.requests_total.labels(integration=integration, method=method, outcome=outcome).inc()
        self.request_duration_seconds.labels(integration=integration, method=method).observe(duration)

    def record_rate_limit_hit(self, integration: str) -> None:
        self.rate_limit_hits_total.labels(integration=integration).inc()

    def render(self) -> bytes:
        return generate_latest(self.registry)


__all__ = ["CONTENT_TYPE_LATEST", "GatewayMetrics"]

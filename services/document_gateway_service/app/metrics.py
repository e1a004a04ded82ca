"""Metrics definitions for the Document Gateway Service."""

from __future__ import annotations

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram


class GatewayMetrics:
    """A container for all Prometheus metrics for the Document Gateway Service."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        """Initialize metrics with optional registry for test isolation."""
        if registry is None:
            registry = REGISTRY
        self.operations_total = Counter(
            "document_gateway_operations_total",
            "Total number of gateway operations by outcome.",
            ["operation", "outcome"],
            registry=registry,
        )
        self.operation_duration_seconds = Histogram(
            "document_gateway_operation_duration_seconds",
            "Duration of gateway operations in seconds, backend calls included.",
            ["operation"],
            registry=registry,
        )
        self.backend_calls_total = Counter(
            "document_gateway_backend_calls_total",
            "Total number of calls to the document backend.",
            ["step", "status_code"],
            registry=registry,
        )
        self.pages_fetched = Histogram(
            "document_gateway_pages_fetched",
            "Number of backend pages merged into one response.",
            ["operation"],
            buckets=(1, 2, 3, 5, 10, 20, 50, 100),
            registry=registry,
        )

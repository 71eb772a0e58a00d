"""
Shared metrics configuration for the Zest Access services.
"""

from prometheus_client import Counter, Histogram, Info, CollectorRegistry, REGISTRY
from typing import Dict, Any, Optional
import threading


class MetricsCollector:
    """Centralized metrics collector for services.

    Metric names are prefixed with the service name so several services can
    share one registry (and one process, under test).
    """

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry if registry is not None else REGISTRY
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _name(self, metric: str) -> str:
        return f"{self.service_name}_{metric}"

    def _setup_metrics(self):
        """Set up common metrics for the service."""

        self._metrics["service_info"] = Info(
            self._name("service"),
            "Service information",
            registry=self.registry
        )
        self._metrics["service_info"].info({
            "service": self.service_name,
            "version": "1.0.0"
        })

        # HTTP metrics
        self._metrics["http_requests_total"] = Counter(
            self._name("http_requests_total"),
            "Total HTTP requests",
            ["method", "endpoint", "status_code"],
            registry=self.registry
        )

        self._metrics["http_request_duration_seconds"] = Histogram(
            self._name("http_request_duration_seconds"),
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            registry=self.registry
        )

        self._metrics["health_check_total"] = Counter(
            self._name("health_check_total"),
            "Total health check requests",
            ["status"],
            registry=self.registry
        )

        self._metrics["errors_total"] = Counter(
            self._name("errors_total"),
            "Total errors",
            ["error_type"],
            registry=self.registry
        )

        self._metrics["business_events_total"] = Counter(
            self._name("business_events_total"),
            "Total business events",
            ["event_type"],
            registry=self.registry
        )

        if self.service_name == "auth":
            self._setup_auth_metrics()
        elif self.service_name == "playground":
            self._setup_playground_metrics()

    def _setup_auth_metrics(self):
        """Set up auth-specific metrics."""
        self._metrics["token_validations_total"] = Counter(
            self._name("token_validations_total"),
            "Total token validations",
            ["status"],
            registry=self.registry
        )

        self._metrics["jwks_refresh_total"] = Counter(
            self._name("jwks_refresh_total"),
            "Total JWKS refreshes",
            ["status"],
            registry=self.registry
        )

        self._metrics["callback_outcomes_total"] = Counter(
            self._name("callback_outcomes_total"),
            "OAuth callback outcomes",
            ["outcome"],
            registry=self.registry
        )

        self._metrics["revocations_total"] = Counter(
            self._name("revocations_total"),
            "Global logout revocation attempts",
            ["status"],
            registry=self.registry
        )

    def _setup_playground_metrics(self):
        """Set up playground-specific metrics."""
        self._metrics["upstream_calls_total"] = Counter(
            self._name("upstream_calls_total"),
            "Calls to the execution and model APIs",
            ["upstream", "status"],
            registry=self.registry
        )

        self._metrics["upstream_call_duration_seconds"] = Histogram(
            self._name("upstream_call_duration_seconds"),
            "Upstream call duration in seconds",
            ["upstream"],
            registry=self.registry
        )

    def get_metric(self, name: str):
        """Get a metric by name."""
        return self._metrics.get(name)

    def record_http_request(self, method: str, endpoint: str, status_code: int, duration: float):
        """Record HTTP request metrics."""
        self._metrics["http_requests_total"].labels(
            method=method,
            endpoint=endpoint,
            status_code=str(status_code)
        ).inc()

        self._metrics["http_request_duration_seconds"].labels(
            method=method,
            endpoint=endpoint
        ).observe(duration)

    def record_health_check(self, status: str):
        """Record health check metrics."""
        self._metrics["health_check_total"].labels(status=status).inc()

    def record_error(self, error_type: str):
        """Record error metrics."""
        self._metrics["errors_total"].labels(error_type=error_type).inc()

    def record_business_event(self, event_type: str):
        """Record business event metrics."""
        self._metrics["business_events_total"].labels(event_type=event_type).inc()

    def increment_counter(self, metric_name: str, **labels):
        """Increment a counter metric."""
        if metric_name in self._metrics:
            self._metrics[metric_name].labels(**labels).inc()


_collectors: Dict[str, MetricsCollector] = {}
_collectors_lock = threading.Lock()


def get_metrics_collector(service_name: str) -> MetricsCollector:
    """Get the metrics collector for a service, registering it on first use."""
    with _collectors_lock:
        if service_name not in _collectors:
            _collectors[service_name] = MetricsCollector(service_name)
        return _collectors[service_name]

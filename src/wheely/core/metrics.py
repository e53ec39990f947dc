"""
Prometheus metrics collection.

Each collector owns its registry so several applications (tests) can
live in one process without duplicate registration.
"""

from typing import Optional

import structlog
from prometheus_client import CollectorRegistry, Counter, Histogram, Info

logger = structlog.get_logger(__name__)


class MetricsCollector:
    """
    Centralized metrics collection for the Wheely API.

    Keep metrics simple,
    use in-memory counters, let Prometheus handle storage.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None, version: str = "1.0.0") -> None:
        self.registry = registry or CollectorRegistry()

        # Service info
        self.service_info = Info(
            "wheely_service",
            "Wheely API service information",
            registry=self.registry,
        )
        self.service_info.info({
            "version": version,
            "service": "wheely",
        })

        # Request metrics
        self.requests_total = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status_code"],
            registry=self.registry,
        )

        self.request_duration = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
            registry=self.registry,
        )

        # Rules engine metrics
        self.rule_failures_total = Counter(
            "rule_failures_total",
            "Operations rejected by the rules engines",
            ["entity", "kind"],
            registry=self.registry,
        )

        self.accounts_created_total = Counter(
            "accounts_created_total",
            "Accounts registered",
            registry=self.registry,
        )

        self.reports_created_total = Counter(
            "reports_created_total",
            "Reports submitted",
            ["category"],
            registry=self.registry,
        )

        self.login_attempts_total = Counter(
            "login_attempts_total",
            "Login attempts by result",
            ["result"],
            registry=self.registry,
        )

        self.rate_limited_total = Counter(
            "rate_limited_requests_total",
            "Requests rejected by login throttling",
            registry=self.registry,
        )

        logger.debug("Metrics collector initialized")

    def record_request(self, method: str, endpoint: str, status_code: int, duration: float) -> None:
        self.requests_total.labels(method=method, endpoint=endpoint, status_code=str(status_code)).inc()
        self.request_duration.labels(method=method, endpoint=endpoint).observe(duration)

    def record_rule_failure(self, entity: str, kind: str) -> None:
        self.rule_failures_total.labels(entity=entity, kind=kind).inc()

    def record_account_created(self) -> None:
        self.accounts_created_total.inc()

    def record_report_created(self, category: str) -> None:
        self.reports_created_total.labels(category=category).inc()

    def record_login(self, success: bool) -> None:
        self.login_attempts_total.labels(result="success" if success else "failure").inc()

    def record_rate_limited(self) -> None:
        self.rate_limited_total.inc()

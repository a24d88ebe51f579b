"""
Prometheus metrics module for LabHub.

Service timings come from ``BaseService.measure_operation``; the lab booking
engine adds counters for booking outcomes and named-lock acquisitions. All
series live on a custom registry so tests and multiple app instances do not
collide with the default global one.
"""

from threading import Lock
from time import monotonic
from typing import Optional, cast

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "labhub_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "labhub_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "labhub_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

lab_bookings_total = Counter(
    "labhub_lab_bookings_total",
    "Lab booking lifecycle events by outcome",
    ["event", "outcome"],  # event: create|cancel|approve|...; outcome: status or error code
    registry=REGISTRY,
)

lab_lock_events_total = Counter(
    "labhub_lab_lock_events_total",
    "Named lock operations by backend and outcome",
    ["backend", "action", "outcome"],
    registry=REGISTRY,
)

lab_lock_wait_seconds = Histogram(
    "labhub_lab_lock_wait_seconds",
    "Time spent waiting for a named lock",
    ["backend"],
    registry=REGISTRY,
    buckets=(0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0),
)


class PrometheusMetrics:
    """Manages Prometheus metrics collection and exposure."""

    _cache_lock: Lock = Lock()
    _cache_payload: Optional[bytes] = None
    _cache_ts: Optional[float] = None
    _cache_ttl_seconds: float = 1.0

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str = "success",
        error_type: Optional[str] = None,
    ) -> None:
        """
        Record service operation metrics from the measure_operation decorator.

        Args:
            service: Service name (e.g., 'LabBookingService')
            operation: Operation/method name (e.g., 'create_booking')
            duration: Operation duration in seconds
            status: Operation status ('success' or 'error')
            error_type: Type of error if status is 'error'
        """
        service_operation_duration_seconds.labels(service=service, operation=operation).observe(
            duration
        )
        service_operations_total.labels(service=service, operation=operation, status=status).inc()
        if status == "error" and error_type:
            errors_total.labels(service=service, operation=operation, error_type=error_type).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def record_lab_booking_event(event: str, outcome: str) -> None:
        lab_bookings_total.labels(event=event, outcome=outcome).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def record_lab_lock(
        backend: str, action: str, outcome: str, wait_seconds: Optional[float] = None
    ) -> None:
        """Count a lock acquire/release; acquisitions also observe wait time."""
        lab_lock_events_total.labels(backend=backend, action=action, outcome=outcome).inc()
        if wait_seconds is not None:
            lab_lock_wait_seconds.labels(backend=backend).observe(max(wait_seconds, 0.0))
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def get_metrics() -> bytes:
        """
        Generate Prometheus metrics in exposition format.

        Returns:
            Metrics data in Prometheus text format
        """
        now = monotonic()
        with PrometheusMetrics._cache_lock:
            payload = PrometheusMetrics._cache_payload
            ts = PrometheusMetrics._cache_ts
            if payload is None or ts is None or (now - ts) > PrometheusMetrics._cache_ttl_seconds:
                payload = cast(bytes, generate_latest(REGISTRY))
                PrometheusMetrics._cache_payload = payload
                PrometheusMetrics._cache_ts = monotonic()
        return payload

    @staticmethod
    def get_content_type() -> str:
        return cast(str, CONTENT_TYPE_LATEST)

    @staticmethod
    def _invalidate_cache() -> None:
        """Invalidate cached metrics so next scrape refreshes."""
        with PrometheusMetrics._cache_lock:
            PrometheusMetrics._cache_ts = None
            PrometheusMetrics._cache_payload = None


# Singleton instance
prometheus_metrics = PrometheusMetrics()

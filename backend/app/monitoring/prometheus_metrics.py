"""
Prometheus metrics module for GarageBook.

Service operation metrics are fed by the @measure_operation decorator;
booking-specific counters are recorded by the lifecycle services.
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

# Create a custom registry to avoid conflicts with default metrics
REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "garagebook_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "garagebook_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "garagebook_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

booking_transitions_total = Counter(
    "garagebook_booking_transitions_total",
    "Booking status transitions by source and target status",
    ["from_status", "to_status"],
    registry=REGISTRY,
)

booking_conflicts_total = Counter(
    "garagebook_booking_conflicts_total",
    "Booking requests rejected because the mechanic slot was taken",
    ["operation", "source"],  # source: check | constraint
    registry=REGISTRY,
)

schedule_lock_total = Counter(
    "garagebook_schedule_lock_total",
    "Mechanic scheduling lock operations by outcome",
    ["action", "outcome"],
    registry=REGISTRY,
)

notifications_total = Counter(
    "garagebook_notifications_total",
    "Booking notifications by event kind and terminal status",
    ["event_kind", "status"],  # sent | failed | skipped
    registry=REGISTRY,
)

notifications_dispatch_seconds = Histogram(
    "garagebook_notifications_dispatch_seconds",
    "Notification sender dispatch duration in seconds",
    ["event_kind"],
    registry=REGISTRY,
    buckets=(0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
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
        Record service operation metrics from @measure_operation decorator.

        Args:
            service: Service name (e.g., 'BookingService')
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
    def record_booking_transition(from_status: str, to_status: str) -> None:
        """Count a committed booking status change."""
        booking_transitions_total.labels(from_status=from_status, to_status=to_status).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def record_booking_conflict(operation: str, source: str = "check") -> None:
        """Count a rejected booking write (application check or storage constraint)."""
        booking_conflicts_total.labels(operation=operation, source=source).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def record_schedule_lock(action: str, outcome: str) -> None:
        """Record a scheduling lock acquire/release outcome."""
        schedule_lock_total.labels(action=action, outcome=outcome).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def record_notification_outcome(event_kind: str, status: str) -> None:
        """Record terminal outcome for a booking notification."""
        notifications_total.labels(event_kind=event_kind, status=status).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def observe_notification_dispatch(event_kind: str, duration: float) -> None:
        """Observe sender dispatch duration."""
        notifications_dispatch_seconds.labels(event_kind=event_kind).observe(max(duration, 0.0))
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def get_metrics() -> bytes:
        """
        Generate Prometheus metrics in exposition format.

        Returns:
            Metrics data in Prometheus text format
        """
        now = monotonic()
        payload = PrometheusMetrics._cache_payload
        ts = PrometheusMetrics._cache_ts
        ttl = PrometheusMetrics._cache_ttl_seconds

        if payload is not None and ts is not None and (now - ts) <= ttl:
            return payload

        with PrometheusMetrics._cache_lock:
            PrometheusMetrics._cache_payload = cast(bytes, generate_latest(REGISTRY))
            PrometheusMetrics._cache_ts = monotonic()
            return PrometheusMetrics._cache_payload

    @staticmethod
    def get_content_type() -> str:
        """Get the content type for Prometheus metrics."""
        return cast(str, CONTENT_TYPE_LATEST)

    @staticmethod
    def _invalidate_cache() -> None:
        """Invalidate cached metrics so next scrape refreshes."""

        with PrometheusMetrics._cache_lock:
            PrometheusMetrics._cache_ts = None
            PrometheusMetrics._cache_payload = None


# Singleton instance
prometheus_metrics = PrometheusMetrics()

"""
Prometheus metrics for the Razorpay provider.

Tracks:
- Gateway API request counts, errors and durations
- Webhook events by type and resulting action
- Signature verification failures
- Session status transitions per operation
"""
from prometheus_client import Counter, Histogram

# Gateway API metrics
gateway_requests_total = Counter(
    "razorpay_gateway_requests_total",
    "Total Razorpay API requests",
    ["operation", "status"],  # status: success, error
)

gateway_errors_total = Counter(
    "razorpay_gateway_errors_total",
    "Total Razorpay API errors",
    ["operation", "error_type"],  # bad_request, gateway, server, transport
)

gateway_request_duration_seconds = Histogram(
    "razorpay_gateway_request_duration_seconds",
    "Razorpay API call duration in seconds",
    ["operation"],
    buckets=(0.1, 0.25, 0.5, 0.75, 1.0, 2.5, 5.0, 7.5, 10.0),
)

# Webhook metrics
webhook_events_total = Counter(
    "razorpay_webhook_events_total",
    "Total webhook events handled",
    ["event_type", "action"],
)

webhook_processing_duration_seconds = Histogram(
    "razorpay_webhook_processing_duration_seconds",
    "Webhook processing duration in seconds",
    ["event_type"],
    buckets=(0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0),
)

# Authenticity metrics
signature_failures_total = Counter(
    "razorpay_signature_failures_total",
    "Total failed signature verifications",
    ["kind"],  # payment, webhook
)

# Session metrics
session_transitions_total = Counter(
    "razorpay_session_transitions_total",
    "Session operation outcomes",
    ["operation", "status"],
)


class MetricsCollector:
    """Helper class for collecting metrics."""

    @staticmethod
    def record_gateway_call(operation: str, status: str, duration_seconds: float) -> None:
        """Record a gateway API call."""
        gateway_requests_total.labels(operation=operation, status=status).inc()
        gateway_request_duration_seconds.labels(operation=operation).observe(duration_seconds)

    @staticmethod
    def record_gateway_error(operation: str, error_type: str) -> None:
        """Record a classified gateway error."""
        gateway_errors_total.labels(operation=operation, error_type=error_type).inc()

    @staticmethod
    def record_webhook_event(event_type: str, action: str, duration_seconds: float) -> None:
        """Record webhook event processing."""
        webhook_events_total.labels(event_type=event_type, action=action).inc()
        webhook_processing_duration_seconds.labels(event_type=event_type).observe(
            duration_seconds
        )

    @staticmethod
    def record_signature_failure(kind: str) -> None:
        """Record a rejected signature."""
        signature_failures_total.labels(kind=kind).inc()

    @staticmethod
    def record_session_transition(operation: str, status: str) -> None:
        """Record the status an operation produced."""
        session_transitions_total.labels(operation=operation, status=status).inc()


# Export singleton instance
metrics = MetricsCollector()

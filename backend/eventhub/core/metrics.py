"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Registration metrics
registration_attempts = Counter(
    'registration_attempts_total',
    'Total event registration attempts',
    ['path', 'result']  # path: free, paid / result: success, duplicate, full, closed, error
)

registration_latency = Histogram(
    'registration_latency_seconds',
    'Registration request latency',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

ticket_number_retries = Counter(
    'ticket_number_retries_total',
    'Ticket inserts retried because the generated ticket number collided'
)

# Moderation metrics
event_transitions = Counter(
    'event_transitions_total',
    'Event status transitions applied',
    ['action']
)

location_transitions = Counter(
    'location_transitions_total',
    'Location moderation actions applied',
    ['action']
)

events_finished = Counter(
    'events_marked_finished_total',
    'Published events moved to finished by the sweep'
)

# Side effects
notifications = Counter(
    'notifications_total',
    'Outbound notifications',
    ['kind', 'result']  # result: sent, failed
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


# Convenience functions for instrumentation
def record_registration(path: str, result: str):
    """Record registration attempt. Result: success, duplicate, full, closed, error"""
    registration_attempts.labels(path=path, result=result).inc()


def record_transition(action: str):
    event_transitions.labels(action=action).inc()


def record_location_transition(action: str):
    location_transitions.labels(action=action).inc()


def record_notification(kind: str, sent: bool):
    notifications.labels(kind=kind, result="sent" if sent else "failed").inc()


def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()

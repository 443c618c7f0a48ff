"""
Prometheus metrics for the Toggl sync layer.

Counters live in the default registry; the host decides whether and where to
expose them.
"""
from prometheus_client import Counter


requests_total = Counter(
    "toggl_requests_total",
    "Total number of requests sent to the Toggl APIs",
    ["api", "method", "status"],
)

notifications_total = Counter(
    "toggl_notifications_total",
    "Total number of user-visible error notifications raised",
    ["operation"],
)

queued_operations_total = Counter(
    "toggl_queued_operations_total",
    "Total number of operations admitted to the request queue",
)

"""Prometheus metrics for criteria commands, conflicts and HTTP latency"""

from prometheus_client import Counter, Histogram

# Command metrics
command_counter = Counter(
    "provisioning_criteria_commands_total",
    "Provisioning criteria write commands",
    ["action", "outcome"],  # create | update | delete, success | rejected | failed
)

conflict_counter = Counter(
    "provisioning_criteria_conflicts_total",
    "Database constraint violations raised by criteria writes",
    ["kind"],  # criteria_name | product_association | other
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_command(action: str, outcome: str) -> None:
    command_counter.labels(action=action, outcome=outcome).inc()


def record_conflict(kind: str) -> None:
    conflict_counter.labels(kind=kind).inc()

"""Prometheus metrics for the OTC Network Operator."""

from prometheus_client import Counter, Histogram

# Reconciliation metrics
reconcile_total = Counter(
    "otc_network_operator_reconcile_total",
    "Total number of reconciliations",
    ["kind", "result"],
)

reconcile_duration_seconds = Histogram(
    "otc_network_operator_reconcile_duration_seconds",
    "Duration of reconciliations in seconds",
    ["kind"],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

error_total = Counter(
    "otc_network_operator_error_total",
    "Total number of reconciliation errors",
    ["kind", "error_type"],
)

resource_status_total = Counter(
    "otc_network_operator_resource_status_total",
    "Observed resource conditions",
    ["kind", "status"],
)

# Lifecycle metrics
drift_detected_total = Counter(
    "otc_network_operator_drift_detected_total",
    "Total number of configuration drift detections",
    ["kind"],
)

late_initialized_total = Counter(
    "otc_network_operator_late_initialized_total",
    "Total number of specs backfilled from observed state",
    ["kind"],
)

external_operations_total = Counter(
    "otc_network_operator_external_operations_total",
    "Total number of lifecycle operations against the provider",
    ["kind", "operation", "result"],
)

# Session metrics
session_cache_total = Counter(
    "otc_network_operator_session_cache_total",
    "Session cache lookups",
    ["result"],
)

authentication_total = Counter(
    "otc_network_operator_authentication_total",
    "Authentication handshakes against the identity service",
    ["result"],
)

# API call metrics
api_call_total = Counter(
    "otc_network_operator_api_call_total",
    "Total number of provider API calls",
    ["service", "method", "result"],
)

api_call_duration_seconds = Histogram(
    "otc_network_operator_api_call_duration_seconds",
    "Duration of provider API calls in seconds",
    ["service", "method"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0],
)

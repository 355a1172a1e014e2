"""Prometheus metrics definitions.

Permission decisions and session loads. Exposition is left to the host
application (it owns the HTTP surface); `metrics_text()` renders the registry.
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram, generate_latest

# --- Decision metrics ---

permission_checks_total = Counter(
    "fleet_rbac_permission_checks_total",
    "Permission decisions made by the evaluator",
    ["result"],  # allow, deny
)

session_checks_denied_total = Counter(
    "fleet_rbac_session_checks_denied_total",
    "Session checks denied before any evaluation",
    ["reason"],  # not_initialized, restriction
)

# --- Load metrics ---

permission_loads_total = Counter(
    "fleet_rbac_permission_loads_total",
    "Permission loads by outcome",
    ["status"],  # success, error, superseded, cancelled
)

permission_load_seconds = Histogram(
    "fleet_rbac_permission_load_seconds",
    "Time to fetch and resolve a user's permissions",
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

permission_cache_total = Counter(
    "fleet_rbac_permission_cache_total",
    "Shared permission cache lookups",
    ["result"],  # hit, miss, error
)


def metrics_text() -> bytes:
    """Render all metrics in Prometheus exposition format."""
    return generate_latest()

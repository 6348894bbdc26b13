"""Prometheus metrics for SiteVerify.

Defines operational metrics for the verification workflow.
"""

from prometheus_client import Counter, Histogram

# Workflow transitions (accepted and denied attempts)
workflow_transitions_total = Counter(
    "siteverify_workflow_transitions_total",
    "Total verification workflow transition attempts",
    ["action", "outcome"]  # outcome: accepted|denied
)

# Geofence checks
geofence_checks_total = Counter(
    "siteverify_geofence_checks_total",
    "Total geofence evaluations gating moderator findings",
    ["verdict"]  # verdict: within_range|out_of_range|override
)

geofence_distance_meters = Histogram(
    "siteverify_geofence_distance_meters",
    "Distance between moderator and address at findings submission",
    buckets=[5, 10, 25, 50, 100, 250, 500, 1000, 5000, 25000]
)

# Bulk import
import_rows_total = Counter(
    "siteverify_import_rows_total",
    "Rows processed by bulk import",
    ["result"]  # result: created|failed|geocode_pending
)

# External collaborators
external_call_failures_total = Counter(
    "siteverify_external_call_failures_total",
    "Failed or timed out calls to external collaborators",
    ["service"]  # service: geocoder|photo_storage|notification
)

# HTTP surface
http_request_duration_seconds = Histogram(
    "siteverify_http_request_duration_seconds",
    "HTTP request latency by route template",
    ["method", "route", "status"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10]
)

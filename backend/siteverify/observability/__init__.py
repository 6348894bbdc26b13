"""Observability module for SiteVerify.

Provides structured logging, request correlation and Prometheus metrics.
"""

from .logging_config import configure_logging, get_logger
from .metrics import (
    workflow_transitions_total,
    geofence_checks_total,
    geofence_distance_meters,
    import_rows_total,
    external_call_failures_total,
    http_request_duration_seconds,
)
from .request_id import (
    request_id_var,
    get_request_id,
    set_request_id,
    accept_request_id,
    bind_context,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "workflow_transitions_total",
    "geofence_checks_total",
    "geofence_distance_meters",
    "import_rows_total",
    "external_call_failures_total",
    "http_request_duration_seconds",
    "request_id_var",
    "get_request_id",
    "set_request_id",
    "accept_request_id",
    "bind_context",
]

"""Append-only audit trail for verification workflow events"""

from .service import (
    AuditRecorder,
    OUTCOME_ACCEPTED,
    OUTCOME_DENIED,
    record_transition,
    record_denial,
    record_failed_attempt,
    get_document_history,
)

__all__ = [
    "AuditRecorder",
    "OUTCOME_ACCEPTED",
    "OUTCOME_DENIED",
    "record_transition",
    "record_denial",
    "record_failed_attempt",
    "get_document_history",
]

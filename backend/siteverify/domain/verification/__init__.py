"""Verification domain module - document lifecycle, findings, error taxonomy"""

from .status import (
    VerificationStatus,
    WorkflowAction,
    Decision,
    ALLOWED_TRANSITIONS,
    OVERRIDE_TRANSITIONS,
    TERMINAL_STATES,
    NON_TERMINAL_STATES,
    can_transition,
    resolve_transition,
    is_terminal,
)
from .models import Actor, ModeratorFindings, normalize_region
from .errors import (
    VerificationError,
    ValidationError,
    InvalidCoordinates,
    CapacityExceeded,
    DenialReason,
    AuthorizationError,
    GeofenceViolation,
    ConcurrentModification,
    IllegalTransition,
    TerminalStateViolation,
    ExternalServiceFailure,
    RegistrationCodeNotFound,
    RegistrationCodeConsumed,
)

__all__ = [
    "VerificationStatus",
    "WorkflowAction",
    "Decision",
    "ALLOWED_TRANSITIONS",
    "OVERRIDE_TRANSITIONS",
    "TERMINAL_STATES",
    "NON_TERMINAL_STATES",
    "can_transition",
    "resolve_transition",
    "is_terminal",
    "Actor",
    "ModeratorFindings",
    "normalize_region",
    "VerificationError",
    "ValidationError",
    "InvalidCoordinates",
    "CapacityExceeded",
    "DenialReason",
    "AuthorizationError",
    "GeofenceViolation",
    "ConcurrentModification",
    "IllegalTransition",
    "TerminalStateViolation",
    "ExternalServiceFailure",
    "RegistrationCodeNotFound",
    "RegistrationCodeConsumed",
]

"""Error taxonomy for the verification workflow.

Every failure raised by the workflow engine derives from VerificationError.
The class name doubles as the ``failure_kind`` tag written to the audit
trail and as the ``reason`` reported for bulk import rows.
"""

from enum import Enum
from typing import Optional


class VerificationError(Exception):
    """Base exception for verification workflow failures."""

    @property
    def kind(self) -> str:
        """Stable failure tag recorded in audit events."""
        return type(self).__name__


class ValidationError(VerificationError):
    """Bad input shape (missing field, malformed value, unknown target)."""
    pass


class InvalidCoordinates(ValidationError):
    """Coordinate is null, NaN, infinite or out of range."""
    pass


class CapacityExceeded(ValidationError):
    """Moderator already holds the configured maximum of open assignments."""
    pass


class DenialReason(str, Enum):
    """Reasons the Authorization Guard can deny an action."""
    ROLE_NOT_PERMITTED = "RoleNotPermitted"
    JURISDICTION_MISMATCH = "JurisdictionMismatch"
    NOT_ASSIGNED_MODERATOR = "NotAssignedModerator"
    DOCUMENT_NOT_FOUND = "DocumentNotFound"


class AuthorizationError(VerificationError):
    """Role, jurisdiction or assignment mismatch."""

    def __init__(self, reason: DenialReason, message: Optional[str] = None):
        self.reason = reason
        super().__init__(message or reason.value)


class GeofenceViolation(VerificationError):
    """Actor is farther from the target than the configured radius."""

    def __init__(self, distance_meters: float, radius_meters: float):
        self.distance_meters = distance_meters
        self.radius_meters = radius_meters
        super().__init__(
            f"Actor is {distance_meters:.1f} m from the address "
            f"(allowed radius {radius_meters:.1f} m)"
        )


class ConcurrentModification(VerificationError):
    """Document status changed between read and conditional write."""
    pass


class IllegalTransition(VerificationError):
    """Transition is not part of the document state machine."""
    pass


class TerminalStateViolation(IllegalTransition):
    """Document is verified or rejected; no further transitions."""
    pass


class ExternalServiceFailure(VerificationError):
    """Geocoding or storage collaborator failed or timed out."""
    pass


class RegistrationCodeNotFound(VerificationError):
    """Registration code does not exist."""
    pass


class RegistrationCodeConsumed(VerificationError):
    """Registration code was already used to create an account."""
    pass

"""SQLAlchemy Models for SiteVerify"""

from .base import Base, PortableJSONB
from .user import User
from .registration_code import RegistrationCode
from .verification_document import VerificationDocument
from .audit_event import AuditEvent

__all__ = [
    "Base",
    "PortableJSONB",
    "User",
    "RegistrationCode",
    "VerificationDocument",
    "AuditEvent",
]

"""RegistrationCode SQLAlchemy model"""

from sqlalchemy import Column, Text, Boolean, CheckConstraint
from sqlalchemy.types import DateTime

from .base import Base, utcnow, isoformat


class RegistrationCode(Base):
    """One-time invite code consumed during account creation.

    Carries the target role and the identity fields pre-filled by the admin.
    Once consumed a code is permanently invalid.
    """
    __tablename__ = "registration_code"

    code = Column(Text, primary_key=True)
    role = Column(Text, nullable=False)
    full_name = Column(Text, nullable=False)
    email = Column(Text, nullable=False)
    phone_number = Column(Text, nullable=True)
    organization = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    created_by = Column(Text, nullable=True)
    consumed = Column(Boolean, nullable=False, default=False)
    consumed_at = Column(DateTime(timezone=True), nullable=True)
    consumed_by = Column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint("role IN ('user', 'moderator')", name='ck_registration_code_role'),
    )

    def to_dict(self):
        """Persisted registration code schema"""
        return {
            "code": self.code,
            "role": self.role,
            "fullName": self.full_name,
            "email": self.email,
            "phoneNumber": self.phone_number,
            "organization": self.organization,
            "createdAt": isoformat(self.created_at),
            "consumed": bool(self.consumed),
        }

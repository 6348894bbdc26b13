"""User SQLAlchemy model"""

from sqlalchemy import Column, Text, CheckConstraint, Index
from sqlalchemy.types import DateTime
from sqlalchemy.orm import validates
import re

from .base import Base, utcnow, isoformat

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


class User(Base):
    """User model for submitters, field moderators and admins.

    The id is the external identity reference issued by the claims provider.
    Moderators carry the jurisdiction (region) they may act within. Role and
    jurisdiction change only through admin action.
    """
    __tablename__ = "app_user"

    id = Column(Text, primary_key=True)
    role = Column(Text, nullable=False)
    jurisdiction = Column(Text, nullable=True)
    full_name = Column(Text, nullable=False)
    email = Column(Text, nullable=False)
    phone_number = Column(Text, nullable=True)
    organization = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint(
            "role IN ('submitter', 'moderator', 'admin')",
            name='ck_app_user_role'
        ),
        Index("ix_app_user_role_jurisdiction", "role", "jurisdiction"),
    )

    @validates('email')
    def validate_email(self, key, value):
        """Basic email format validation"""
        if not EMAIL_PATTERN.match(value or ''):
            raise ValueError("Invalid email format")
        return value.lower()

    def to_dict(self):
        """Convert user to dictionary representation"""
        return {
            "id": self.id,
            "role": self.role,
            "jurisdiction": self.jurisdiction,
            "full_name": self.full_name,
            "email": self.email,
            "phone_number": self.phone_number,
            "organization": self.organization,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }

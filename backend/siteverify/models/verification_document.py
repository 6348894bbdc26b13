"""VerificationDocument SQLAlchemy model

A VerificationDocument is one contact address going through the
submit → field visit → admin decision lifecycle. Documents are never
physically deleted; verified and rejected are terminal.
"""

import uuid

from sqlalchemy import Column, Text, Boolean, Float, CheckConstraint, Index, Uuid
from sqlalchemy.types import DateTime

from .base import Base, utcnow, isoformat
from ..domain.verification.status import VerificationStatus


_STATUS_VALUES = ", ".join(f"'{s.value}'" for s in VerificationStatus)


class VerificationDocument(Base):
    """Verification document model.

    Status and sub-fields are correlated:
    - assigned_to_moderator implies assigned_moderator_id is set
    - moderator_verified / verification_failed imply findings are set
    - verified / rejected imply decision metadata is set
    """
    __tablename__ = "verification_document"
    __table_args__ = (
        CheckConstraint(f"status IN ({_STATUS_VALUES})", name="ck_verification_document_status"),
        Index("ix_verification_document_submitter", "submitter_id"),
        Index("ix_verification_document_status", "status"),
        Index("ix_verification_document_moderator_status", "assigned_moderator_id", "status"),
        Index("ix_verification_document_created", "created_at", "id"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    submitter_id = Column(Text, nullable=False)

    # Contact and raw address (import schema)
    full_name = Column(Text, nullable=False)
    email = Column(Text, nullable=True)
    phone = Column(Text, nullable=True)
    street = Column(Text, nullable=False)
    city = Column(Text, nullable=False)
    state = Column(Text, nullable=False)
    country = Column(Text, nullable=False)

    # Geocoding
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    region = Column(Text, nullable=True)
    geocode_pending = Column(Boolean, nullable=False, default=False)

    status = Column(Text, nullable=False, default=VerificationStatus.PENDING_ASSIGNMENT.value)
    assigned_moderator_id = Column(Text, nullable=True)
    assigned_at = Column(DateTime(timezone=True), nullable=True)

    # Moderator findings
    address_exists = Column(Boolean, nullable=True)
    building_type = Column(Text, nullable=True)
    occupant_met = Column(Boolean, nullable=True)
    relationship = Column(Text, nullable=True)
    comments = Column(Text, nullable=True)
    photo_reference = Column(Text, nullable=True)
    findings_distance_meters = Column(Float, nullable=True)
    findings_submitted_at = Column(DateTime(timezone=True), nullable=True)

    # Admin decision
    decided_by = Column(Text, nullable=True)
    decided_at = Column(DateTime(timezone=True), nullable=True)
    decision_notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    @property
    def address_text(self) -> str:
        """Single-line address handed to the geocoder"""
        parts = [self.street, self.city, self.state, self.country]
        return ", ".join(p for p in parts if p)

    @property
    def has_findings(self) -> bool:
        return self.address_exists is not None

    @property
    def has_decision(self) -> bool:
        return self.decided_by is not None and self.decided_at is not None

    def to_dict(self):
        """Convert document to dictionary representation"""
        return {
            "id": str(self.id),
            "submitter_id": self.submitter_id,
            "full_name": self.full_name,
            "email": self.email,
            "phone": self.phone,
            "street": self.street,
            "city": self.city,
            "state": self.state,
            "country": self.country,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "region": self.region,
            "geocode_pending": bool(self.geocode_pending),
            "status": self.status,
            "assigned_moderator_id": self.assigned_moderator_id,
            "assigned_at": isoformat(self.assigned_at),
            "findings": {
                "address_exists": self.address_exists,
                "building_type": self.building_type,
                "occupant_met": self.occupant_met,
                "relationship": self.relationship,
                "comments": self.comments,
                "photo_reference": self.photo_reference,
                "distance_meters": self.findings_distance_meters,
                "submitted_at": isoformat(self.findings_submitted_at),
            } if self.has_findings else None,
            "decision": {
                "decided_by": self.decided_by,
                "decided_at": isoformat(self.decided_at),
                "notes": self.decision_notes,
            } if self.has_decision else None,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }

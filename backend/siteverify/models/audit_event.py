"""AuditEvent SQLAlchemy model"""

from sqlalchemy import Column, Text, Boolean, BigInteger, Integer, Index
from sqlalchemy.types import DateTime

from .base import Base, PortableJSONB, utcnow, isoformat


class AuditEvent(Base):
    """Immutable record of one accepted or denied transition attempt.

    Entries are append-only and should never be updated or deleted. The
    integer primary key is monotonic, which gives the strict per-document
    ordering of the prior-status chain. Denied attempts keep
    new_status == prior_status.
    """
    __tablename__ = "audit_event"
    __table_args__ = (
        Index("ix_audit_event_document_id", "document_id", "id"),
        Index("ix_audit_event_actor_id", "actor_id"),
    )

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    document_id = Column(Text, nullable=True)
    actor_id = Column(Text, nullable=True)
    actor_role = Column(Text, nullable=True)
    action = Column(Text, nullable=False)
    prior_status = Column(Text, nullable=True)
    new_status = Column(Text, nullable=True)
    outcome = Column(Text, nullable=False)
    failure_kind = Column(Text, nullable=True)
    override = Column(Boolean, nullable=False, default=False)
    payload = Column(PortableJSONB, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self):
        """Convert audit event to dictionary representation"""
        return {
            "id": self.id,
            "document_id": self.document_id,
            "actor_id": self.actor_id,
            "actor_role": self.actor_role,
            "action": self.action,
            "prior_status": self.prior_status,
            "new_status": self.new_status,
            "outcome": self.outcome,
            "failure_kind": self.failure_kind,
            "override": bool(self.override),
            "payload": self.payload,
            "created_at": isoformat(self.created_at),
        }

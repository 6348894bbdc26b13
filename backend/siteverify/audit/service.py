"""Audit trail recorder for verification workflow events.

Every accepted or denied transition attempt produces exactly one
AuditEvent. Entries are append-only: this module offers no update or
delete operation.

Accepted transitions are recorded in the same transaction as the document
write, so either both land or neither does. Denials are recorded after the
failed attempt has been rolled back.
"""

import logging
from typing import Optional, Dict, Any, Union

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..models.audit_event import AuditEvent
from ..domain.verification.errors import GeofenceViolation, VerificationError
from ..domain.verification.models import Actor
from ..domain.verification.status import VerificationStatus, WorkflowAction
from ..observability.metrics import workflow_transitions_total

logger = logging.getLogger(__name__)

OUTCOME_ACCEPTED = "accepted"
OUTCOME_DENIED = "denied"

StatusLike = Optional[Union[VerificationStatus, str]]


def _status_value(status: StatusLike) -> Optional[str]:
    if status is None:
        return None
    return VerificationStatus(status).value


def record_transition(
    db: Session,
    document_id: Any,
    actor: Actor,
    action: WorkflowAction,
    prior_status: StatusLike,
    new_status: StatusLike,
    override: bool = False,
    payload: Optional[Dict[str, Any]] = None,
) -> AuditEvent:
    """Append an accepted-transition event (flush only, caller commits).

    Args:
        db: Database session (same transaction as the document write)
        document_id: Document the transition applied to
        actor: Caller identity
        action: Workflow action performed
        prior_status: Status before the transition (None on creation)
        new_status: Status after the transition
        override: Whether an admin override was in effect
        payload: Snapshot relevant to the transition (e.g. geofence distance)

    Returns:
        AuditEvent: The created audit event
    """
    event = AuditEvent(
        document_id=str(document_id) if document_id is not None else None,
        actor_id=actor.user_id,
        actor_role=actor.role,
        action=WorkflowAction(action).value,
        prior_status=_status_value(prior_status),
        new_status=_status_value(new_status),
        outcome=OUTCOME_ACCEPTED,
        override=bool(override),
        payload=payload or {},
    )
    db.add(event)
    db.flush()

    workflow_transitions_total.labels(action=event.action, outcome=OUTCOME_ACCEPTED).inc()
    return event


def record_denial(
    db: Session,
    document_id: Any,
    actor: Actor,
    action: WorkflowAction,
    prior_status: StatusLike,
    failure_kind: str,
    override: bool = False,
    payload: Optional[Dict[str, Any]] = None,
) -> AuditEvent:
    """Append a denied-attempt event and commit it.

    The document is unchanged, so new_status repeats prior_status and the
    prior-status chain stays intact.

    Args:
        db: Database session (any failed work must already be rolled back)
        failure_kind: Error class name (e.g. "GeofenceViolation")
        payload: Snapshot of the attempt (reason, distance, message, ...)
    """
    status_value = _status_value(prior_status)
    event = AuditEvent(
        document_id=str(document_id) if document_id is not None else None,
        actor_id=actor.user_id,
        actor_role=actor.role,
        action=WorkflowAction(action).value,
        prior_status=status_value,
        new_status=status_value,
        outcome=OUTCOME_DENIED,
        failure_kind=failure_kind,
        override=bool(override),
        payload=payload or {},
    )
    db.add(event)
    db.commit()

    workflow_transitions_total.labels(action=event.action, outcome=OUTCOME_DENIED).inc()
    logger.info(
        f"Denied {event.action} on document {event.document_id}: {failure_kind}",
        extra={"user_id": actor.user_id},
    )
    return event


def get_document_history(db: Session, document_id: Any) -> list[AuditEvent]:
    """Return a document's audit events in append order."""
    stmt = (
        select(AuditEvent)
        .where(AuditEvent.document_id == str(document_id))
        .order_by(AuditEvent.id)
    )
    return list(db.execute(stmt).scalars().all())


def denial_payload(exc: Exception, override: bool = False) -> Dict[str, Any]:
    """Snapshot of a failed attempt for the audit payload."""
    payload: Dict[str, Any] = {"message": str(exc), "override": bool(override)}
    reason = getattr(exc, "reason", None)
    if reason is not None:
        payload["reason"] = getattr(reason, "value", reason)
    if isinstance(exc, GeofenceViolation):
        payload["distance_meters"] = round(exc.distance_meters, 3)
        payload["radius_meters"] = exc.radius_meters
    return payload


def record_failed_attempt(
    db: Session,
    exc: VerificationError,
    document_id: Any,
    actor: Actor,
    action: WorkflowAction,
    prior_status: StatusLike,
    override: bool = False,
) -> AuditEvent:
    """Roll back the failed attempt and append its denied event."""
    db.rollback()
    return record_denial(
        db,
        document_id=document_id,
        actor=actor,
        action=action,
        prior_status=prior_status,
        failure_kind=exc.kind,
        override=override,
        payload=denial_payload(exc, override),
    )


class AuditRecorder:
    """Session-bound facade over the audit trail.

    Example:
        recorder = AuditRecorder(db)
        recorder.record(doc.id, actor, WorkflowAction.ASSIGN, prior, new)
        db.commit()
        events = recorder.history(doc.id)
    """

    def __init__(self, db: Session):
        self.db = db

    def record(
        self,
        document_id: Any,
        actor: Actor,
        action: WorkflowAction,
        prior_status: StatusLike,
        new_status: StatusLike,
        override: bool = False,
        payload: Optional[Dict[str, Any]] = None,
    ) -> AuditEvent:
        return record_transition(
            self.db, document_id, actor, action, prior_status, new_status,
            override=override, payload=payload,
        )

    def history(self, document_id: Any) -> list[AuditEvent]:
        return get_document_history(self.db, document_id)

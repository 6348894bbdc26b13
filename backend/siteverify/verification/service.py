"""Verification workflow service.

Drives moderator findings, admin decisions and geocode retries through the
document state machine. Every mutating operation runs the same sequence:

1. Load the document and run the Authorization Guard
2. Validate input and resolve the transition
3. Evaluate the geofence (findings only); a violation stops here
4. Conditional update on the status that was read, plus the accepted
   audit event, in one transaction
5. Dispatch a notification after commit

Any VerificationError rolls the attempt back and records one denied audit
event tagged with the error class name.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..audit.service import record_transition, record_failed_attempt, get_document_history
from ..auth.guard import authorize
from ..config import Settings, get_settings
from ..domain.geofence.evaluator import evaluate, validate_coordinate
from ..domain.ports.bounded import call_with_timeout
from ..domain.ports.geocoding_port import GeocodingPort
from ..domain.ports.notification_port import WorkflowEvent
from ..domain.ports.photo_storage_port import PhotoStoragePort
from ..domain.verification.errors import (
    ConcurrentModification,
    ExternalServiceFailure,
    GeofenceViolation,
    TerminalStateViolation,
    ValidationError,
    VerificationError,
)
from ..domain.verification.models import Actor, ModeratorFindings, normalize_region
from ..domain.verification.status import (
    Decision,
    VerificationStatus,
    WorkflowAction,
    is_terminal,
    requires_override,
    resolve_transition,
)
from ..infrastructure.notifications.dispatcher import NotificationDispatcher
from ..infrastructure.repositories.document_repository import DocumentRepository, DocumentId
from ..models.audit_event import AuditEvent
from ..models.base import utcnow
from ..models.verification_document import VerificationDocument
from ..observability.metrics import (
    external_call_failures_total,
    geofence_checks_total,
    geofence_distance_meters,
)

logger = logging.getLogger(__name__)


class WorkflowService:
    """Moderator and admin transitions on verification documents.

    Example:
        service = WorkflowService(db, photo_storage=storage, notifier=dispatcher)
        doc = service.submit_findings(
            doc_id, moderator,
            ModeratorFindings(address_exists=True, building_type="residential"),
            actor_lat=6.5244, actor_lng=3.3792,
        )
        doc = service.finalize(doc_id, admin, Decision.APPROVE)
    """

    def __init__(
        self,
        db: Session,
        *,
        geocoder: Optional[GeocodingPort] = None,
        photo_storage: Optional[PhotoStoragePort] = None,
        notifier: Optional[NotificationDispatcher] = None,
        settings: Optional[Settings] = None,
    ):
        self.db = db
        self.repository = DocumentRepository(db)
        self.geocoder = geocoder
        self.photo_storage = photo_storage
        self.notifier = notifier
        self.settings = settings or get_settings()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_document(self, document_id: DocumentId, actor: Actor) -> VerificationDocument:
        """Load a document the actor is allowed to read.

        Raises:
            AuthorizationError: DocumentNotFound, or the actor may not read it
        """
        document = self.repository.get(document_id)
        authorize(actor, WorkflowAction.READ, document).raise_if_denied()
        return document

    def history(self, document_id: DocumentId, actor: Actor) -> list[AuditEvent]:
        """Audit events of a document in append order (admins, owning submitter)."""
        document = self.repository.get(document_id)
        authorize(actor, WorkflowAction.HISTORY, document).raise_if_denied()
        return get_document_history(self.db, document.id)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def submit_findings(
        self,
        document_id: DocumentId,
        actor: Actor,
        findings: ModeratorFindings,
        actor_lat: Optional[float],
        actor_lng: Optional[float],
        *,
        override: bool = False,
        photo: Optional[bytes] = None,
        photo_content_type: str = "image/jpeg",
        timeout: Optional[float] = None,
    ) -> VerificationDocument:
        """Record the outcome of an on-site visit.

        The geofence is evaluated against the configured radius before
        anything is written. An admin override bypasses the range check but
        the distance is still recorded when coordinates are available.

        Args:
            document_id: Target document
            actor: Assigned moderator (or admin with override)
            findings: Visit outcome
            actor_lat: Actor's live latitude
            actor_lng: Actor's live longitude
            override: Admin override flag
            photo: Optional photo-proof bytes uploaded before the write
            timeout: Bound for the photo upload (default EXTERNAL_CALL_TIMEOUT_SECONDS)

        Returns:
            Updated document (moderator_verified or verification_failed)

        Raises:
            AuthorizationError: Role, jurisdiction or assignment mismatch
            ValidationError / InvalidCoordinates: Bad findings or coordinates
            GeofenceViolation: Actor is outside the radius
            IllegalTransition / TerminalStateViolation: Wrong document status
            ExternalServiceFailure: Photo upload failed or timed out
            ConcurrentModification: Document changed since it was read
        """
        action = WorkflowAction.SUBMIT_FINDINGS
        document = self.repository.get(document_id)
        prior = VerificationStatus(document.status) if document is not None else None
        audit_id = str(document.id) if document is not None else str(document_id)

        try:
            authorize(actor, action, document, override=override).raise_if_denied()
            findings.validate()
            new_status = resolve_transition(
                prior, action, override=override, address_exists=findings.address_exists
            )

            geofence = self._check_geofence(document, actor_lat, actor_lng, override)

            fields = findings.to_fields()
            if photo:
                fields["photo_reference"] = self._store_photo(
                    photo, audit_id, photo_content_type, timeout
                )
            fields.update({
                "status": new_status,
                "findings_distance_meters": geofence.distance_meters if geofence else None,
                "findings_submitted_at": utcnow(),
            })

            if not self.repository.conditional_update(document.id, prior, fields):
                raise ConcurrentModification(f"Document {audit_id} is no longer {prior.value}")

            payload = {
                "address_exists": findings.address_exists,
                "photo_reference": fields.get("photo_reference"),
            }
            if geofence is not None:
                payload.update(geofence.to_payload())
            record_transition(
                self.db, audit_id, actor, action, prior, new_status,
                override=override, payload=payload,
            )
            self.db.commit()
        except VerificationError as exc:
            record_failed_attempt(self.db, exc, audit_id, actor, action, prior, override)
            raise

        self._notify(audit_id, action, actor, prior, new_status, {"address_exists": findings.address_exists})
        return document

    def finalize(
        self,
        document_id: DocumentId,
        actor: Actor,
        decision: Decision,
        *,
        notes: Optional[str] = None,
        override: bool = False,
    ) -> VerificationDocument:
        """Approve or reject a document (admin only).

        From moderator_verified / verification_failed no override is needed.
        From pending_assignment / assigned_to_moderator it requires one, and
        the audit event records that the override path was taken.

        Raises:
            AuthorizationError: Caller is not an admin (moderators never finalize)
            ValidationError: Unknown decision
            IllegalTransition / TerminalStateViolation: Wrong document status
            ConcurrentModification: Document changed since it was read
        """
        action = WorkflowAction.FINALIZE
        document = self.repository.get(document_id)
        prior = VerificationStatus(document.status) if document is not None else None
        audit_id = str(document.id) if document is not None else str(document_id)

        try:
            authorize(actor, action, document, override=override).raise_if_denied()
            try:
                decision = Decision(decision)
            except ValueError:
                raise ValidationError(f"Invalid decision '{decision}'. Must be 'approve' or 'reject'")

            new_status = resolve_transition(prior, action, override=override, decision=decision)
            fields = {
                "status": new_status,
                "decided_by": actor.user_id,
                "decided_at": utcnow(),
                "decision_notes": notes,
            }
            if not self.repository.conditional_update(document.id, prior, fields):
                raise ConcurrentModification(f"Document {audit_id} is no longer {prior.value}")

            record_transition(
                self.db, audit_id, actor, action, prior, new_status,
                override=override,
                payload={
                    "decision": decision.value,
                    "notes": notes,
                    "override_path": requires_override(prior, action, new_status),
                },
            )
            self.db.commit()
        except VerificationError as exc:
            record_failed_attempt(self.db, exc, audit_id, actor, action, prior, override)
            raise

        logger.info(
            f"Document finalized: {prior.value} -> {new_status.value}",
            extra={"document_id": audit_id, "action": action.value, "user_id": actor.user_id},
        )
        self._notify(audit_id, action, actor, prior, new_status, {"decision": decision.value})
        return document

    def retry_geocode(
        self,
        document_id: DocumentId,
        actor: Actor,
        timeout: Optional[float] = None,
    ) -> VerificationDocument:
        """Resolve coordinates for a geocode_pending document (admin only).

        Status does not change; the audit event repeats the current status.

        Raises:
            AuthorizationError: Caller is not an admin or document is missing
            ValidationError: Document is not awaiting geocoding
            TerminalStateViolation: Document is verified or rejected
            ExternalServiceFailure: Geocoder failed, timed out or returned bad coordinates
            ConcurrentModification: Document changed since it was read
        """
        action = WorkflowAction.GEOCODE
        document = self.repository.get(document_id)
        prior = VerificationStatus(document.status) if document is not None else None
        audit_id = str(document.id) if document is not None else str(document_id)

        try:
            authorize(actor, action, document).raise_if_denied()
            if is_terminal(prior):
                raise TerminalStateViolation(f"Document is {prior.value}; it can no longer be geocoded")
            if not document.geocode_pending:
                raise ValidationError("Document already has resolved coordinates")
            if self.geocoder is None:
                raise ExternalServiceFailure("geocoder is not configured")

            try:
                result = call_with_timeout(
                    self.geocoder.resolve,
                    document.address_text,
                    timeout=timeout or self.settings.EXTERNAL_CALL_TIMEOUT_SECONDS,
                    service="geocoder",
                )
                validate_coordinate(result.latitude, result.longitude, label="geocoded")
            except VerificationError as e:
                external_call_failures_total.labels(service="geocoder").inc()
                raise ExternalServiceFailure(f"Geocoding failed: {e}") from e

            fields = {
                "latitude": float(result.latitude),
                "longitude": float(result.longitude),
                "region": normalize_region(result.region) or document.region,
                "geocode_pending": False,
            }
            if not self.repository.conditional_update(document.id, prior, fields):
                raise ConcurrentModification(f"Document {audit_id} is no longer {prior.value}")

            record_transition(
                self.db, audit_id, actor, action, prior, prior,
                payload={
                    "latitude": fields["latitude"],
                    "longitude": fields["longitude"],
                    "region": fields["region"],
                },
            )
            self.db.commit()
        except VerificationError as exc:
            record_failed_attempt(self.db, exc, audit_id, actor, action, prior)
            raise

        return document

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _check_geofence(self, document, actor_lat, actor_lng, override):
        """Evaluate the geofence; raise GeofenceViolation unless overridden.

        Returns None only for an override without usable coordinates.
        """
        if override:
            if document.latitude is None or actor_lat is None or actor_lng is None:
                geofence_checks_total.labels(verdict="override").inc()
                return None
            result = evaluate(
                actor_lat, actor_lng, document.latitude, document.longitude,
                self.settings.GEOFENCE_RADIUS_METERS,
            )
            geofence_checks_total.labels(verdict="override").inc()
            return result

        if document.latitude is None or document.longitude is None:
            raise ValidationError(
                "Document has no resolved coordinates; retry geocoding before submitting findings"
            )

        result = evaluate(
            actor_lat, actor_lng, document.latitude, document.longitude,
            self.settings.GEOFENCE_RADIUS_METERS,
        )
        geofence_distance_meters.observe(result.distance_meters)
        if not result.within_range:
            geofence_checks_total.labels(verdict="out_of_range").inc()
            raise GeofenceViolation(result.distance_meters, result.radius_meters)

        geofence_checks_total.labels(verdict="within_range").inc()
        return result

    def _store_photo(self, photo: bytes, document_id: str, content_type: str, timeout) -> str:
        if self.photo_storage is None:
            raise ExternalServiceFailure("photo storage is not configured")
        try:
            return call_with_timeout(
                self.photo_storage.store,
                photo,
                document_id,
                content_type,
                timeout=timeout or self.settings.EXTERNAL_CALL_TIMEOUT_SECONDS,
                service="photo_storage",
            )
        except ExternalServiceFailure:
            external_call_failures_total.labels(service="photo_storage").inc()
            raise

    def _notify(self, document_id, action, actor, prior, new_status, details) -> None:
        if self.notifier is None:
            return
        self.notifier.dispatch(WorkflowEvent(
            document_id=document_id,
            action=action.value,
            actor_id=actor.user_id,
            prior_status=prior.value if prior else None,
            new_status=new_status.value,
            details=details,
        ))

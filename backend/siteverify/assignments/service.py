"""Assignment Manager - binds documents to field moderators.

assign() moves a pending document to assigned_to_moderator; reassign()
changes the moderator of an assigned document, or (admin override) sends a
document with findings back for a new visit, clearing those findings.

Both operations follow the same sequence:
1. Authorization Guard (role, then moderator jurisdiction vs. region)
2. Target moderator, transition and capacity validation
3. Conditional update on the status that was read, with its audit event in
   the same transaction
4. Notification after commit
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..audit.service import record_transition, record_failed_attempt
from ..auth.guard import authorize
from ..auth.roles import UserRole
from ..domain.ports.notification_port import WorkflowEvent
from ..domain.verification.errors import (
    CapacityExceeded,
    ConcurrentModification,
    ValidationError,
    VerificationError,
)
from ..domain.verification.models import Actor
from ..domain.verification.status import VerificationStatus, WorkflowAction, resolve_transition
from ..infrastructure.notifications.dispatcher import NotificationDispatcher
from ..infrastructure.repositories.document_repository import DocumentRepository, DocumentId
from ..models.base import utcnow
from ..models.user import User
from ..models.verification_document import VerificationDocument

logger = logging.getLogger(__name__)

# Findings columns reset when a document is sent back for another visit
FINDINGS_RESET = {
    "address_exists": None,
    "building_type": None,
    "occupant_met": None,
    "relationship": None,
    "comments": None,
    "photo_reference": None,
    "findings_distance_meters": None,
    "findings_submitted_at": None,
}


class AssignmentManager:
    """Assign and reassign verification documents to moderators.

    Example:
        manager = AssignmentManager(db, max_open_assignments=20)
        doc = manager.assign(doc_id, "mod-lagos-1", admin_actor)
    """

    def __init__(
        self,
        db: Session,
        notifier: Optional[NotificationDispatcher] = None,
        max_open_assignments: Optional[int] = None,
    ):
        self.db = db
        self.repository = DocumentRepository(db)
        self.notifier = notifier
        self.max_open_assignments = max_open_assignments

    def assign(
        self,
        document_id: DocumentId,
        moderator_id: str,
        actor: Actor,
        *,
        override: bool = False,
    ) -> VerificationDocument:
        """Assign a pending document to a moderator.

        Raises:
            AuthorizationError: Caller is not an admin, document is missing, or
                the moderator's jurisdiction differs from the region without override
            ValidationError: Target is not a moderator
            CapacityExceeded: Moderator is at MAX_OPEN_ASSIGNMENTS
            IllegalTransition: Document is not pending_assignment
            TerminalStateViolation: Document is verified or rejected
            ConcurrentModification: Document changed since it was read
        """
        return self._bind(WorkflowAction.ASSIGN, document_id, moderator_id, actor, override)

    def reassign(
        self,
        document_id: DocumentId,
        moderator_id: str,
        actor: Actor,
        *,
        override: bool = False,
    ) -> VerificationDocument:
        """Move a document to another moderator.

        From assigned_to_moderator this needs no override. From
        moderator_verified or verification_failed it requires an admin
        override and clears the recorded findings.

        Raises:
            Same as assign()
        """
        return self._bind(WorkflowAction.REASSIGN, document_id, moderator_id, actor, override)

    def _bind(
        self,
        action: WorkflowAction,
        document_id: DocumentId,
        moderator_id: str,
        actor: Actor,
        override: bool,
    ) -> VerificationDocument:
        document = self.repository.get(document_id)
        prior = VerificationStatus(document.status) if document is not None else None
        audit_id = str(document.id) if document is not None else str(document_id)

        try:
            moderator = self.db.get(User, moderator_id) if moderator_id else None
            is_moderator = moderator is not None and moderator.role == UserRole.MODERATOR.value

            decision = authorize(
                actor, action, document,
                override=override,
                assignee=moderator if is_moderator else None,
            )
            decision.raise_if_denied()

            if not is_moderator:
                raise ValidationError(f"User '{moderator_id}' is not a registered moderator")

            new_status = resolve_transition(prior, action, override=override)
            self._check_capacity(moderator_id, document)

            fields = {
                "status": new_status,
                "assigned_moderator_id": moderator_id,
                "assigned_at": utcnow(),
            }
            sent_back = prior in (
                VerificationStatus.MODERATOR_VERIFIED,
                VerificationStatus.VERIFICATION_FAILED,
            )
            if sent_back:
                fields.update(FINDINGS_RESET)

            previous_moderator = document.assigned_moderator_id
            if not self.repository.conditional_update(document.id, prior, fields):
                raise ConcurrentModification(
                    f"Document {audit_id} is no longer {prior.value}"
                )
            self._recheck_capacity(moderator_id)

            record_transition(
                self.db,
                document_id=audit_id,
                actor=actor,
                action=action,
                prior_status=prior,
                new_status=new_status,
                override=override,
                payload={
                    "moderator_id": moderator_id,
                    "previous_moderator_id": previous_moderator,
                    "jurisdiction_override": decision.override_applied,
                    "findings_cleared": sent_back,
                },
            )
            self.db.commit()
        except VerificationError as exc:
            record_failed_attempt(self.db, exc, audit_id, actor, action, prior, override)
            raise

        logger.info(
            f"Document {action.value} to moderator {moderator_id}",
            extra={"document_id": audit_id, "action": action.value, "user_id": actor.user_id},
        )
        if self.notifier is not None:
            self.notifier.dispatch(WorkflowEvent(
                document_id=audit_id,
                action=action.value,
                actor_id=actor.user_id,
                prior_status=prior.value,
                new_status=new_status.value,
                details={"moderator_id": moderator_id},
            ))
        return document

    def _check_capacity(self, moderator_id: str, document: VerificationDocument) -> None:
        """Reject the assignment when the moderator is already at the limit.

        Two admins assigning different documents to the same moderator can both
        pass this read; _recheck_capacity() catches that after the write.
        """
        if self.max_open_assignments is None:
            return
        if document.assigned_moderator_id == moderator_id and \
                document.status == VerificationStatus.ASSIGNED_TO_MODERATOR.value:
            # Already counted against this moderator
            return
        open_count = self.repository.count_open_assignments(moderator_id)
        if open_count >= self.max_open_assignments:
            raise CapacityExceeded(
                f"Moderator '{moderator_id}' already has {open_count} open assignments "
                f"(limit {self.max_open_assignments})"
            )

    def _recheck_capacity(self, moderator_id: str) -> None:
        """Count again inside the write transaction, this assignment included.

        On databases that isolate uncommitted writes this is still best-effort:
        two assignments that are both uncommitted do not see each other.
        """
        if self.max_open_assignments is None:
            return
        open_count = self.repository.count_open_assignments(moderator_id)
        if open_count > self.max_open_assignments:
            raise CapacityExceeded(
                f"Moderator '{moderator_id}' would have {open_count} open assignments "
                f"(limit {self.max_open_assignments})"
            )

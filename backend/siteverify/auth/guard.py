"""Authorization Guard.

Maps (actor, action, document) to an allow/deny decision. Every mutating
workflow operation consults the guard before touching the document; a deny
must stop the operation before any field is written.
"""

from dataclasses import dataclass
from typing import Optional, Any

from ..domain.verification.errors import AuthorizationError, DenialReason
from ..domain.verification.models import Actor, normalize_region
from ..domain.verification.status import WorkflowAction
from .roles import UserRole, has_capability

# Actions that target an existing document
DOCUMENT_ACTIONS = frozenset({
    WorkflowAction.READ,
    WorkflowAction.ASSIGN,
    WorkflowAction.REASSIGN,
    WorkflowAction.SUBMIT_FINDINGS,
    WorkflowAction.FINALIZE,
    WorkflowAction.GEOCODE,
    WorkflowAction.HISTORY,
})


@dataclass(frozen=True)
class AuthorizationDecision:
    """Tagged allow/deny result.

    Attributes:
        allowed: True if the action may proceed
        reason: Denial reason (None when allowed)
        message: Human-readable detail for denials
        override_applied: True if an admin override bypassed a check
    """
    allowed: bool
    reason: Optional[DenialReason] = None
    message: str = ""
    override_applied: bool = False

    def raise_if_denied(self) -> None:
        if not self.allowed:
            raise AuthorizationError(self.reason, self.message or None)


def _allow(override_applied: bool = False) -> AuthorizationDecision:
    return AuthorizationDecision(allowed=True, override_applied=override_applied)


def _deny(reason: DenialReason, message: str) -> AuthorizationDecision:
    return AuthorizationDecision(allowed=False, reason=reason, message=message)


def authorize(
    actor: Actor,
    action: WorkflowAction,
    document: Optional[Any] = None,
    *,
    override: bool = False,
    assignee: Optional[Any] = None,
    owner_id: Optional[str] = None,
) -> AuthorizationDecision:
    """Decide whether actor may perform action on document.

    Args:
        actor: Trusted caller identity
        action: Workflow action being attempted
        document: Target VerificationDocument (None for import/export, or if
            the id did not resolve)
        override: Admin override flag; bypasses jurisdiction and geofence
            checks and must be recorded by the caller
        assignee: Target moderator (User) for assign/reassign
        owner_id: Submitter that imported documents will belong to

    Returns:
        AuthorizationDecision

    Example:
        decision = authorize(actor, WorkflowAction.FINALIZE, document)
        decision.raise_if_denied()
    """
    if document is None and action in DOCUMENT_ACTIONS:
        return _deny(DenialReason.DOCUMENT_NOT_FOUND, "Document not found")

    if not has_capability(actor.role, action):
        return _deny(
            DenialReason.ROLE_NOT_PERMITTED,
            f"Role '{actor.role}' may not perform '{action.value}'",
        )

    if override and actor.role != UserRole.ADMIN.value:
        return _deny(DenialReason.ROLE_NOT_PERMITTED, "Only admins may use override")

    if actor.role == UserRole.ADMIN.value:
        return _authorize_admin(actor, action, document, override, assignee)
    if actor.role == UserRole.MODERATOR.value:
        return _authorize_moderator(actor, action, document)
    return _authorize_submitter(actor, action, document, owner_id)


def authorize_admin(actor: Actor, operation: str) -> AuthorizationDecision:
    """Gate for account administration (registration codes, role changes)."""
    if actor.role != UserRole.ADMIN.value:
        return _deny(
            DenialReason.ROLE_NOT_PERMITTED,
            f"Role '{actor.role}' may not {operation}",
        )
    return _allow()


def export_scope(actor: Actor) -> dict:
    """Repository query restrictions for the documents an actor may export.

    Submitters see their own documents, moderators their assignments and
    admins everything.
    """
    if actor.role == UserRole.ADMIN.value:
        return {}
    if actor.role == UserRole.MODERATOR.value:
        return {"assigned_moderator_id": actor.user_id}
    return {"submitter_id": actor.user_id}


def _authorize_admin(actor, action, document, override, assignee) -> AuthorizationDecision:
    if action in (WorkflowAction.ASSIGN, WorkflowAction.REASSIGN) and assignee is not None:
        if normalize_region(assignee.jurisdiction) != normalize_region(document.region):
            if not override:
                return _deny(
                    DenialReason.JURISDICTION_MISMATCH,
                    f"Moderator jurisdiction '{assignee.jurisdiction}' does not match "
                    f"document region '{document.region}'",
                )
            return _allow(override_applied=True)

    if action == WorkflowAction.SUBMIT_FINDINGS and not override:
        return _deny(
            DenialReason.ROLE_NOT_PERMITTED,
            "Admins may only record findings with an explicit override",
        )

    return _allow(override_applied=override)


def _authorize_moderator(actor, action, document) -> AuthorizationDecision:
    if document is None:
        # Export of own assignments
        return _allow()

    if actor.region is None or actor.region != normalize_region(document.region):
        return _deny(
            DenialReason.JURISDICTION_MISMATCH,
            f"Document region '{document.region}' is outside jurisdiction '{actor.jurisdiction}'",
        )

    if document.assigned_moderator_id != actor.user_id:
        return _deny(
            DenialReason.NOT_ASSIGNED_MODERATOR,
            "Document is not assigned to this moderator",
        )

    return _allow()


def _authorize_submitter(actor, action, document, owner_id) -> AuthorizationDecision:
    if owner_id is not None and owner_id != actor.user_id:
        return _deny(
            DenialReason.ROLE_NOT_PERMITTED,
            "Submitters may only import documents for themselves",
        )
    if document is not None and document.submitter_id != actor.user_id:
        return _deny(
            DenialReason.ROLE_NOT_PERMITTED,
            "Submitters may only access their own documents",
        )
    return _allow()

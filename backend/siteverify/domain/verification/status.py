"""VerificationStatus state machine for the document verification lifecycle

State flow:
    pending_assignment → assigned_to_moderator → moderator_verified | verification_failed
    → verified | rejected

verified and rejected are terminal. Admin override unlocks direct
finalization and reassignment after findings were submitted.
"""

from enum import Enum
from typing import Optional, Dict, List

from .errors import IllegalTransition, TerminalStateViolation, ValidationError


class VerificationStatus(str, Enum):
    """Verification document status enum

    Values are persisted as TEXT and must match exactly.
    """
    PENDING_ASSIGNMENT = "pending_assignment"        # Imported, no moderator yet
    ASSIGNED_TO_MODERATOR = "assigned_to_moderator"  # Awaiting field visit
    MODERATOR_VERIFIED = "moderator_verified"        # Moderator found the address
    VERIFICATION_FAILED = "verification_failed"      # Moderator could not confirm it
    VERIFIED = "verified"                            # Admin approved (terminal)
    REJECTED = "rejected"                            # Admin rejected (terminal)


class WorkflowAction(str, Enum):
    """Actions understood by the Authorization Guard and the audit trail."""
    CREATE = "create"
    READ = "read"
    IMPORT = "import"
    EXPORT = "export"
    ASSIGN = "assign"
    REASSIGN = "reassign"
    SUBMIT_FINDINGS = "submit_findings"
    FINALIZE = "finalize"
    GEOCODE = "geocode"
    HISTORY = "history"


class Decision(str, Enum):
    """Admin decision on a document."""
    APPROVE = "approve"
    REJECT = "reject"


TERMINAL_STATES = frozenset({VerificationStatus.VERIFIED, VerificationStatus.REJECTED})

NON_TERMINAL_STATES = frozenset(set(VerificationStatus) - TERMINAL_STATES)

# Transitions open to an authorized actor
ALLOWED_TRANSITIONS: Dict[Optional[VerificationStatus], Dict[WorkflowAction, List[VerificationStatus]]] = {
    None: {
        WorkflowAction.CREATE: [VerificationStatus.PENDING_ASSIGNMENT],
    },
    VerificationStatus.PENDING_ASSIGNMENT: {
        WorkflowAction.ASSIGN: [VerificationStatus.ASSIGNED_TO_MODERATOR],
    },
    VerificationStatus.ASSIGNED_TO_MODERATOR: {
        WorkflowAction.REASSIGN: [VerificationStatus.ASSIGNED_TO_MODERATOR],
        WorkflowAction.SUBMIT_FINDINGS: [
            VerificationStatus.MODERATOR_VERIFIED,
            VerificationStatus.VERIFICATION_FAILED,
        ],
    },
    VerificationStatus.MODERATOR_VERIFIED: {
        WorkflowAction.FINALIZE: [VerificationStatus.VERIFIED, VerificationStatus.REJECTED],
    },
    VerificationStatus.VERIFICATION_FAILED: {
        WorkflowAction.FINALIZE: [VerificationStatus.VERIFIED, VerificationStatus.REJECTED],
    },
    VerificationStatus.VERIFIED: {},  # Terminal
    VerificationStatus.REJECTED: {},  # Terminal
}

# Transitions that additionally require an explicit admin override
OVERRIDE_TRANSITIONS: Dict[VerificationStatus, Dict[WorkflowAction, List[VerificationStatus]]] = {
    VerificationStatus.PENDING_ASSIGNMENT: {
        WorkflowAction.FINALIZE: [VerificationStatus.VERIFIED, VerificationStatus.REJECTED],
    },
    VerificationStatus.ASSIGNED_TO_MODERATOR: {
        WorkflowAction.FINALIZE: [VerificationStatus.VERIFIED, VerificationStatus.REJECTED],
    },
    VerificationStatus.MODERATOR_VERIFIED: {
        WorkflowAction.REASSIGN: [VerificationStatus.ASSIGNED_TO_MODERATOR],
    },
    VerificationStatus.VERIFICATION_FAILED: {
        WorkflowAction.REASSIGN: [VerificationStatus.ASSIGNED_TO_MODERATOR],
    },
}


def is_terminal(status: Optional[VerificationStatus]) -> bool:
    """Check whether a status permits no further transitions."""
    return status in TERMINAL_STATES


def target_status(
    action: WorkflowAction,
    address_exists: Optional[bool] = None,
    decision: Optional[Decision] = None,
) -> VerificationStatus:
    """Compute the status an action leads to.

    Args:
        action: Workflow action being attempted
        address_exists: Moderator finding (required for SUBMIT_FINDINGS)
        decision: Admin decision (required for FINALIZE)

    Returns:
        Target status

    Raises:
        ValidationError: If the outcome input for the action is missing
        IllegalTransition: If the action never changes status
    """
    if action == WorkflowAction.CREATE:
        return VerificationStatus.PENDING_ASSIGNMENT
    if action in (WorkflowAction.ASSIGN, WorkflowAction.REASSIGN):
        return VerificationStatus.ASSIGNED_TO_MODERATOR
    if action == WorkflowAction.SUBMIT_FINDINGS:
        if address_exists is None:
            raise ValidationError("Findings must state whether the address exists")
        if address_exists:
            return VerificationStatus.MODERATOR_VERIFIED
        return VerificationStatus.VERIFICATION_FAILED
    if action == WorkflowAction.FINALIZE:
        if decision is None:
            raise ValidationError("Finalize requires a decision")
        if Decision(decision) == Decision.APPROVE:
            return VerificationStatus.VERIFIED
        return VerificationStatus.REJECTED
    raise IllegalTransition(f"Action '{action.value}' does not change document status")


def can_transition(
    from_status: Optional[VerificationStatus],
    action: WorkflowAction,
    to_status: VerificationStatus,
    override: bool = False,
) -> bool:
    """Validate if a status transition is allowed

    Args:
        from_status: Current status (None for new documents)
        action: Workflow action producing the transition
        to_status: Target status
        override: Whether an admin override is in effect

    Returns:
        True if transition is allowed, False otherwise

    Example:
        >>> can_transition(VerificationStatus.PENDING_ASSIGNMENT, WorkflowAction.ASSIGN,
        ...                VerificationStatus.ASSIGNED_TO_MODERATOR)
        True
        >>> can_transition(VerificationStatus.VERIFIED, WorkflowAction.REASSIGN,
        ...                VerificationStatus.ASSIGNED_TO_MODERATOR, override=True)
        False
    """
    if to_status in ALLOWED_TRANSITIONS.get(from_status, {}).get(action, []):
        return True
    if override and from_status is not None:
        return to_status in OVERRIDE_TRANSITIONS.get(from_status, {}).get(action, [])
    return False


def requires_override(
    from_status: VerificationStatus,
    action: WorkflowAction,
    to_status: VerificationStatus,
) -> bool:
    """True if the transition exists only on the override path."""
    return (
        not can_transition(from_status, action, to_status)
        and can_transition(from_status, action, to_status, override=True)
    )


def resolve_transition(
    from_status: Optional[VerificationStatus],
    action: WorkflowAction,
    *,
    override: bool = False,
    address_exists: Optional[bool] = None,
    decision: Optional[Decision] = None,
) -> VerificationStatus:
    """Validate an attempted action and return the resulting status.

    Raises:
        TerminalStateViolation: If the document is verified or rejected
        IllegalTransition: If the transition is not in the table
        ValidationError: If outcome input for the action is missing
    """
    if is_terminal(from_status):
        raise TerminalStateViolation(
            f"Document is {from_status.value}; no further transitions are permitted"
        )

    to_status = target_status(action, address_exists=address_exists, decision=decision)

    if not can_transition(from_status, action, to_status, override=override):
        current = from_status.value if from_status else "new"
        hint = ""
        if from_status is not None and requires_override(from_status, action, to_status):
            hint = " without admin override"
        raise IllegalTransition(
            f"Invalid transition: {current} -> {to_status.value} via "
            f"'{action.value}'{hint}. Allowed actions from {current}: "
            f"{[a.value for a in get_allowed_actions(from_status, override=override)]}"
        )

    return to_status


def get_allowed_actions(
    from_status: Optional[VerificationStatus],
    override: bool = False,
) -> List[WorkflowAction]:
    """Get list of actions that can move a document out of its status

    Example:
        >>> get_allowed_actions(VerificationStatus.ASSIGNED_TO_MODERATOR)
        [WorkflowAction.REASSIGN, WorkflowAction.SUBMIT_FINDINGS]
    """
    actions = list(ALLOWED_TRANSITIONS.get(from_status, {}).keys())
    if override and from_status is not None:
        for action in OVERRIDE_TRANSITIONS.get(from_status, {}):
            if action not in actions:
                actions.append(action)
    return actions

"""User roles and capabilities for SiteVerify.

Roles are flat; there is no hierarchy. Capabilities per role:

┌─────────────────────────┬───────────┬───────────┬───────┐
│ Action                  │ SUBMITTER │ MODERATOR │ ADMIN │
├─────────────────────────┼───────────┼───────────┼───────┤
│ Import own addresses    │     ✓     │           │   ✓   │
│ Export / read           │   own     │ assigned  │  all  │
│ Assign / reassign       │           │           │   ✓   │
│ Submit findings         │           │ assigned  │   ✓*  │
│ Finalize (approve)      │           │           │   ✓   │
│ Override geofence/juris │           │           │   ✓   │
│ Read audit history      │   own     │           │   ✓   │
└─────────────────────────┴───────────┴───────────┴───────┘

* admins submit findings only with an explicit override.
"""

from enum import Enum
from typing import Set

from ..domain.verification.status import WorkflowAction


class UserRole(str, Enum):
    """User roles in SiteVerify.

    Values are stored as TEXT in the database and must match exactly.
    """
    SUBMITTER = "submitter"
    MODERATOR = "moderator"
    ADMIN = "admin"


# Registration code role -> account role
REGISTRATION_ROLE_MAP = {
    "user": UserRole.SUBMITTER,
    "moderator": UserRole.MODERATOR,
}

ROLE_CAPABILITIES = {
    UserRole.SUBMITTER: {
        WorkflowAction.READ,
        WorkflowAction.IMPORT,
        WorkflowAction.EXPORT,
        WorkflowAction.HISTORY,
    },
    UserRole.MODERATOR: {
        WorkflowAction.READ,
        WorkflowAction.EXPORT,
        WorkflowAction.SUBMIT_FINDINGS,
    },
    UserRole.ADMIN: set(WorkflowAction),
}


def has_capability(role: str, action: WorkflowAction) -> bool:
    """Check if a role may attempt an action at all.

    Examples:
        >>> has_capability(UserRole.ADMIN, WorkflowAction.FINALIZE)
        True
        >>> has_capability(UserRole.MODERATOR, WorkflowAction.FINALIZE)
        False
    """
    try:
        user_role = UserRole(role)
    except ValueError:
        return False
    return action in ROLE_CAPABILITIES.get(user_role, set())


def get_allowed_roles(action: WorkflowAction) -> Set[UserRole]:
    """Get all roles that may attempt an action."""
    return {role for role, actions in ROLE_CAPABILITIES.items() if action in actions}

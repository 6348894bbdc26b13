"""Authorization: roles, identity claims and the Authorization Guard"""

from .roles import UserRole, has_capability, REGISTRATION_ROLE_MAP
from .guard import authorize, authorize_admin, export_scope, AuthorizationDecision

__all__ = [
    "UserRole",
    "has_capability",
    "REGISTRATION_ROLE_MAP",
    "authorize",
    "authorize_admin",
    "export_scope",
    "AuthorizationDecision",
]

"""FastAPI dependencies for identity claims and role checks.

Usage:
    @router.get("/documents/{document_id}")
    def get_document(actor: Actor = Depends(get_current_actor)):
        ...

    @router.post("/registration-codes")
    def create_code(actor: Actor = Depends(require_role(UserRole.ADMIN))):
        ...
"""

from typing import Callable
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import jwt

from ..domain.verification.models import Actor
from .jwt import decode_token, actor_from_claims
from .roles import UserRole


# HTTP Bearer token security scheme
security = HTTPBearer()


def get_current_actor(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> Actor:
    """Validate the bearer token and return the caller's claims.

    Raises:
        HTTPException 401: If token is missing, invalid, expired or has an unknown role
    """
    token = credentials.credentials

    try:
        payload = decode_token(token)
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except jwt.InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )

    actor = actor_from_claims(payload)
    if actor.role not in {r.value for r in UserRole}:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token claims: unknown role '{actor.role}'",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return actor


def require_role(*allowed_roles: UserRole) -> Callable:
    """Create a dependency that only admits the given roles.

    Raises:
        HTTPException 403: If the caller's role is not allowed
    """
    allowed = {role.value for role in allowed_roles}

    def role_checker(actor: Actor = Depends(get_current_actor)) -> Actor:
        if actor.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "error": "AuthorizationError",
                    "reason": "RoleNotPermitted",
                    "message": f"Requires one of: {sorted(allowed)}",
                },
            )
        return actor

    return role_checker

"""JWT identity claims

Identity and authentication are handled by an external provider. This core
only verifies the signature of the bearer token and trusts its claims.

Claims:
- sub: External user id
- role: "submitter" | "moderator" | "admin"
- jurisdiction: Region identifier (moderators)
- iat / exp: Issued-at and expiry (Unix timestamps)
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, Any, Optional
import jwt

from ..config import get_settings
from ..domain.verification.models import Actor


def create_access_token(
    user_id: str,
    role: str,
    jurisdiction: Optional[str] = None,
    expiry_minutes: Optional[int] = None,
) -> str:
    """Create a signed claims token.

    Used by tests and local tooling; production tokens come from the
    identity provider.

    Args:
        user_id: External user id
        role: User's role
        jurisdiction: Moderator region, if any
        expiry_minutes: Override of JWT_EXPIRY_MINUTES

    Returns:
        str: Signed JWT token
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)
    expiration = now + timedelta(minutes=expiry_minutes or settings.JWT_EXPIRY_MINUTES)

    payload = {
        'sub': str(user_id),
        'role': role,
        'jurisdiction': jurisdiction,
        'iat': int(now.timestamp()),
        'exp': int(expiration.timestamp()),
    }

    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Dict[str, Any]:
    """Decode and validate a claims token.

    Raises:
        jwt.ExpiredSignatureError: If token has expired
        jwt.InvalidTokenError: If signature or structure is invalid
    """
    settings = get_settings()
    return jwt.decode(
        token,
        settings.JWT_SECRET,
        algorithms=[settings.JWT_ALGORITHM],
        options={"require": ["sub", "role", "exp"]},
    )


def actor_from_claims(payload: Dict[str, Any]) -> Actor:
    """Build the trusted Actor from decoded claims."""
    return Actor(
        user_id=str(payload["sub"]),
        role=str(payload["role"]),
        jurisdiction=payload.get("jurisdiction"),
    )

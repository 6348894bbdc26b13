"""Registration Code Validator - one-time invite codes and account creation.

Admins issue codes that carry the target role and pre-filled identity
fields. Consuming a code is a conditional update on ``consumed``, so a
code can create at most one account even under concurrent registration.
"""

import logging
import secrets
from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from ..auth.guard import authorize_admin
from ..auth.roles import REGISTRATION_ROLE_MAP, UserRole
from ..domain.verification.errors import (
    ValidationError,
    RegistrationCodeNotFound,
    RegistrationCodeConsumed,
)
from ..domain.verification.models import Actor
from ..models.base import utcnow
from ..models.registration_code import RegistrationCode
from ..models.user import User, EMAIL_PATTERN

logger = logging.getLogger(__name__)

CODE_BYTES = 16


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


class RegistrationService:
    """Issue, validate and consume registration codes."""

    def __init__(self, db: Session):
        self.db = db

    def create_code(
        self,
        actor: Actor,
        role: str,
        full_name: str,
        email: str,
        phone_number: Optional[str] = None,
        organization: Optional[str] = None,
    ) -> RegistrationCode:
        """Issue a new code (admin only).

        Args:
            actor: Caller; must be an admin
            role: "user" or "moderator"
            full_name: Identity pre-filled on the account
            email: Identity pre-filled on the account

        Returns:
            The persisted, unconsumed RegistrationCode

        Raises:
            AuthorizationError: If the caller is not an admin
            ValidationError: If role, name or email is invalid
        """
        authorize_admin(actor, "issue registration codes").raise_if_denied()

        if role not in REGISTRATION_ROLE_MAP:
            raise ValidationError(
                f"Invalid registration role '{role}'. Must be one of: {sorted(REGISTRATION_ROLE_MAP)}"
            )
        full_name = _clean(full_name)
        if not full_name:
            raise ValidationError("full_name is required")
        email = _clean(email)
        if not email or not EMAIL_PATTERN.match(email):
            raise ValidationError(f"Invalid email address '{email}'")

        code = RegistrationCode(
            code=secrets.token_urlsafe(CODE_BYTES),
            role=role,
            full_name=full_name,
            email=email.lower(),
            phone_number=_clean(phone_number),
            organization=_clean(organization),
            created_by=actor.user_id,
            consumed=False,
        )
        self.db.add(code)
        self.db.commit()
        self.db.refresh(code)

        logger.info(f"Registration code issued for role={role}", extra={"user_id": actor.user_id})
        return code

    def validate_code(self, code: str) -> RegistrationCode:
        """Return the code if it exists and is unconsumed.

        Raises:
            RegistrationCodeNotFound: If no such code exists
            RegistrationCodeConsumed: If the code was already used
        """
        record = self.db.get(RegistrationCode, code) if code else None
        if record is None:
            raise RegistrationCodeNotFound("Registration code not found")
        if record.consumed:
            raise RegistrationCodeConsumed("Registration code has already been used")
        return record

    def register(self, code: str, user_id: str, jurisdiction: Optional[str] = None) -> User:
        """Consume a code and create the account it describes.

        Args:
            code: Registration code
            user_id: External identity reference of the new account
            jurisdiction: Region for moderator accounts (required for them)

        Returns:
            The created User

        Raises:
            RegistrationCodeNotFound: If the code does not exist
            RegistrationCodeConsumed: If the code was already used (including
                by a concurrent registration)
            ValidationError: If the account data is invalid or user_id is taken
        """
        record = self.validate_code(code)
        role = REGISTRATION_ROLE_MAP[record.role]

        user_id = _clean(user_id)
        if not user_id:
            raise ValidationError("user_id is required")
        jurisdiction = _clean(jurisdiction)
        if role == UserRole.MODERATOR and not jurisdiction:
            raise ValidationError("Moderator accounts require a jurisdiction")
        if self.db.get(User, user_id) is not None:
            raise ValidationError(f"User '{user_id}' is already registered")

        stmt = (
            update(RegistrationCode)
            .where(
                RegistrationCode.code == record.code,
                RegistrationCode.consumed.is_(False),
            )
            .values(consumed=True, consumed_at=utcnow(), consumed_by=user_id)
            .execution_options(synchronize_session=False)
        )
        if self.db.execute(stmt).rowcount != 1:
            self.db.rollback()
            raise RegistrationCodeConsumed("Registration code has already been used")

        try:
            user = User(
                id=user_id,
                role=role.value,
                jurisdiction=jurisdiction,
                full_name=record.full_name,
                email=record.email,
                phone_number=record.phone_number,
                organization=record.organization,
            )
        except ValueError as e:
            self.db.rollback()
            raise ValidationError(str(e))

        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)

        logger.info(f"Registered {role.value} account via registration code", extra={"user_id": user_id})
        return user

    def update_user_role(
        self,
        actor: Actor,
        user_id: str,
        role: str,
        jurisdiction: Optional[str] = None,
    ) -> User:
        """Change a user's role and jurisdiction (admin only).

        Raises:
            AuthorizationError: If the caller is not an admin
            ValidationError: If the user or role is unknown, or a moderator
                would have no jurisdiction
        """
        authorize_admin(actor, "change user roles").raise_if_denied()

        try:
            new_role = UserRole(role)
        except ValueError:
            raise ValidationError(
                f"Invalid role '{role}'. Must be one of: {[r.value for r in UserRole]}"
            )

        user = self.db.get(User, user_id)
        if user is None:
            raise ValidationError(f"User '{user_id}' does not exist")

        jurisdiction = _clean(jurisdiction)
        if new_role == UserRole.MODERATOR and not (jurisdiction or user.jurisdiction):
            raise ValidationError("Moderators require a jurisdiction")

        old_role = user.role
        user.role = new_role.value
        if jurisdiction is not None:
            user.jurisdiction = jurisdiction
        self.db.commit()
        self.db.refresh(user)

        logger.info(
            f"User {user_id} role changed {old_role} -> {new_role.value}",
            extra={"user_id": actor.user_id},
        )
        return user

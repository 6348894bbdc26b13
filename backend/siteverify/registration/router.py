"""Registration and account administration endpoints"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..auth.dependencies import get_current_actor
from ..database import get_db
from ..domain.verification.models import Actor
from .schemas import (
    RegistrationCodeCreate,
    RegistrationCodeResponse,
    RegisterRequest,
    UserRoleUpdate,
    UserResponse,
)
from .service import RegistrationService


router = APIRouter(tags=["Registration"])


@router.post(
    "/registration-codes",
    response_model=RegistrationCodeResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_registration_code(
    body: RegistrationCodeCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Issue a one-time registration code (ADMIN only)."""
    code = RegistrationService(db).create_code(
        actor,
        role=body.role,
        full_name=body.full_name,
        email=body.email,
        phone_number=body.phone_number,
        organization=body.organization,
    )
    return code.to_dict()


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(body: RegisterRequest, db: Session = Depends(get_db)):
    """Consume a registration code and create the account.

    Raises:
        404: Unknown code
        409: Code already consumed
        422: Invalid account data (e.g. moderator without jurisdiction)
    """
    return RegistrationService(db).register(body.code, body.user_id, body.jurisdiction)


@router.patch("/users/{user_id}/role", response_model=UserResponse)
def update_user_role(
    user_id: str,
    body: UserRoleUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Change a user's role and jurisdiction (ADMIN only)."""
    return RegistrationService(db).update_user_role(actor, user_id, body.role, body.jurisdiction)

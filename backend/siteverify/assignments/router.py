"""Assignment endpoints (ADMIN only)"""

from fastapi import APIRouter, Depends

from ..auth.dependencies import get_current_actor
from ..dependencies import get_assignment_manager
from ..domain.verification.models import Actor
from ..verification.schemas import AssignRequest, DocumentResponse
from .service import AssignmentManager

router = APIRouter(prefix="/documents", tags=["Assignments"])


@router.post("/{document_id}/assign", response_model=DocumentResponse)
def assign_document(
    document_id: str,
    body: AssignRequest,
    actor: Actor = Depends(get_current_actor),
    manager: AssignmentManager = Depends(get_assignment_manager),
):
    """Assign a pending document to a moderator in its region."""
    return manager.assign(document_id, body.moderator_id, actor, override=body.override).to_dict()


@router.post("/{document_id}/reassign", response_model=DocumentResponse)
def reassign_document(
    document_id: str,
    body: AssignRequest,
    actor: Actor = Depends(get_current_actor),
    manager: AssignmentManager = Depends(get_assignment_manager),
):
    """Move a document to another moderator.

    Sending back a document that already has findings requires override.
    """
    return manager.reassign(document_id, body.moderator_id, actor, override=body.override).to_dict()

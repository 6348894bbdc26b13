"""Verification workflow endpoints.

Domain errors raised by the service propagate to the exception handlers
registered in main.py, which map them to HTTP status codes.
"""

import base64
import binascii
import logging

from fastapi import APIRouter, Depends

from ..auth.dependencies import get_current_actor
from ..dependencies import get_workflow_service
from ..domain.verification.errors import ValidationError
from ..domain.verification.models import Actor, ModeratorFindings
from ..domain.verification.status import Decision
from .schemas import (
    AuditEventResponse,
    DocumentResponse,
    FinalizeRequest,
    FindingsRequest,
)
from .service import WorkflowService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["Verification"])


@router.get("/{document_id}", response_model=DocumentResponse)
def get_document(
    document_id: str,
    actor: Actor = Depends(get_current_actor),
    service: WorkflowService = Depends(get_workflow_service),
):
    """Get a single document (own / assigned / any for admins)."""
    return service.get_document(document_id, actor).to_dict()


@router.post("/{document_id}/findings", response_model=DocumentResponse)
def submit_findings(
    document_id: str,
    body: FindingsRequest,
    actor: Actor = Depends(get_current_actor),
    service: WorkflowService = Depends(get_workflow_service),
):
    """Submit on-site findings (assigned moderator; admin with override).

    Raises:
        403: Not assigned, outside jurisdiction, or outside the geofence
        409: Document is not awaiting a visit
        422: Invalid findings or coordinates
        502: Photo upload failed
    """
    photo = None
    if body.photo_base64:
        try:
            photo = base64.b64decode(body.photo_base64, validate=True)
        except (binascii.Error, ValueError):
            raise ValidationError("photo_base64 is not valid base64")

    findings = ModeratorFindings(
        address_exists=body.address_exists,
        building_type=body.building_type,
        occupant_met=body.occupant_met,
        relationship=body.relationship,
        comments=body.comments,
    )
    document = service.submit_findings(
        document_id,
        actor,
        findings,
        body.latitude,
        body.longitude,
        override=body.override,
        photo=photo,
        photo_content_type=body.photo_content_type,
    )
    return document.to_dict()


@router.post("/{document_id}/finalize", response_model=DocumentResponse)
def finalize(
    document_id: str,
    body: FinalizeRequest,
    actor: Actor = Depends(get_current_actor),
    service: WorkflowService = Depends(get_workflow_service),
):
    """Approve or reject a document (ADMIN only)."""
    document = service.finalize(
        document_id, actor, Decision(body.decision), notes=body.notes, override=body.override
    )
    return document.to_dict()


@router.post("/{document_id}/geocode", response_model=DocumentResponse)
def retry_geocode(
    document_id: str,
    actor: Actor = Depends(get_current_actor),
    service: WorkflowService = Depends(get_workflow_service),
):
    """Retry geocoding for a geocode_pending document (ADMIN only)."""
    return service.retry_geocode(document_id, actor).to_dict()


@router.get("/{document_id}/audit", response_model=list[AuditEventResponse])
def get_audit_history(
    document_id: str,
    actor: Actor = Depends(get_current_actor),
    service: WorkflowService = Depends(get_workflow_service),
):
    """Audit trail of a document in append order (ADMIN, owning submitter)."""
    return service.history(document_id, actor)

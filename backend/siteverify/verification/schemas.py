"""Pydantic schemas for verification workflow endpoints"""

from datetime import datetime
from typing import Optional, Any, Literal

from pydantic import BaseModel, Field


class FindingsResponse(BaseModel):
    """Moderator findings as stored on the document"""
    address_exists: Optional[bool] = None
    building_type: Optional[str] = None
    occupant_met: Optional[bool] = None
    relationship: Optional[str] = None
    comments: Optional[str] = None
    photo_reference: Optional[str] = None
    distance_meters: Optional[float] = None
    submitted_at: Optional[str] = None


class DecisionResponse(BaseModel):
    """Admin decision metadata"""
    decided_by: str
    decided_at: Optional[str] = None
    notes: Optional[str] = None


class DocumentResponse(BaseModel):
    """Verification document response"""
    id: str
    submitter_id: str
    full_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    street: str
    city: str
    state: str
    country: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    region: Optional[str] = None
    geocode_pending: bool
    status: str
    assigned_moderator_id: Optional[str] = None
    assigned_at: Optional[str] = None
    findings: Optional[FindingsResponse] = None
    decision: Optional[DecisionResponse] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class AssignRequest(BaseModel):
    """Request schema for assign / reassign.

    Attributes:
        moderator_id: Target moderator's user id
        override: Admin override (jurisdiction mismatch, reassign after findings)
    """
    moderator_id: str = Field(..., min_length=1)
    override: bool = False


class FindingsRequest(BaseModel):
    """Request schema for submitting on-site findings.

    Attributes:
        latitude: Actor's live latitude (checked against the geofence)
        longitude: Actor's live longitude
        address_exists: Whether the address was found
        building_type: Required when the address exists
        occupant_met: Whether an occupant was met
        relationship: Occupant's relationship to the contact
        comments: Free-text notes
        photo_base64: Optional photo proof, base64 encoded
        photo_content_type: MIME type of the photo
        override: Admin override (bypasses the geofence)
    """
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    address_exists: bool
    building_type: Optional[str] = Field(None, max_length=100)
    occupant_met: Optional[bool] = None
    relationship: Optional[str] = Field(None, max_length=100)
    comments: Optional[str] = Field(None, max_length=2000)
    photo_base64: Optional[str] = None
    photo_content_type: str = "image/jpeg"
    override: bool = False


class FinalizeRequest(BaseModel):
    """Request schema for the admin decision"""
    decision: Literal["approve", "reject"]
    notes: Optional[str] = Field(None, max_length=2000)
    override: bool = False


class AuditEventResponse(BaseModel):
    """One entry of a document's audit trail"""
    id: int
    document_id: Optional[str] = None
    actor_id: Optional[str] = None
    actor_role: Optional[str] = None
    action: str
    prior_status: Optional[str] = None
    new_status: Optional[str] = None
    outcome: str
    failure_kind: Optional[str] = None
    override: bool
    payload: Optional[dict[str, Any]] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

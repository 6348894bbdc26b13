"""Pydantic schemas for registration and account administration"""

from datetime import datetime
from typing import Optional, Literal

from pydantic import BaseModel, EmailStr, Field


class RegistrationCodeCreate(BaseModel):
    """Request schema for issuing a registration code.

    Attributes:
        role: "user" (submitter account) or "moderator"
        full_name: Name pre-filled on the account
        email: Email pre-filled on the account
    """
    role: Literal["user", "moderator"]
    full_name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    phone_number: Optional[str] = Field(None, max_length=50)
    organization: Optional[str] = Field(None, max_length=200)


class RegistrationCodeResponse(BaseModel):
    """Persisted registration code schema (camelCase, as stored)"""
    code: str
    role: str
    fullName: str
    email: str
    phoneNumber: Optional[str] = None
    organization: Optional[str] = None
    createdAt: Optional[str] = None
    consumed: bool


class RegisterRequest(BaseModel):
    """Request schema for consuming a registration code.

    Attributes:
        code: Registration code issued by an admin
        user_id: External identity reference for the new account
        jurisdiction: Region identifier (required for moderator codes)
    """
    code: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1, max_length=200)
    jurisdiction: Optional[str] = Field(None, max_length=200)


class UserRoleUpdate(BaseModel):
    """Request schema for an admin role change"""
    role: Literal["submitter", "moderator", "admin"]
    jurisdiction: Optional[str] = Field(None, max_length=200)


class UserResponse(BaseModel):
    """User account response"""
    id: str
    role: str
    jurisdiction: Optional[str] = None
    full_name: str
    email: str
    phone_number: Optional[str] = None
    organization: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

# app/schemas/auth.py

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field


# -----------------------------
# Member-facing models
# -----------------------------

class CurrentMember(BaseModel):
    """Minimal, response-safe member info (also usable as auth context)."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    first_name: str
    last_name: str
    is_active: bool = True


class MemberResponse(BaseModel):
    """Response model for GET /auth/me."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    first_name: str
    last_name: str
    full_name: str
    is_active: bool
    created_at: datetime | None = None


# -----------------------------
# Requests (JSON body)
# -----------------------------

class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)


# -----------------------------
# Responses
# -----------------------------

class TokenResponse(BaseModel):
    """Response for POST /auth/login and POST /invitations/{uid}/accept."""
    access_token: str
    token_type: str = "bearer"
    member: CurrentMember


class MessageResponse(BaseModel):
    message: str

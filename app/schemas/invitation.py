from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


# ============================================================================
# Request Schemas
# ============================================================================

class InvitationCreateRequest(BaseModel):
    email: EmailStr


class InvitationAcceptRequest(BaseModel):
    """Sign-up form submitted from an invitation link"""
    first_name: str = Field(max_length=100)
    last_name: str = Field(max_length=100)
    password: str = Field(min_length=5, max_length=128)

    @field_validator("first_name", "last_name")
    @classmethod
    def not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


# ============================================================================
# Response Schemas
# ============================================================================

class InvitationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    uid: str
    email: str
    email_sent: bool
    invited_by: UUID | None
    created_at: datetime | None = None


class InvitationDispatchResponse(BaseModel):
    """Result of the pending-invitation mail task"""
    sent: int
    failed: int

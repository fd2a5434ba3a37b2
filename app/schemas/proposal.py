from datetime import datetime
from typing import List
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.proposal import ProposalStatusType, ProposalType
from app.services.proposal.lifecycle import ProposalAction, ViewerMode


# ============================================================================
# Request Schemas
# ============================================================================

class ProposalCreateRequest(BaseModel):
    """New draft"""
    title: str = Field(min_length=1, max_length=200)
    short_description: str = Field(default="", max_length=500)
    content: str = ""
    bhap_type: ProposalType = ProposalType.HOUSE_RULE


class ProposalUpdateRequest(BaseModel):
    """Edit; omitted fields are left unchanged"""
    title: str | None = Field(default=None, min_length=1, max_length=200)
    short_description: str | None = Field(default=None, max_length=500)
    content: str | None = None
    bhap_type: ProposalType | None = None


class VoteRequest(BaseModel):
    value: ProposalStatusType


# ============================================================================
# Response Schemas
# ============================================================================

class AuthorResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    full_name: str


class ProposalResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    number: int | None
    draft_id: str
    title: str
    short_description: str
    content: str
    bhap_type: ProposalType
    status: ProposalStatusType
    author: AuthorResponse
    created_at: datetime
    last_modified: datetime


class ProposalSummaryResponse(BaseModel):
    """Row in the BHAP list"""
    model_config = ConfigDict(from_attributes=True)

    number: int | None
    draft_id: str
    title: str
    short_description: str
    bhap_type: ProposalType
    status: ProposalStatusType
    author: AuthorResponse
    last_modified: datetime


class ProposalListResponse(BaseModel):
    """All proposals grouped by status; `featured` is the oldest open discussion"""
    featured: ProposalSummaryResponse | None = None
    discussion: List[ProposalSummaryResponse]
    accepted: List[ProposalSummaryResponse]
    rejected: List[ProposalSummaryResponse]
    withdrawn: List[ProposalSummaryResponse]
    draft: List[ProposalSummaryResponse]


class VoteBreakdownResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    vote_count: int
    voting_population: int
    accepted: int
    rejected: int
    undecided: int
    percent_accepted: int
    percent_rejected: int
    percent_undecided: int


class ProposalDetailResponse(BaseModel):
    proposal: ProposalResponse
    viewer_mode: ViewerMode
    available_actions: List[ProposalAction]
    is_editable: bool
    my_vote: ProposalStatusType | None = None
    votes: VoteBreakdownResponse


class VoteResponse(BaseModel):
    message: str
    vote_id: UUID
    proposal_number: int
    value: ProposalStatusType
    proposal_status: ProposalStatusType
    votes: VoteBreakdownResponse

from fastapi import APIRouter, Depends

from app.models import Member
from app.services.proposal.facade import ProposalService
from app.schemas.proposal import (
    ProposalDetailResponse,
    ProposalResponse,
    ProposalUpdateRequest,
)
from app.dependencies.auth import get_current_member, get_optional_member
from app.dependencies.services import get_proposal_service


router = APIRouter(tags=["bhaps"])


@router.get(
    "/bhaps/{number}",
    response_model=ProposalDetailResponse
)
def get_bhap(
    number: int,
    viewer: Member | None = Depends(get_optional_member),
    proposal_service: ProposalService = Depends(get_proposal_service),
) -> ProposalDetailResponse:
    """
    BHAP detail by permanent number
    - includes the viewer mode, the actions open to the viewer and the vote breakdown
    """
    proposal = proposal_service.get_by_number(number)
    return proposal_service.get_detail(proposal, viewer)


@router.get(
    "/drafts/{draft_id}",
    response_model=ProposalDetailResponse
)
def get_draft(
    draft_id: str,
    viewer: Member | None = Depends(get_optional_member),
    proposal_service: ProposalService = Depends(get_proposal_service),
) -> ProposalDetailResponse:
    """Detail by draft token; keeps working after the draft gets a number"""
    proposal = proposal_service.get_by_draft_id(draft_id)
    return proposal_service.get_detail(proposal, viewer)


@router.patch(
    "/bhaps/{number}",
    response_model=ProposalResponse
)
def edit_bhap(
    number: int,
    request: ProposalUpdateRequest,
    current_member: Member = Depends(get_current_member),
    proposal_service: ProposalService = Depends(get_proposal_service),
) -> ProposalResponse:
    """Author only, while in discussion"""
    proposal = proposal_service.get_by_number(number)
    return proposal_service.edit(proposal, request, current_member.id)


@router.patch(
    "/drafts/{draft_id}",
    response_model=ProposalResponse
)
def edit_draft(
    draft_id: str,
    request: ProposalUpdateRequest,
    current_member: Member = Depends(get_current_member),
    proposal_service: ProposalService = Depends(get_proposal_service),
) -> ProposalResponse:
    proposal = proposal_service.get_by_draft_id(draft_id)
    return proposal_service.edit(proposal, request, current_member.id)

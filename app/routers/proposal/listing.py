from fastapi import APIRouter, Depends, status

from app.models import Member
from app.services.proposal.facade import ProposalService
from app.schemas.proposal import (
    ProposalCreateRequest,
    ProposalListResponse,
    ProposalResponse,
)
from app.dependencies.auth import get_current_member
from app.dependencies.services import get_proposal_service


router = APIRouter(tags=["bhaps"])


@router.get(
    "/bhaps",
    response_model=ProposalListResponse
)
def list_bhaps(
    proposal_service: ProposalService = Depends(get_proposal_service),
) -> ProposalListResponse:
    """
    BHAP list, grouped by status
    - visible to anonymous viewers
    """
    return proposal_service.list_grouped()


@router.post(
    "/bhaps",
    response_model=ProposalResponse,
    status_code=status.HTTP_201_CREATED
)
def create_bhap(
    request: ProposalCreateRequest,
    current_member: Member = Depends(get_current_member),
    proposal_service: ProposalService = Depends(get_proposal_service),
) -> ProposalResponse:
    """Create a new draft authored by the caller"""
    return proposal_service.create_draft(request, author_id=current_member.id)

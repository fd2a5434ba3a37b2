from fastapi import APIRouter, Depends

from app.models import Member
from app.services.proposal.facade import ProposalService
from app.schemas.proposal import ProposalResponse
from app.dependencies.auth import get_current_member
from app.dependencies.services import get_proposal_service


router = APIRouter(tags=["bhaps-status"])


@router.post(
    "/drafts/{draft_id}/ready-for-discussion",
    response_model=ProposalResponse
)
def publish_draft(
    draft_id: str,
    current_member: Member = Depends(get_current_member),
    proposal_service: ProposalService = Depends(get_proposal_service),
) -> ProposalResponse:
    """
    Mark a draft as ready for discussion
    - author only
    - assigns the BHAP its permanent number
    """
    proposal = proposal_service.get_by_draft_id(draft_id)
    return proposal_service.publish_to_discussion(proposal, current_member.id)


@router.post(
    "/drafts/{draft_id}/withdraw",
    response_model=ProposalResponse
)
def withdraw_draft(
    draft_id: str,
    current_member: Member = Depends(get_current_member),
    proposal_service: ProposalService = Depends(get_proposal_service),
) -> ProposalResponse:
    proposal = proposal_service.get_by_draft_id(draft_id)
    return proposal_service.withdraw(proposal, current_member.id)


@router.post(
    "/bhaps/{number}/withdraw",
    response_model=ProposalResponse
)
def withdraw_bhap(
    number: int,
    current_member: Member = Depends(get_current_member),
    proposal_service: ProposalService = Depends(get_proposal_service),
) -> ProposalResponse:
    """Author only, from discussion"""
    proposal = proposal_service.get_by_number(number)
    return proposal_service.withdraw(proposal, current_member.id)

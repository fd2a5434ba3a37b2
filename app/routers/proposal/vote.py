from fastapi import APIRouter, Depends

from app.models import Member, ProposalStatusType
from app.services.proposal.facade import ProposalService
from app.schemas.auth import MessageResponse
from app.schemas.proposal import VoteRequest, VoteResponse
from app.dependencies.auth import get_current_member
from app.dependencies.services import get_proposal_service


router = APIRouter(tags=["bhaps-vote"])


@router.post(
    "/bhaps/{number}/votes",
    response_model=VoteResponse
)
def cast_vote(
    number: int,
    request: VoteRequest,
    current_member: Member = Depends(get_current_member),
    proposal_service: ProposalService = Depends(get_proposal_service),
) -> VoteResponse:
    """
    Cast or replace the caller's vote (upsert)
    - discussion BHAPs only, never by the author
    - value: ACCEPTED or REJECTED
    - the BHAP is decided once every member but the author has voted
    """
    proposal = proposal_service.get_by_number(number)
    return proposal_service.cast_vote(proposal, current_member.id, request.value)


@router.post(
    "/bhaps/{number}/vote-accept",
    response_model=VoteResponse
)
def vote_accept(
    number: int,
    current_member: Member = Depends(get_current_member),
    proposal_service: ProposalService = Depends(get_proposal_service),
) -> VoteResponse:
    proposal = proposal_service.get_by_number(number)
    return proposal_service.cast_vote(proposal, current_member.id, ProposalStatusType.ACCEPTED)


@router.post(
    "/bhaps/{number}/vote-reject",
    response_model=VoteResponse
)
def vote_reject(
    number: int,
    current_member: Member = Depends(get_current_member),
    proposal_service: ProposalService = Depends(get_proposal_service),
) -> VoteResponse:
    proposal = proposal_service.get_by_number(number)
    return proposal_service.cast_vote(proposal, current_member.id, ProposalStatusType.REJECTED)


@router.delete(
    "/bhaps/{number}/votes/me",
    response_model=MessageResponse
)
def retract_vote(
    number: int,
    current_member: Member = Depends(get_current_member),
    proposal_service: ProposalService = Depends(get_proposal_service),
) -> MessageResponse:
    """Delete the caller's vote; does not re-tally"""
    proposal = proposal_service.get_by_number(number)
    return proposal_service.retract_vote(proposal, current_member.id)

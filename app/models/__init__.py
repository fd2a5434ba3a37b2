# Models package
from app.models.auth import Member, Invitation
from app.models.proposal import (
    Proposal, ProposalSequence, ProposalStatusType, ProposalType
)
from app.models.vote import Vote

__all__ = [
    # Members
    "Member", "Invitation",
    # Proposal
    "Proposal", "ProposalSequence", "ProposalStatusType", "ProposalType",
    # Vote
    "Vote",
]

"""
Repository aggregate
Groups the repositories the proposal services need into one injectable object
"""
from sqlalchemy.orm import Session

from app.repositories.auth import MemberRepository
from app.repositories.proposal_repository import ProposalRepository
from app.repositories.sequence_repository import SequenceRepository
from app.repositories.vote_repository import VoteRepository


class ProposalAggregateRepositories:
    """Everything a proposal operation reads or writes"""

    def __init__(self, db: Session):
        self.proposal = ProposalRepository(db)
        self.vote = VoteRepository(db)
        self.member = MemberRepository(db)
        self.sequence = SequenceRepository(db)

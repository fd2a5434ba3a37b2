from fastapi import Depends
from sqlalchemy.orm import Session

from app.db import get_db
from app.dependencies.aggregate_repositories import ProposalAggregateRepositories
from app.repositories.auth import InvitationRepository, MemberRepository


# Aggregate dependency
def get_proposal_aggregate_repositories(db: Session = Depends(get_db)) -> ProposalAggregateRepositories:
    """Repositories used by the proposal service"""
    return ProposalAggregateRepositories(db)


# Individual repositories
def get_member_repository(db: Session = Depends(get_db)) -> MemberRepository:
    return MemberRepository(db)


def get_invitation_repository(db: Session = Depends(get_db)) -> InvitationRepository:
    return InvitationRepository(db)

from fastapi import Depends
from sqlalchemy.orm import Session

from app.db import get_db
from app.dependencies.aggregate_repositories import ProposalAggregateRepositories
from app.dependencies.repositories import (
    get_invitation_repository,
    get_member_repository,
    get_proposal_aggregate_repositories,
)
from app.repositories.auth import InvitationRepository, MemberRepository
from app.services.auth import AuthService
from app.services.invitation_service import InvitationService
from app.services.proposal.facade import ProposalService
from app.utils.mailer import SendGridMailer, build_sendgrid_mailer_from_env


def get_proposal_service(
    db: Session = Depends(get_db),
    repos: ProposalAggregateRepositories = Depends(get_proposal_aggregate_repositories),
) -> ProposalService:
    """ProposalService dependency"""
    return ProposalService(db=db, repos=repos)


def get_auth_service(
    db: Session = Depends(get_db),
    member_repo: MemberRepository = Depends(get_member_repository),
) -> AuthService:
    return AuthService(db=db, member_repo=member_repo)


def get_invitation_service(
    db: Session = Depends(get_db),
    invitation_repo: InvitationRepository = Depends(get_invitation_repository),
    member_repo: MemberRepository = Depends(get_member_repository),
) -> InvitationService:
    return InvitationService(db=db, invitation_repo=invitation_repo, member_repo=member_repo)


def get_mailer() -> SendGridMailer:
    """Built per request so a missing SendGrid key only fails the mail task"""
    return build_sendgrid_mailer_from_env()

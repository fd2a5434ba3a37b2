from fastapi import APIRouter, Depends, status

from app.models import Member
from app.schemas.auth import TokenResponse
from app.schemas.invitation import (
    InvitationAcceptRequest,
    InvitationCreateRequest,
    InvitationDispatchResponse,
    InvitationResponse,
)
from app.services.auth import AuthService
from app.services.invitation_service import InvitationService
from app.utils.mailer import SendGridMailer
from app.dependencies.auth import get_current_member
from app.dependencies.services import get_auth_service, get_invitation_service, get_mailer


router = APIRouter(tags=["invitations"])


@router.post(
    "/invitations",
    response_model=InvitationResponse,
    status_code=status.HTTP_201_CREATED
)
def create_invitation(
    request: InvitationCreateRequest,
    current_member: Member = Depends(get_current_member),
    invitation_service: InvitationService = Depends(get_invitation_service),
) -> InvitationResponse:
    """Invite a new member; the email goes out with the next send task"""
    return invitation_service.create_invitation(request.email, invited_by=current_member.id)


@router.get(
    "/invitations/{uid}",
    response_model=InvitationResponse
)
def get_invitation(
    uid: str,
    invitation_service: InvitationService = Depends(get_invitation_service),
) -> InvitationResponse:
    return invitation_service.get_invitation(uid)


@router.post(
    "/invitations/{uid}/accept",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED
)
def accept_invitation(
    uid: str,
    request: InvitationAcceptRequest,
    invitation_service: InvitationService = Depends(get_invitation_service),
    auth_service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    """
    Sign up from an invitation link
    - the invitation is consumed
    - the new member is signed in straight away
    """
    member = invitation_service.accept_invitation(uid, request)
    result = auth_service.issue_token(member)
    return TokenResponse(access_token=result.access_token, member=result.member)


@router.post(
    "/tasks/send-invitations",
    response_model=InvitationDispatchResponse
)
def send_invitations(
    current_member: Member = Depends(get_current_member),
    invitation_service: InvitationService = Depends(get_invitation_service),
    mailer: SendGridMailer = Depends(get_mailer),
) -> InvitationDispatchResponse:
    """
    Email all unsent invitations
    - member only; meant to be triggered by a scheduler holding a member token
    - fails with 500 when any email could not be sent
    """
    return invitation_service.send_pending(mailer)

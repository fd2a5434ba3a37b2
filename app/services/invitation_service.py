import logging
import os
from uuid import UUID

from sqlalchemy.orm import Session

from app.exceptions import ConflictError, InternalError, NotFoundError
from app.models.auth import Invitation, Member
from app.repositories.auth import InvitationRepository, MemberRepository, UniqueViolation
from app.schemas.invitation import (
    InvitationAcceptRequest,
    InvitationDispatchResponse,
    InvitationResponse,
)
from app.utils.mailer import MailerError, SendGridMailer
from app.utils.security import create_invitation_uid, hash_password
from app.utils.transaction import transaction

logger = logging.getLogger(__name__)


def build_signup_link(uid: str) -> str:
    """Frontend sign-up page for an invitation, e.g. https://.../invitation/<uid>"""
    base = os.getenv("FRONTEND_BASE_URL", "").strip().rstrip("/")
    if not base:
        raise RuntimeError("FRONTEND_BASE_URL is not set")
    return f"{base}/invitation/{uid}"


class InvitationService:
    """Invitations are the only way new members join"""

    def __init__(
        self,
        db: Session,
        invitation_repo: InvitationRepository,
        member_repo: MemberRepository,
    ):
        self.db = db
        self.invitation_repo = invitation_repo
        self.member_repo = member_repo

    def _get(self, uid: str) -> Invitation:
        invitation = self.invitation_repo.get_by_uid(uid)
        if not invitation:
            raise NotFoundError(
                message="Invitation not found",
                detail=f"No invitation with id {uid}"
            )
        return invitation

    def create_invitation(self, email: str, invited_by: UUID) -> InvitationResponse:
        email = email.strip().lower()
        if self.member_repo.get_by_email(email):
            raise ConflictError(
                message="Already a member",
                detail=f"{email} already belongs to a member"
            )

        try:
            with transaction(self.db):
                invitation = self.invitation_repo.create(
                    uid=create_invitation_uid(),
                    email=email,
                    invited_by=invited_by,
                )
        except UniqueViolation as e:
            raise ConflictError(message="Invitation conflict", detail=f"Duplicate {e.field}") from e

        self.db.refresh(invitation)
        logger.info("member %s invited %s", invited_by, email)
        return InvitationResponse.model_validate(invitation)

    def get_invitation(self, uid: str) -> InvitationResponse:
        return InvitationResponse.model_validate(self._get(uid))

    def accept_invitation(self, uid: str, request: InvitationAcceptRequest) -> Member:
        """
        Sign up from an invitation
        - the invitation is consumed in the same transaction
        """
        invitation = self._get(uid)
        email = invitation.email

        try:
            with transaction(self.db):
                member = self.member_repo.create(
                    email=email,
                    first_name=request.first_name,
                    last_name=request.last_name,
                    password_hash=hash_password(request.password),
                )
                self.invitation_repo.delete_by_uid(uid)
        except UniqueViolation as e:
            raise ConflictError(
                message="Already a member",
                detail=f"{email} already belongs to a member"
            ) from e

        self.db.refresh(member)
        logger.info("created member %s from invitation", member.id)
        return member

    def send_pending(self, mailer: SendGridMailer) -> InvitationDispatchResponse:
        """
        Email every invitation not yet sent
        - each successful send is committed on its own
        - failures are logged and counted, then reported as one InternalError
        """
        pending = self.invitation_repo.get_unsent()
        logger.info("about to send %d invitations", len(pending))

        sent = 0
        failed = 0
        for invitation in pending:
            try:
                mailer.send_invitation_email(
                    to_email=invitation.email,
                    signup_link=build_signup_link(invitation.uid),
                )
            except MailerError as e:
                logger.error("failed to send mail to %s: %s", invitation.email, e)
                failed += 1
                continue

            with transaction(self.db):
                self.invitation_repo.mark_sent(invitation)
            sent += 1
            logger.info("sent an invitation to %s", invitation.email)

        if failed:
            logger.info("failed the task because %d emails failed to send", failed)
            raise InternalError(
                message="Failures while sending emails",
                detail=f"{failed} of {len(pending)} invitations could not be sent"
            )
        return InvitationDispatchResponse(sent=sent, failed=failed)

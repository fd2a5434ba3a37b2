# app/services/auth.py

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from app.repositories.auth import MemberRepository
from app.schemas.auth import CurrentMember
from app.utils.security import create_access_token, verify_password

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------
# Service-level errors (router maps these to HTTP responses)
# ---------------------------------------------------------------------

class AuthServiceError(Exception):
    """Base class for auth service errors."""


class InvalidCredentials(AuthServiceError):
    pass


class InactiveMember(AuthServiceError):
    pass


# ---------------------------------------------------------------------
# Return type for service methods
# ---------------------------------------------------------------------

@dataclass(slots=True)
class AuthResult:
    access_token: str
    member: CurrentMember


class AuthService:
    def __init__(self, db: Session, member_repo: MemberRepository):
        self.db = db
        self.member_repo = member_repo

    def issue_token(self, member) -> AuthResult:
        access = create_access_token(subject=str(member.id), email=member.email)
        return AuthResult(access_token=access, member=CurrentMember.model_validate(member))

    def login(self, *, email: str, password: str) -> AuthResult:
        """
        - Find member by email
        - Verify password against the stored bcrypt hash
        - Issue a new access token
        """
        member = self.member_repo.get_by_email(email)
        if not member:
            logger.warning("login attempt for unknown email %s", email)
            raise InvalidCredentials()

        if not member.is_active:
            raise InactiveMember()

        if not verify_password(password, member.password_hash):
            logger.warning("bad password for member %s", member.id)
            raise InvalidCredentials()

        return self.issue_token(member)

# app/repositories/auth.py

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models import Invitation, Member


# ---------------------------------------------------------------------
# Repository exceptions (DB-layer concerns, not HTTP concerns)
# ---------------------------------------------------------------------

class RepositoryError(Exception):
    """Base class for repository-layer errors."""


@dataclass(slots=True)
class UniqueViolation(RepositoryError):
    """
    Raised when a create/insert violates a unique constraint.
    field is a hint for service-level decisions/logging; it is best-effort.
    """
    field: str
    message: str = "Unique constraint violated"


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------

def _raise_unique_violation(err: IntegrityError, *, default_field: str) -> None:
    """
    Best-effort mapping of an IntegrityError to a UniqueViolation.
    Postgres and SQLite word their messages differently; keep it simple.
    """
    msg = str(err.orig).lower() if getattr(err, "orig", None) else str(err).lower()

    if "members" in msg and "email" in msg:
        raise UniqueViolation(field="email") from err
    if "invitations" in msg and "uid" in msg:
        raise UniqueViolation(field="uid") from err

    raise UniqueViolation(field=default_field) from err


# ---------------------------------------------------------------------
# MemberRepository
# ---------------------------------------------------------------------

class MemberRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, member_id: UUID) -> Optional[Member]:
        stmt = select(Member).where(Member.id == member_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_by_email(self, email: str) -> Optional[Member]:
        stmt = select(Member).where(Member.email == email)
        return self.db.execute(stmt).scalar_one_or_none()

    def count_active(self, *, exclude_id: UUID | None = None) -> int:
        """
        Number of active members.
        exclude_id leaves one member out (the author, for the voting population).
        """
        stmt = select(func.count(Member.id)).where(Member.is_active.is_(True))
        if exclude_id is not None:
            stmt = stmt.where(Member.id != exclude_id)
        return self.db.execute(stmt).scalar_one() or 0

    def create(
        self,
        *,
        email: str,
        first_name: str,
        last_name: str,
        password_hash: str,
    ) -> Member:
        """
        Create a member row. Caller is responsible for transaction scope.
        """
        member = Member(
            email=email,
            first_name=first_name,
            last_name=last_name,
            password_hash=password_hash,
        )
        self.db.add(member)
        try:
            self.db.flush()  # ensures PK is generated
        except IntegrityError as e:
            _raise_unique_violation(e, default_field="member")
        return member


# ---------------------------------------------------------------------
# InvitationRepository
# ---------------------------------------------------------------------

class InvitationRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(self, *, uid: str, email: str, invited_by: UUID | None) -> Invitation:
        invitation = Invitation(uid=uid, email=email, invited_by=invited_by, email_sent=False)
        self.db.add(invitation)
        try:
            self.db.flush()
        except IntegrityError as e:
            _raise_unique_violation(e, default_field="invitation")
        return invitation

    def get_by_uid(self, uid: str) -> Optional[Invitation]:
        stmt = select(Invitation).where(Invitation.uid == uid)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_unsent(self) -> List[Invitation]:
        """Invitations whose email has not been delivered yet."""
        stmt = (
            select(Invitation)
            .where(Invitation.email_sent.is_(False))
            .order_by(Invitation.created_at.asc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def mark_sent(self, invitation: Invitation) -> Invitation:
        invitation.email_sent = True
        self.db.flush()
        return invitation

    def delete_by_uid(self, uid: str) -> int:
        """
        Delete a redeemed invitation so it cannot be reused. Returns rows deleted.
        """
        stmt = delete(Invitation).where(Invitation.uid == uid)
        result = self.db.execute(stmt)
        return result.rowcount or 0

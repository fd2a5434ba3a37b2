from __future__ import annotations

import logging
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.dependencies.repositories import get_member_repository
from app.models import Member
from app.repositories.auth import MemberRepository
from app.utils.security import verify_token

logger = logging.getLogger(__name__)

# Reads: Authorization: Bearer <token>
security = HTTPBearer(auto_error=False)


def _unauthenticated() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )


def _resolve_member(
    credentials: HTTPAuthorizationCredentials | None,
    member_repo: MemberRepository,
) -> Member | None:
    """
    Map a bearer token to an active Member.
    - no header: None (anonymous)
    - header present but invalid, expired, or for an inactive member: 401
    """
    if credentials is None:
        return None
    if credentials.scheme.lower() != "bearer":
        raise _unauthenticated()

    try:
        payload = verify_token(credentials.credentials, expected_type="access")
        member_id = UUID(payload["sub"])
    except ValueError:
        logger.warning("rejected invalid access token")
        raise _unauthenticated()

    member = member_repo.get_by_id(member_id)
    if not member or not member.is_active:
        raise _unauthenticated()
    return member


def get_optional_member(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    member_repo: MemberRepository = Depends(get_member_repository),
) -> Member | None:
    """The authenticated Member, or None for anonymous viewers."""
    return _resolve_member(credentials, member_repo)


def get_current_member(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    member_repo: MemberRepository = Depends(get_member_repository),
) -> Member:
    """Return the authenticated Member ORM object; 401 when anonymous."""
    member = _resolve_member(credentials, member_repo)
    if member is None:
        raise _unauthenticated()
    return member

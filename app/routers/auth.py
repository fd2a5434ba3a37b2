from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from app.dependencies.auth import get_current_member
from app.dependencies.services import get_auth_service
from app.models import Member
from app.schemas.auth import LoginRequest, MemberResponse, TokenResponse
from app.services.auth import AuthService, InactiveMember, InvalidCredentials

router = APIRouter()


@router.post("/login", response_model=TokenResponse)
def login(
    req: LoginRequest,
    service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    try:
        result = service.login(email=req.email, password=req.password)
    except InvalidCredentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Incorrect email or password")
    except InactiveMember:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="This account has been deactivated")

    return TokenResponse(
        access_token=result.access_token,
        token_type="bearer",
        member=result.member,
    )


@router.get("/me", response_model=MemberResponse)
def me(member: Member = Depends(get_current_member)) -> MemberResponse:
    return MemberResponse.model_validate(member)

"""
Account endpoints
=================

POST /api/v1/auth/signup   -- create an account (university email only)
GET  /api/v1/auth/profile  -- caller's profile
PUT  /api/v1/auth/profile  -- update name / student id / batch / department
"""

from fastapi import APIRouter, Depends, Request

from uniride.api.dependencies import get_account_service, get_current_user_id
from uniride.api.middleware import RATE_LIMIT, limiter
from uniride.api.schemas import (
    ProfileUpdateRequest,
    SignupRequest,
    SignupResponse,
    UserEnvelope,
    error_responses,
)
from uniride.domain.entities import UserProfile
from uniride.domain.enums import UserType
from uniride.services.accounts import AccountService

router = APIRouter(
    prefix="/auth", tags=["auth"], responses=error_responses(400, 401, 404)
)


def _user_payload(profile: UserProfile) -> dict:
    return {**profile.to_record(), "badge": profile.badge.value}


@router.post("/signup", response_model=SignupResponse, summary="Create an account")
@limiter.limit(RATE_LIMIT)
async def signup(
    request: Request,
    body: SignupRequest,
    service: AccountService = Depends(get_account_service),
):
    profile = await service.signup(
        email=body.email,
        password=body.password,
        name=body.name,
        student_id=body.student_id,
        batch=body.batch,
        department=body.department,
        user_type=body.user_type,
    )
    return {
        "message": "User created successfully",
        "user": _user_payload(profile),
        "needsVerification": profile.user_type == UserType.HYBRID,
    }


@router.get("/profile", response_model=UserEnvelope, summary="Caller's profile")
@limiter.limit(RATE_LIMIT)
async def get_profile(
    request: Request,
    user_id: str = Depends(get_current_user_id),
    service: AccountService = Depends(get_account_service),
):
    profile = await service.get_profile(user_id)
    return {"user": _user_payload(profile)}


@router.put("/profile", response_model=UserEnvelope, summary="Update own profile")
@limiter.limit(RATE_LIMIT)
async def update_profile(
    request: Request,
    body: ProfileUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    service: AccountService = Depends(get_account_service),
):
    profile = await service.update_profile(user_id, body.model_dump(exclude_unset=True))
    return {"user": _user_payload(profile)}

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from yogastudio.core.database import get_session
from yogastudio.core.dependencies import Identity, get_current_identity
from yogastudio.core.limits import limiter
from yogastudio.staff.crud.auth import login_staff
from yogastudio.staff.crud.clients import get_profile_by_id
from yogastudio.staff.schemas.users import LoginRequest, ProfileRead, TokenResponse

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/login", response_model=TokenResponse)
@limiter.limit("10/minute")
async def staff_login(
    request: Request,
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_session),
):
    """
    Back-office login by phone and password.

    Only profiles with the admin role receive a token here; clients use
    /portal/auth/login.
    """
    return await login_staff(db, credentials.phone, credentials.password)


@router.get("/me", response_model=ProfileRead)
@limiter.limit("60/minute")
async def get_me(
    request: Request,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_session),
):
    """Profile of the token holder"""
    return await get_profile_by_id(db, identity.user_id)

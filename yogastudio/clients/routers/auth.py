from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from yogastudio.core.database import get_session
from yogastudio.core.limits import limiter
from yogastudio.staff.crud.auth import login_client, register_client
from yogastudio.staff.schemas.users import LoginRequest, RegisterRequest, TokenResponse

router = APIRouter(prefix="/portal/auth", tags=["Portal authentication"])


@router.post("/login", response_model=TokenResponse)
@limiter.limit("10/minute")
async def portal_login(
    request: Request,
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_session),
):
    return await login_client(db, credentials.phone, credentials.password)


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("5/minute")
async def portal_register(
    request: Request,
    data: RegisterRequest,
    db: AsyncSession = Depends(get_session),
):
    """
    Self-registration.

    - **phone**: at least 10 digits; becomes the login
    - **password**: optional, defaults to the phone digits
    """
    return await register_client(db, data)

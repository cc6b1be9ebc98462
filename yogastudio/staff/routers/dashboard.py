from typing import List

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from yogastudio.core.database import get_session
from yogastudio.core.dependencies import require_admin
from yogastudio.core.limits import limiter
from yogastudio.staff.crud.clients import get_all_users
from yogastudio.staff.crud.dashboard import get_dashboard_stats
from yogastudio.staff.schemas.content import DashboardStats
from yogastudio.staff.schemas.users import UserAdminRead

router = APIRouter(prefix="/admin", tags=["Dashboard"], dependencies=[Depends(require_admin)])


@router.get("/dashboard", response_model=DashboardStats)
@limiter.limit("30/minute")
async def dashboard(request: Request, db: AsyncSession = Depends(get_session)):
    """Client count, this month's subscription revenue and today's bookings"""
    return await get_dashboard_stats(db)


@router.get("/users", response_model=List[UserAdminRead])
@limiter.limit("30/minute")
async def list_all_users(request: Request, db: AsyncSession = Depends(get_session)):
    """Every registered profile with email, role and registration date"""
    return await get_all_users(db)

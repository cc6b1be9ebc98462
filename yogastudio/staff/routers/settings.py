from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from yogastudio.core.database import get_session
from yogastudio.core.dependencies import require_admin
from yogastudio.core.limits import limiter
from yogastudio.staff.crud.settings import (
    get_studio_settings,
    update_cancellation_window,
    update_studio_info,
)
from yogastudio.staff.schemas.content import (
    CancellationWindowUpdate,
    StudioInfoUpdate,
    StudioSettings,
)

router = APIRouter(prefix="/admin/settings", tags=["Settings"], dependencies=[Depends(require_admin)])


@router.get("/", response_model=StudioSettings)
@limiter.limit("30/minute")
async def read_settings(request: Request, db: AsyncSession = Depends(get_session)):
    return await get_studio_settings(db)


@router.put("/cancellation", response_model=StudioSettings)
@limiter.limit("10/minute")
async def set_cancellation_window(
    request: Request,
    data: CancellationWindowUpdate,
    db: AsyncSession = Depends(get_session),
):
    """Minutes before class start during which clients can no longer cancel"""
    return await update_cancellation_window(db, data.cancellation_minutes)


@router.put("/studio", response_model=StudioSettings)
@limiter.limit("10/minute")
async def set_studio_info(
    request: Request,
    data: StudioInfoUpdate,
    db: AsyncSession = Depends(get_session),
):
    """Studio name, description, address, phone and instagram"""
    return await update_studio_info(db, data)

from typing import List

from fastapi import APIRouter, Depends, Request, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from yogastudio.core.database import get_session
from yogastudio.core.dependencies import require_admin
from yogastudio.core.limits import limiter
from yogastudio.staff.crud.catalog import create_coach, delete_coach, get_coaches, update_coach
from yogastudio.staff.schemas.catalog import CoachCreate, CoachRead, CoachUpdate

router = APIRouter(prefix="/admin/instructors", tags=["Instructors"], dependencies=[Depends(require_admin)])


@router.get("/", response_model=List[CoachRead])
@limiter.limit("30/minute")
async def list_coaches(request: Request, db: AsyncSession = Depends(get_session)):
    return await get_coaches(db)


@router.post("/", response_model=CoachRead, status_code=status.HTTP_201_CREATED)
@limiter.limit("10/minute")
async def add_coach(request: Request, data: CoachCreate, db: AsyncSession = Depends(get_session)):
    return await create_coach(db, data)


@router.patch("/{coach_id}", response_model=CoachRead)
@limiter.limit("20/minute")
async def edit_coach(
    request: Request,
    data: CoachUpdate,
    coach_id: int = Path(...),
    db: AsyncSession = Depends(get_session),
):
    return await update_coach(db, coach_id, data)


@router.delete("/{coach_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("10/minute")
async def remove_coach(request: Request, coach_id: int = Path(...), db: AsyncSession = Depends(get_session)):
    """Sessions taught by the coach stay on the schedule without a coach"""
    await delete_coach(db, coach_id)

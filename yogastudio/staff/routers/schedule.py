from datetime import date
from typing import List

from fastapi import APIRouter, Depends, Query, Request, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from yogastudio.core.database import get_session
from yogastudio.core.dependencies import require_admin
from yogastudio.core.limits import limiter
from yogastudio.clients.crud.bookings import count_active_bookings
from yogastudio.staff.crud.schedule import (
    create_session,
    delete_session,
    duplicate_week,
    get_week_schedule,
    to_session_read,
    update_session,
)
from yogastudio.staff.schemas.schedule import (
    DuplicateWeekRequest,
    DuplicateWeekResponse,
    SessionCreate,
    SessionRead,
    SessionUpdate,
)

router = APIRouter(prefix="/admin/schedule", tags=["Schedule"], dependencies=[Depends(require_admin)])


@router.get("/", response_model=List[SessionRead])
@limiter.limit("60/minute")
async def week_schedule(
    request: Request,
    week_start: date = Query(..., description="First day of the week (YYYY-MM-DD)"),
    db: AsyncSession = Depends(get_session),
):
    """Sessions of the seven days starting at week_start, with booked seat counts"""
    return await get_week_schedule(db, week_start)


@router.post("/", response_model=SessionRead, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
async def add_session(
    request: Request,
    data: SessionCreate,
    db: AsyncSession = Depends(get_session),
):
    class_session = await create_session(db, data)
    return to_session_read(class_session)


@router.post("/duplicate-week", response_model=DuplicateWeekResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("5/minute")
async def copy_week(
    request: Request,
    data: DuplicateWeekRequest,
    db: AsyncSession = Depends(get_session),
):
    """
    Copy every session of the given week to the next week.

    Class type, coach and capacity are kept; bookings are not copied.
    Fails when the week has no sessions.
    """
    copies = await duplicate_week(db, data.week_start)
    return DuplicateWeekResponse(
        created=len(copies), sessions=[to_session_read(s) for s in copies]
    )


@router.patch("/{session_id}", response_model=SessionRead)
@limiter.limit("30/minute")
async def edit_session(
    request: Request,
    data: SessionUpdate,
    session_id: int = Path(...),
    db: AsyncSession = Depends(get_session),
):
    class_session = await update_session(db, session_id, data)
    return to_session_read(class_session, await count_active_bookings(db, session_id))


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("20/minute")
async def remove_session(
    request: Request,
    session_id: int = Path(...),
    db: AsyncSession = Depends(get_session),
):
    """Delete a session and its bookings"""
    await delete_session(db, session_id)

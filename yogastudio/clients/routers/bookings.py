from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from yogastudio.core.database import get_session
from yogastudio.core.dependencies import Identity, get_current_identity
from yogastudio.core.limits import limiter
from yogastudio.core.validations import utcnow
from yogastudio.clients.crud.bookings import cancel_booking, create_booking, get_day_schedule
from yogastudio.clients.schemas.bookings import (
    BookingCreate,
    BookingRead,
    CancelBookingResponse,
    PortalScheduleResponse,
)
from yogastudio.staff.crud.settings import get_cancellation_window

router = APIRouter(prefix="/portal", tags=["Portal booking"])


@router.get("/schedule", response_model=PortalScheduleResponse)
@limiter.limit("60/minute")
async def day_schedule(
    request: Request,
    day: Optional[date] = Query(None, description="Day to show (YYYY-MM-DD), today by default"),
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_session),
):
    """Sessions of the day with seats left and whether the caller is booked"""
    sessions = await get_day_schedule(db, day or utcnow().date(), identity.user_id)
    return PortalScheduleResponse(
        sessions=sessions,
        cancellation_minutes=await get_cancellation_window(db),
    )


@router.post("/bookings", response_model=BookingRead, status_code=status.HTTP_201_CREATED)
@limiter.limit("20/minute")
async def book(
    request: Request,
    data: BookingCreate,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_session),
):
    """
    Book a seat in a class.

    Debits one visit from the subscription that expires first. Answers 409
    with SESSION_FULL, DUPLICATE_BOOKING or NO_ACTIVE_SUBSCRIPTION when the
    booking is not possible.
    """
    return await create_booking(db, data.session_id, identity.user_id)


@router.post("/bookings/{booking_id}/cancel", response_model=CancelBookingResponse)
@limiter.limit("20/minute")
async def cancel(
    request: Request,
    booking_id: int = Path(...),
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_session),
):
    """
    Cancel an own booking and get the visit back.

    Not possible within the studio's cancellation window before the class
    (409 CANCELLATION_WINDOW).
    """
    return await cancel_booking(db, booking_id, identity)

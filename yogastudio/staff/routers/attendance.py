from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from yogastudio.core.database import get_session
from yogastudio.core.dependencies import Identity, require_admin
from yogastudio.core.limits import limiter
from yogastudio.clients.crud.bookings import create_booking, mark_attendance
from yogastudio.clients.schemas.bookings import BookingRead
from yogastudio.staff.crud.attendance import get_attendance_report
from yogastudio.staff.schemas.attendance import (
    AttendanceReport,
    AttendanceStatusUpdate,
    ManualBookingCreate,
    NotifyRequest,
    NotifyResponse,
)
from yogastudio.staff.services.notification_service import notify_booking, notify_session

router = APIRouter(prefix="/admin/attendance", tags=["Attendance"])


@router.get("/", response_model=AttendanceReport)
@limiter.limit("30/minute")
async def attendance_report(
    request: Request,
    date_from: datetime = Query(...),
    date_to: datetime = Query(...),
    coach_id: Optional[int] = Query(None, gt=0),
    class_type_id: Optional[int] = Query(None, gt=0),
    identity: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """Sessions in the range with each booking and client"""
    return await get_attendance_report(db, date_from, date_to, coach_id, class_type_id)


@router.post("/bookings", response_model=BookingRead, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
async def manual_booking(
    request: Request,
    data: ManualBookingCreate,
    identity: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """
    Book a client by hand.

    Same rules as a client booking: a free seat, no existing booking for the
    class and a subscription with visits left (one visit is debited).
    """
    return await create_booking(db, data.session_id, data.user_id)


@router.put("/bookings/{booking_id}/status", response_model=BookingRead)
@limiter.limit("60/minute")
async def change_booking_status(
    request: Request,
    data: AttendanceStatusUpdate,
    booking_id: int = Path(...),
    identity: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """
    Set a booking to booked, completed or cancelled.

    Cancelling returns the visit to the subscription. Inside the cancellation
    window the request is answered with 409 CANCELLATION_WINDOW and the
    minutes left; resend with **force=true** to cancel anyway.
    """
    return await mark_attendance(db, booking_id, data.status, force=data.force)


@router.post("/bookings/{booking_id}/notify", response_model=NotifyResponse)
@limiter.limit("60/minute")
async def notify_client(
    request: Request,
    data: NotifyRequest,
    booking_id: int = Path(...),
    identity: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """WhatsApp link with a prepared message for the booking's client"""
    return await notify_booking(db, booking_id, data.type, data.note)


@router.post("/sessions/{session_id}/notify", response_model=NotifyResponse)
@limiter.limit("30/minute")
async def notify_group(
    request: Request,
    data: NotifyRequest,
    session_id: int = Path(...),
    identity: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """One WhatsApp link per booked client of the session"""
    return await notify_session(db, session_id, data.type, data.note)

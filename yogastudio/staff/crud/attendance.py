from datetime import datetime
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from yogastudio.core.exceptions import ValidationError
from yogastudio.clients.crud.bookings import count_active_bookings_bulk
from yogastudio.clients.models.bookings import Booking
from yogastudio.staff.crud.schedule import get_sessions_between
from yogastudio.staff.schemas.attendance import (
    AttendanceBooking,
    AttendanceClient,
    AttendanceReport,
    AttendanceSession,
)


async def get_attendance_report(
    session: AsyncSession,
    date_from: datetime,
    date_to: datetime,
    coach_id: Optional[int] = None,
    class_type_id: Optional[int] = None,
) -> AttendanceReport:
    """Sessions in [date_from, date_to) with every booking and its client"""
    if date_to <= date_from:
        raise ValidationError("date_to must be after date_from")

    sessions = await get_sessions_between(
        session, date_from, date_to, coach_id=coach_id, class_type_id=class_type_id
    )
    session_ids = [s.id for s in sessions]
    counts = await count_active_bookings_bulk(session, session_ids)

    bookings_by_session = {}
    if session_ids:
        result = await session.execute(
            select(Booking)
            .options(selectinload(Booking.user))
            .where(Booking.session_id.in_(session_ids))
            .order_by(Booking.created_at.asc(), Booking.id.asc())
        )
        for booking in result.scalars().all():
            bookings_by_session.setdefault(booking.session_id, []).append(booking)

    items: List[AttendanceSession] = []
    for class_session in sessions:
        item = AttendanceSession.model_validate(class_session)
        item.bookings_count = counts.get(class_session.id, 0)
        item.attendees = [
            AttendanceBooking(
                id=b.id,
                status=b.status,
                subscription_id=b.subscription_id,
                created_at=b.created_at,
                cancelled_at=b.cancelled_at,
                client=AttendanceClient.model_validate(b.user),
            )
            for b in bookings_by_session.get(class_session.id, [])
        ]
        items.append(item)

    return AttendanceReport(date_from=date_from, date_to=date_to, sessions=items)

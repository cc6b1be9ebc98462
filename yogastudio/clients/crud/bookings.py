"""Booking CRUD - seat capacity and the booking lifecycle (book, cancel, attendance)"""
import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Dict, List, Optional

from sqlalchemy import and_, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from yogastudio.core.database import db_operation
from yogastudio.core.dependencies import Identity
from yogastudio.core.exceptions import (
    AuthorizationError,
    CancellationWindowViolationError,
    DuplicateBookingError,
    InvalidStatusTransitionError,
    NoActiveSubscriptionError,
    NotFoundError,
    SessionFullError,
)
from yogastudio.core.logging_utils import log_business_event
from yogastudio.core.validations import utcnow, as_utc
from yogastudio.clients.crud.subscriptions import (
    select_active_subscription,
    is_chargeable,
    debit_visit,
    credit_visit,
)
from yogastudio.clients.models.bookings import Booking, BookingStatus
from yogastudio.clients.models.subscriptions import UserSubscription
from yogastudio.clients.schemas.bookings import (
    CancelBookingResponse,
    BookingRead,
    PortalScheduleItem,
)
from yogastudio.staff.crud.settings import get_cancellation_window
from yogastudio.staff.models.sessions import ClassSession

logger = logging.getLogger(__name__)


# === Capacity ===

async def count_active_bookings(session: AsyncSession, session_id: int) -> int:
    """Bookings holding a seat: everything except cancelled"""
    result = await session.execute(
        select(func.count(Booking.id)).where(
            and_(
                Booking.session_id == session_id,
                Booking.status != BookingStatus.cancelled,
            )
        )
    )
    return result.scalar() or 0


async def count_active_bookings_bulk(
    session: AsyncSession, session_ids: List[int]
) -> Dict[int, int]:
    if not session_ids:
        return {}
    result = await session.execute(
        select(Booking.session_id, func.count(Booking.id))
        .where(
            and_(
                Booking.session_id.in_(session_ids),
                Booking.status != BookingStatus.cancelled,
            )
        )
        .group_by(Booking.session_id)
    )
    return {row[0]: row[1] for row in result.all()}


async def has_capacity(session: AsyncSession, session_id: int) -> bool:
    class_session = await session.get(ClassSession, session_id)
    if class_session is None:
        raise NotFoundError("Class session", str(session_id))
    return await count_active_bookings(session, session_id) < class_session.capacity


async def _lock_class_session(session: AsyncSession, session_id: int) -> ClassSession:
    """Row lock on the session so concurrent bookings queue on the capacity check"""
    result = await session.execute(
        select(ClassSession).where(ClassSession.id == session_id).with_for_update()
    )
    class_session = result.scalar_one_or_none()
    if class_session is None:
        raise NotFoundError("Class session", str(session_id))
    return class_session


async def _ensure_seat(session: AsyncSession, class_session: ClassSession) -> None:
    booked = await count_active_bookings(session, class_session.id)
    if booked >= class_session.capacity:
        raise SessionFullError(class_session.id, class_session.capacity, booked)


async def _ensure_not_booked(
    session: AsyncSession, session_id: int, client_id: int, exclude_id: Optional[int] = None
) -> None:
    query = select(Booking.id).where(
        and_(
            Booking.session_id == session_id,
            Booking.user_id == client_id,
            Booking.status != BookingStatus.cancelled,
        )
    )
    if exclude_id is not None:
        query = query.where(Booking.id != exclude_id)
    result = await session.execute(query.limit(1))
    if result.scalar_one_or_none() is not None:
        raise DuplicateBookingError(session_id, client_id)


# === Reads ===

async def get_booking_by_id(session: AsyncSession, booking_id: int) -> Booking:
    result = await session.execute(
        select(Booking)
        .options(selectinload(Booking.session), selectinload(Booking.user))
        .where(Booking.id == booking_id)
        .execution_options(populate_existing=True)
    )
    booking = result.scalar_one_or_none()
    if not booking:
        raise NotFoundError("Booking", str(booking_id))
    return booking


async def get_client_bookings(
    session: AsyncSession, client_id: int, limit: int = 100
) -> List[Booking]:
    result = await session.execute(
        select(Booking)
        .join(ClassSession, Booking.session_id == ClassSession.id)
        .options(selectinload(Booking.session))
        .where(Booking.user_id == client_id)
        .order_by(ClassSession.start_time.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


def minutes_until_start(start_time: datetime, now: Optional[datetime] = None) -> int:
    """Whole minutes until the class starts, truncated toward zero"""
    now = now or utcnow()
    return int((as_utc(start_time) - now).total_seconds() / 60)


# === Lifecycle ===

@db_operation
async def create_booking(
    session: AsyncSession,
    session_id: int,
    client_id: int,
) -> Booking:
    """
    Book a client into a class session.

    Order of checks: seat available, no live booking for the same class,
    a subscription to charge. The booking insert and the visit debit are
    committed together; any failure leaves no trace.
    """
    try:
        class_session = await _lock_class_session(session, session_id)
        await _ensure_seat(session, class_session)
        await _ensure_not_booked(session, session_id, client_id)

        subscription = await select_active_subscription(session, client_id)
        if subscription is None:
            raise NoActiveSubscriptionError(client_id)

        booking = Booking(
            session_id=session_id,
            user_id=client_id,
            subscription_id=subscription.id,
            status=BookingStatus.booked,
        )
        session.add(booking)
        try:
            await session.flush()
        except IntegrityError:
            raise DuplicateBookingError(session_id, client_id)

        if not await debit_visit(session, subscription.id):
            raise NoActiveSubscriptionError(client_id)

        await session.commit()
    except Exception:
        await session.rollback()
        raise

    log_business_event(
        "booking_created",
        "booking",
        booking.id,
        {
            "session_id": session_id,
            "client_id": client_id,
            "subscription_id": subscription.id,
            "visits_remaining": subscription.visits_remaining,
        },
    )
    return await get_booking_by_id(session, booking.id)


async def _check_window(
    session: AsyncSession, booking: Booking, enforce: bool
) -> None:
    if not enforce:
        return
    window = await get_cancellation_window(session)
    minutes_left = minutes_until_start(booking.session.start_time)
    if 0 < minutes_left < window:
        raise CancellationWindowViolationError(booking.id, minutes_left, window)


async def _cancel(session: AsyncSession, booking: Booking) -> bool:
    """Soft delete plus credit back; caller commits"""
    booking.status = BookingStatus.cancelled
    booking.cancelled_at = utcnow()
    await session.flush()
    if booking.subscription_id is None:
        return False
    return await credit_visit(session, booking.subscription_id)


@db_operation
async def cancel_booking(
    session: AsyncSession,
    booking_id: int,
    actor: Identity,
    force: bool = False,
) -> CancelBookingResponse:
    """
    Cancel a booking and return the visit to its subscription.

    Clients may cancel only their own bookings and never inside the
    cancellation window. Staff may cancel inside the window with force=True.
    Cancelling a cancelled booking changes nothing.
    """
    booking = await get_booking_by_id(session, booking_id)

    if not actor.is_admin and booking.user_id != actor.user_id:
        raise AuthorizationError("You can only cancel your own bookings")

    if booking.status == BookingStatus.cancelled:
        return CancelBookingResponse(
            success=True,
            message="Booking is already cancelled",
            booking=BookingRead.model_validate(booking),
            credited=False,
        )

    if booking.status == BookingStatus.completed and not actor.is_admin:
        raise InvalidStatusTransitionError(
            booking.id, booking.status.value, BookingStatus.cancelled.value
        )

    await _check_window(session, booking, enforce=not (actor.is_admin and force))

    try:
        credited = await _cancel(session, booking)
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    log_business_event(
        "booking_cancelled",
        "booking",
        booking.id,
        {"actor_id": actor.user_id, "actor_role": actor.role.value, "credited": credited},
    )

    booking = await get_booking_by_id(session, booking_id)
    return CancelBookingResponse(
        success=True,
        message="Booking cancelled",
        booking=BookingRead.model_validate(booking),
        credited=credited,
    )


@db_operation
async def mark_attendance(
    session: AsyncSession,
    booking_id: int,
    status: BookingStatus,
    force: bool = False,
) -> Booking:
    """
    Staff status override for a booking.

    booked <-> completed has no ledger effect. Moving to cancelled credits the
    visit back and, inside the cancellation window, needs force=True. Bringing
    a cancelled booking back takes a seat and a visit again.
    """
    booking = await get_booking_by_id(session, booking_id)
    current = booking.status

    if status == current:
        return booking

    try:
        if status == BookingStatus.cancelled:
            await _check_window(session, booking, enforce=not force)
            await _cancel(session, booking)

        elif current == BookingStatus.cancelled:
            await _reinstate(session, booking, status)

        else:
            booking.status = status

        await session.commit()
    except Exception:
        await session.rollback()
        raise

    log_business_event(
        "attendance_marked",
        "booking",
        booking_id,
        {"from": current.value, "to": status.value, "forced": force},
    )
    return await get_booking_by_id(session, booking_id)


async def _reinstate(session: AsyncSession, booking: Booking, status: BookingStatus) -> None:
    class_session = await _lock_class_session(session, booking.session_id)
    await _ensure_seat(session, class_session)
    await _ensure_not_booked(session, booking.session_id, booking.user_id, exclude_id=booking.id)

    # The original subscription only if it could still take a new booking
    charged = False
    if booking.subscription_id is not None:
        original = await session.get(
            UserSubscription, booking.subscription_id, populate_existing=True
        )
        if is_chargeable(original):
            charged = await debit_visit(session, original.id)
    if not charged:
        subscription = await select_active_subscription(session, booking.user_id)
        if subscription is None or not await debit_visit(session, subscription.id):
            raise NoActiveSubscriptionError(booking.user_id)
        booking.subscription_id = subscription.id

    booking.status = status
    booking.cancelled_at = None
    try:
        await session.flush()
    except IntegrityError:
        raise DuplicateBookingError(booking.session_id, booking.user_id)


# === Portal schedule ===

async def get_day_schedule(
    session: AsyncSession, day: date, client_id: Optional[int] = None
) -> List[PortalScheduleItem]:
    """Sessions of one (UTC) day with seats left and the caller's own booking"""
    day_start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    day_end = day_start + timedelta(days=1)

    result = await session.execute(
        select(ClassSession)
        .where(
            and_(
                ClassSession.start_time >= day_start,
                ClassSession.start_time < day_end,
            )
        )
        .order_by(ClassSession.start_time.asc())
    )
    class_sessions = list(result.scalars().all())
    counts = await count_active_bookings_bulk(session, [s.id for s in class_sessions])

    my_bookings: Dict[int, int] = {}
    if client_id is not None and class_sessions:
        mine = await session.execute(
            select(Booking.session_id, Booking.id).where(
                and_(
                    Booking.user_id == client_id,
                    Booking.session_id.in_([s.id for s in class_sessions]),
                    Booking.status != BookingStatus.cancelled,
                )
            )
        )
        my_bookings = {row[0]: row[1] for row in mine.all()}

    items = []
    for class_session in class_sessions:
        booked = counts.get(class_session.id, 0)
        item = PortalScheduleItem.model_validate(
            {
                "id": class_session.id,
                "start_time": class_session.start_time,
                "end_time": class_session.end_time,
                "capacity": class_session.capacity,
                "class_type_id": class_session.class_type_id,
                "coach_id": class_session.coach_id,
                "class_type": class_session.class_type,
                "coach": class_session.coach,
                "bookings_count": booked,
                "seats_left": max(class_session.capacity - booked, 0),
                "is_booked_by_me": class_session.id in my_bookings,
                "my_booking_id": my_bookings.get(class_session.id),
            },
            from_attributes=True,
        )
        items.append(item)
    return items

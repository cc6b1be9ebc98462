"""
Notification Service - WhatsApp click-to-chat messages for clients.

Staff open the returned links themselves; nothing is sent or retried from the
server. A client without a phone number is reported as skipped.
"""
import logging
import re
from datetime import datetime
from typing import List, Optional
from urllib.parse import quote

from sqlalchemy import and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from yogastudio.core.exceptions import NotFoundError, ValidationError
from yogastudio.core.logging_utils import log_business_event
from yogastudio.core.validations import as_utc
from yogastudio.clients.models.bookings import Booking, BookingStatus
from yogastudio.clients.crud.bookings import get_booking_by_id
from yogastudio.staff.models.sessions import ClassSession
from yogastudio.staff.models.users import Profile
from yogastudio.staff.schemas.attendance import (
    NotificationLink,
    NotifyResponse,
    SkippedRecipient,
)

logger = logging.getLogger(__name__)

WHATSAPP_URL = "https://wa.me/{phone}?text={text}"
DEFAULT_CLASS_NAME = "Class"


def render_message(
    notification_type: str,
    first_name: str,
    class_name: str,
    start_time: datetime,
    note: Optional[str] = None,
) -> str:
    start = as_utc(start_time)
    day = start.strftime("%d.%m")
    at = start.strftime("%H:%M")

    if notification_type == "cancel":
        return (
            f"Hello, {first_name}! ❌\n"
            f'The class "{class_name}" on {day} at {at} is CANCELLED.\n'
            "We apologize for the inconvenience!"
        )
    if notification_type == "reschedule":
        return (
            f"Hello, {first_name}! 🗓️\n"
            f'Please note: the time of "{class_name}" ({day}) has CHANGED.\n'
            f"New time/info: {note or 'please check with the studio administrator'}.\n"
            "Please confirm you received this message."
        )
    if notification_type == "remind":
        return (
            f"Hello, {first_name}! 🔔\n"
            f'A reminder that you are booked for "{class_name}" on {day} at {at}.\n'
            "See you there!"
        )
    if notification_type == "custom":
        if not note:
            raise ValidationError("A custom notification needs a note")
        return f'Hello, {first_name}! 📝\nAbout the class "{class_name}":\n{note}'

    raise ValidationError(f"Unknown notification type '{notification_type}'")


def build_whatsapp_link(phone: str, text: str) -> str:
    digits = re.sub(r"\D", "", phone or "")
    if not digits:
        raise ValidationError("Client has no phone number")
    return WHATSAPP_URL.format(phone=digits, text=quote(text, safe=""))


def _class_name(class_session: ClassSession) -> str:
    if class_session.class_type is not None:
        return class_session.class_type.name
    return DEFAULT_CLASS_NAME


def _link_for(
    client: Profile,
    class_session: ClassSession,
    notification_type: str,
    note: Optional[str],
) -> NotificationLink:
    text = render_message(
        notification_type,
        client.first_name,
        _class_name(class_session),
        class_session.start_time,
        note,
    )
    return NotificationLink(
        client_id=client.id,
        client_name=client.full_name,
        phone=client.phone,
        text=text,
        url=build_whatsapp_link(client.phone, text),
    )


async def notify_booking(
    session: AsyncSession,
    booking_id: int,
    notification_type: str,
    note: Optional[str] = None,
) -> NotifyResponse:
    """Message for the client of one booking"""
    booking = await get_booking_by_id(session, booking_id)
    client = booking.user

    if not client.phone:
        return NotifyResponse(
            links=[],
            skipped=[SkippedRecipient(client_id=client.id, client_name=client.full_name, reason="no phone")],
        )

    link = _link_for(client, booking.session, notification_type, note)
    log_business_event(
        "notification_prepared", "booking", booking_id, {"type": notification_type}
    )
    return NotifyResponse(links=[link])


async def notify_session(
    session: AsyncSession,
    session_id: int,
    notification_type: str,
    note: Optional[str] = None,
) -> NotifyResponse:
    """One message per client holding a live booking for the session"""
    class_session = await session.get(ClassSession, session_id)
    if class_session is None:
        raise NotFoundError("Class session", str(session_id))

    result = await session.execute(
        select(Booking)
        .options(selectinload(Booking.user))
        .where(
            and_(
                Booking.session_id == session_id,
                Booking.status == BookingStatus.booked,
            )
        )
        .order_by(Booking.id.asc())
    )

    links: List[NotificationLink] = []
    skipped: List[SkippedRecipient] = []
    for booking in result.scalars().all():
        client = booking.user
        if not client.phone:
            skipped.append(
                SkippedRecipient(client_id=client.id, client_name=client.full_name, reason="no phone")
            )
            continue
        links.append(_link_for(client, class_session, notification_type, note))

    log_business_event(
        "group_notification_prepared",
        "session",
        session_id,
        {"type": notification_type, "links": len(links), "skipped": len(skipped)},
    )
    return NotifyResponse(links=links, skipped=skipped)

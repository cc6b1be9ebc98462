from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from yogastudio.clients.models.bookings import BookingStatus
from yogastudio.staff.schemas.schedule import SessionRead


class BookingCreate(BaseModel):
    session_id: int


class BookingRead(BaseModel):
    id: int
    session_id: int
    user_id: int
    subscription_id: Optional[int] = None
    status: BookingStatus
    created_at: datetime
    cancelled_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class BookingWithSession(BookingRead):
    session: Optional[SessionRead] = None


class CancelBookingResponse(BaseModel):
    success: bool
    message: str
    booking: BookingRead
    credited: bool = False


class PortalScheduleItem(SessionRead):
    seats_left: int
    is_booked_by_me: bool = False
    my_booking_id: Optional[int] = None


class PortalScheduleResponse(BaseModel):
    sessions: List[PortalScheduleItem]
    cancellation_minutes: int

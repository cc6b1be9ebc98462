from datetime import datetime
from typing import List, Optional, Literal

from pydantic import BaseModel, Field, ConfigDict, model_validator

from yogastudio.clients.models.bookings import BookingStatus
from yogastudio.staff.schemas.schedule import SessionRead


NotificationType = Literal["cancel", "reschedule", "remind", "custom"]


class ManualBookingCreate(BaseModel):
    session_id: int
    user_id: int


class AttendanceStatusUpdate(BaseModel):
    status: BookingStatus
    # Confirms a cancellation inside the cancellation window
    force: bool = False


class AttendanceClient(BaseModel):
    id: int
    first_name: str
    last_name: Optional[str] = None
    phone: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class AttendanceBooking(BaseModel):
    id: int
    status: BookingStatus
    subscription_id: Optional[int] = None
    created_at: datetime
    cancelled_at: Optional[datetime] = None
    client: AttendanceClient


class AttendanceSession(SessionRead):
    attendees: List[AttendanceBooking] = Field(default_factory=list)


class AttendanceReport(BaseModel):
    date_from: datetime
    date_to: datetime
    sessions: List[AttendanceSession]


class NotifyRequest(BaseModel):
    type: NotificationType
    note: Optional[str] = Field(None, max_length=2000)

    @model_validator(mode="after")
    def custom_needs_note(self):
        if self.type == "custom" and not (self.note and self.note.strip()):
            raise ValueError("A custom notification needs a note")
        return self


class NotificationLink(BaseModel):
    client_id: int
    client_name: str
    phone: str
    text: str
    url: str


class SkippedRecipient(BaseModel):
    client_id: int
    client_name: str
    reason: str


class NotifyResponse(BaseModel):
    links: List[NotificationLink]
    skipped: List[SkippedRecipient] = Field(default_factory=list)

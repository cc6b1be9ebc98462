from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Literal

from pydantic import BaseModel, Field, ConfigDict, field_validator

from yogastudio.clients.schemas.bookings import BookingWithSession
from yogastudio.clients.schemas.subscriptions import SubscriptionAdminRead
from yogastudio.staff.models.users import UserRole, LeadStatus


class LoginRequest(BaseModel):
    phone: str = Field(..., min_length=1, max_length=40)
    password: str = Field(..., min_length=1, max_length=128)


class RegisterRequest(BaseModel):
    """Client self-registration on the portal"""
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    phone: str = Field(..., min_length=1, max_length=40)
    email: Optional[str] = Field(None, max_length=255)
    # Defaults to the phone digits when omitted
    password: Optional[str] = Field(None, min_length=4, max_length=128)

    @field_validator("first_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("First name cannot be empty")
        return v


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: int
    role: UserRole


class ProfileRead(BaseModel):
    id: int
    first_name: str
    last_name: Optional[str] = None
    phone: str
    phone_display: Optional[str] = None
    email: Optional[str] = None
    role: UserRole
    lead_status: Optional[LeadStatus] = None
    balance: Decimal = Decimal("0")
    notes: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProfileUpdate(BaseModel):
    """Fields a client may change on their own profile"""
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    email: Optional[str] = Field(None, max_length=255)


class ClientUpdate(BaseModel):
    """Staff edit of a client card"""
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=40)
    email: Optional[str] = Field(None, max_length=255)
    balance: Optional[Decimal] = None
    notes: Optional[str] = Field(None, max_length=5000)
    lead_status: Optional[LeadStatus] = None


class LeadCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    phone: str = Field(..., min_length=1, max_length=40)
    email: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = Field(None, max_length=5000)
    lead_status: LeadStatus = LeadStatus.booked


class LeadStatusUpdate(BaseModel):
    lead_status: LeadStatus


SubscriptionState = Literal["active", "expired", "none"]


class ClientListItem(ProfileRead):
    subscription_state: SubscriptionState = "none"
    active_visits_remaining: Optional[int] = None
    active_until: Optional[datetime] = None


class ClientListResponse(BaseModel):
    clients: List[ClientListItem]
    total: int


class ClientStats(BaseModel):
    total_bookings: int = 0
    completed: int = 0
    cancelled: int = 0
    upcoming: int = 0


class UserAdminRead(BaseModel):
    """Row of the privileged user list"""
    id: int
    first_name: str
    last_name: Optional[str] = None
    phone: str
    email: Optional[str] = None
    role: UserRole
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ClientDetail(BaseModel):
    profile: ProfileRead
    subscriptions: List[SubscriptionAdminRead] = Field(default_factory=list)
    bookings: List[BookingWithSession] = Field(default_factory=list)
    stats: ClientStats

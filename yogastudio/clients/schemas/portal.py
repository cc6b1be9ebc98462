from typing import List, Optional

from pydantic import BaseModel, Field

from yogastudio.clients.schemas.bookings import BookingWithSession
from yogastudio.clients.schemas.subscriptions import SubscriptionRead
from yogastudio.staff.schemas.content import NewsRead
from yogastudio.staff.schemas.users import ProfileRead


class PortalHome(BaseModel):
    profile: ProfileRead
    subscriptions: List[SubscriptionRead] = Field(default_factory=list)
    news: List[NewsRead] = Field(default_factory=list)


class PortalProfile(BaseModel):
    profile: ProfileRead
    subscriptions: List[SubscriptionRead] = Field(default_factory=list)
    bookings: List[BookingWithSession] = Field(default_factory=list)
    studio_phone: Optional[str] = None

from yogastudio.core.database import Base
from .bookings import Booking, BookingStatus
from .subscriptions import UserSubscription

__all__ = [
    "Base",
    "Booking",
    "BookingStatus",
    "UserSubscription",
]

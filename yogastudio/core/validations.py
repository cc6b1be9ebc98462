import re
from datetime import datetime, timezone
from typing import Optional

from yogastudio.core.exceptions import ValidationError

MIN_PHONE_DIGITS = 10


def clean_phone_number(phone: str) -> str:
    """
    Strip everything but digits and validate the length.
    The digits double as the login identifier.
    """
    if not phone:
        raise ValidationError("Phone number cannot be empty")

    clean_phone = re.sub(r"\D", "", str(phone))

    if len(clean_phone) < MIN_PHONE_DIGITS:
        raise ValidationError("Invalid phone number", {"phone": phone})

    if len(clean_phone) > 20:
        raise ValidationError("Phone number must be at most 20 digits")

    return clean_phone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive datetimes coming back from the database are UTC"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def start_of_day(value: Optional[datetime] = None) -> datetime:
    """
    UTC midnight of the given moment (today by default).

    Subscriptions are valid through their whole end date, so expiry checks
    compare `end_date` against this instead of the current instant.
    """
    value = as_utc(value) if value else utcnow()
    return value.replace(hour=0, minute=0, second=0, microsecond=0)

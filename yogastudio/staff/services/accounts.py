"""
Account registration - creating client profiles on behalf of someone else.

Staff-entered leads and portal self-registration both go through
ServiceAccountRegistrar. It works with its own service credential (the
database session of the request, not the staff member's identity), so
creating a client never touches the caller's login state.
"""
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from yogastudio.core.config import DEFAULT_LEAD_PASSWORD
from yogastudio.core.exceptions import DuplicateError
from yogastudio.core.logging_utils import log_business_event
from yogastudio.core.security import get_password_hash
from yogastudio.core.validations import clean_phone_number
from yogastudio.staff.models.users import Profile, UserRole, LeadStatus

logger = logging.getLogger(__name__)


class ServiceAccountRegistrar:
    """Creates client profiles with a hashed password and a lead status"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _phone_taken(self, phone: str) -> bool:
        result = await self.session.execute(
            select(Profile.id).where(Profile.phone == phone)
        )
        return result.scalar_one_or_none() is not None

    async def register(
        self,
        first_name: str,
        phone: str,
        last_name: Optional[str] = None,
        email: Optional[str] = None,
        password: Optional[str] = None,
        lead_status: Optional[LeadStatus] = LeadStatus.booked,
        notes: Optional[str] = None,
        source: str = "staff",
    ) -> Profile:
        """
        Create a client profile.

        Args:
            first_name: Client first name
            phone: Phone in any format; digits become the login
            password: Initial password; staff-entered leads get the shared
                default, self-registration falls back to the phone digits
            lead_status: Funnel stage to start in
            source: "staff" or "portal", for the audit log
        """
        digits = clean_phone_number(phone)

        if await self._phone_taken(digits):
            raise DuplicateError("Client", "phone", digits)

        if not password:
            password = DEFAULT_LEAD_PASSWORD if source == "staff" else digits

        profile = Profile(
            first_name=first_name.strip(),
            last_name=(last_name or "").strip() or None,
            phone=digits,
            phone_display=phone.strip(),
            email=email,
            password_hash=get_password_hash(password),
            role=UserRole.client,
            lead_status=lead_status,
            notes=notes,
        )
        self.session.add(profile)
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise DuplicateError("Client", "phone", digits)

        log_business_event(
            "lead_created" if source == "staff" else "client_registered",
            "profile",
            profile.id,
            {"source": source, "lead_status": lead_status.value if lead_status else None},
        )
        return profile

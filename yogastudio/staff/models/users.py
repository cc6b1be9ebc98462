from enum import Enum

from sqlalchemy import Column, Integer, String, Text, DateTime, Numeric, Enum as SQLEnum
from sqlalchemy.orm import relationship

from yogastudio.core.database import Base
from yogastudio.core.validations import utcnow


class UserRole(str, Enum):
    client = "client"
    admin = "admin"


class LeadStatus(str, Enum):
    """Manually curated funnel stage, independent of bookings"""

    booked = "booked"
    attended = "attended"
    paid = "paid"
    active = "active"
    inactive = "inactive"
    churned = "churned"


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=True)

    # Digits only; also the login identifier
    phone = Column(String(20), unique=True, nullable=False, index=True)
    phone_display = Column(String(40), nullable=True)
    email = Column(String(255), nullable=True)
    password_hash = Column(String(255), nullable=True)

    role = Column(
        SQLEnum(UserRole, native_enum=False, length=20),
        default=UserRole.client,
        nullable=False,
        index=True,
    )
    lead_status = Column(
        SQLEnum(LeadStatus, native_enum=False, length=20),
        default=LeadStatus.booked,
        nullable=True,
    )
    balance = Column(Numeric(10, 2), default=0, nullable=False)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    subscriptions = relationship(
        "UserSubscription",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    bookings = relationship(
        "Booking",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name or ''}".strip()

    def __repr__(self):
        return f"<Profile(id={self.id}, phone='{self.phone}', role={self.role})>"

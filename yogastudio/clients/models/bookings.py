"""Booking Model - A client's reservation of a seat in a class session"""
from enum import Enum

from sqlalchemy import (
    Column,
    Integer,
    DateTime,
    ForeignKey,
    Index,
    Enum as SQLEnum,
    text,
)
from sqlalchemy.orm import relationship

from yogastudio.core.database import Base
from yogastudio.core.validations import utcnow


class BookingStatus(str, Enum):
    booked = "booked"
    completed = "completed"
    cancelled = "cancelled"


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)

    session_id = Column(
        Integer,
        ForeignKey("schedule_sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(
        Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # Subscription debited for this booking, if any
    subscription_id = Column(
        Integer,
        ForeignKey("user_subscriptions.id", ondelete="SET NULL"),
        nullable=True,
    )

    status = Column(
        SQLEnum(BookingStatus, native_enum=False, length=20),
        default=BookingStatus.booked,
        nullable=False,
        index=True,
    )

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    session = relationship("ClassSession", back_populates="bookings")
    user = relationship("Profile", back_populates="bookings")
    subscription = relationship("UserSubscription", back_populates="bookings")

    __table_args__ = (
        # At most one live booking per client and session
        Index(
            "uq_bookings_session_user_live",
            "session_id",
            "user_id",
            unique=True,
            postgresql_where=text("status <> 'cancelled'"),
            sqlite_where=text("status <> 'cancelled'"),
        ),
        Index("ix_bookings_session_status", "session_id", "status"),
    )

    def __repr__(self):
        return f"<Booking(id={self.id}, session_id={self.session_id}, user_id={self.user_id}, status={self.status})>"

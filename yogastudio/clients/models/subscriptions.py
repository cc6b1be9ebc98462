from sqlalchemy import (
    Column,
    Integer,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    CheckConstraint,
)
from sqlalchemy.orm import relationship

from yogastudio.core.database import Base
from yogastudio.core.validations import utcnow


class UserSubscription(Base):
    """
    A client's purchased plan instance.

    visits_total is NULL for unlimited subscriptions; visits_remaining is then
    NULL as well and never changes.
    """

    __tablename__ = "user_subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    plan_id = Column(
        Integer, ForeignKey("subscription_plans.id", ondelete="SET NULL"), nullable=True
    )

    visits_total = Column(Integer, nullable=True)
    visits_remaining = Column(Integer, nullable=True)

    activation_date = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    end_date = Column(DateTime(timezone=True), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    user = relationship("Profile", back_populates="subscriptions")
    plan = relationship("SubscriptionPlan", lazy="selectin")
    bookings = relationship("Booking", back_populates="subscription", passive_deletes=True)

    __table_args__ = (
        CheckConstraint(
            "visits_remaining IS NULL OR visits_remaining >= 0",
            name="ck_user_subscriptions_remaining_non_negative",
        ),
        CheckConstraint(
            "visits_total IS NULL OR visits_remaining IS NULL OR visits_remaining <= visits_total",
            name="ck_user_subscriptions_remaining_le_total",
        ),
        Index("ix_user_subscriptions_user_active", "user_id", "is_active", "end_date"),
    )

    @property
    def is_unlimited(self) -> bool:
        return self.visits_total is None

    def __repr__(self):
        return (
            f"<UserSubscription(id={self.id}, user_id={self.user_id}, "
            f"remaining={self.visits_remaining}/{self.visits_total})>"
        )

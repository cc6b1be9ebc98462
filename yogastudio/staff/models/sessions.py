from sqlalchemy import Column, Integer, ForeignKey, DateTime, Index, CheckConstraint
from sqlalchemy.orm import relationship

from yogastudio.core.database import Base
from yogastudio.core.validations import utcnow


class ClassSession(Base):
    """One scheduled occurrence of a class with a fixed seat capacity"""

    __tablename__ = "schedule_sessions"

    id = Column(Integer, primary_key=True)
    start_time = Column(DateTime(timezone=True), nullable=False, index=True)
    end_time = Column(DateTime(timezone=True), nullable=False)
    capacity = Column(Integer, nullable=False, default=10)

    class_type_id = Column(
        Integer, ForeignKey("class_types.id", ondelete="SET NULL"), nullable=True
    )
    coach_id = Column(
        Integer, ForeignKey("coaches.id", ondelete="SET NULL"), nullable=True
    )

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    class_type = relationship("ClassType", lazy="selectin")
    coach = relationship("Coach", lazy="selectin")
    bookings = relationship(
        "Booking",
        back_populates="session",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("capacity >= 1", name="ck_schedule_sessions_capacity"),
        CheckConstraint("end_time > start_time", name="ck_schedule_sessions_time"),
        Index("ix_schedule_sessions_coach_start", "coach_id", "start_time"),
    )

    def __repr__(self):
        return f"<ClassSession(id={self.id}, start={self.start_time}, capacity={self.capacity})>"

from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Boolean,
    Numeric,
    DateTime,
)

from yogastudio.core.database import Base
from yogastudio.core.validations import utcnow


class Coach(Base):
    __tablename__ = "coaches"

    id = Column(Integer, primary_key=True)
    name = Column(String(150), nullable=False)
    specialization = Column(String(255), nullable=True)
    phone = Column(String(40), nullable=True)
    photo_url = Column(String(512), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self):
        return f"<Coach(id={self.id}, name='{self.name}')>"


class ClassType(Base):
    __tablename__ = "class_types"

    id = Column(Integer, primary_key=True)
    name = Column(String(150), nullable=False)
    description = Column(Text, nullable=True)
    duration_min = Column(Integer, nullable=False, default=60)
    color = Column(String(20), nullable=False, default="#3b82f6")
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self):
        return f"<ClassType(id={self.id}, name='{self.name}')>"


class SubscriptionPlan(Base):
    __tablename__ = "subscription_plans"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    price = Column(Numeric(10, 2), nullable=False, default=0)

    # NULL means unlimited visits
    visits_count = Column(Integer, nullable=True)
    duration_days = Column(Integer, nullable=False, default=30)

    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self):
        return f"<SubscriptionPlan(id={self.id}, name='{self.name}', price={self.price})>"

from yogastudio.core.database import Base
from .users import Profile, UserRole, LeadStatus
from .catalog import Coach, ClassType, SubscriptionPlan
from .sessions import ClassSession
from .content import News, AggregatorRecord, StudioInfo

__all__ = [
    "Base",
    "Profile",
    "UserRole",
    "LeadStatus",
    "Coach",
    "ClassType",
    "SubscriptionPlan",
    "ClassSession",
    "News",
    "AggregatorRecord",
    "StudioInfo",
]

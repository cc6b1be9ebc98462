from datetime import datetime
from typing import Optional, Literal

from pydantic import BaseModel, Field, ConfigDict

from yogastudio.staff.schemas.catalog import PlanRead


SubscriptionStatus = Literal["finished", "pending", "expired", "critical", "warning", "active"]


class SubscriptionSell(BaseModel):
    """Staff sells a plan to a client"""
    user_id: int
    plan_id: int
    activation_date: Optional[datetime] = None


class SubscriptionUpdate(BaseModel):
    visits_total: Optional[int] = Field(None, ge=0)
    visits_remaining: Optional[int] = Field(None, ge=0)
    activation_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_active: Optional[bool] = None


class SubscriptionRead(BaseModel):
    id: int
    user_id: int
    plan_id: Optional[int] = None
    plan: Optional[PlanRead] = None
    visits_total: Optional[int] = None
    visits_remaining: Optional[int] = None
    activation_date: datetime
    end_date: datetime
    is_active: bool
    created_at: datetime
    status: Optional[SubscriptionStatus] = None

    model_config = ConfigDict(from_attributes=True)


class SubscriptionAdminRead(SubscriptionRead):
    client_name: Optional[str] = None
    client_phone: Optional[str] = None

from datetime import datetime
from decimal import Decimal
from typing import Dict, Optional

from pydantic import BaseModel, Field, ConfigDict


class NewsCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)
    is_published: bool = True


class NewsUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    content: Optional[str] = Field(None, min_length=1)
    is_published: Optional[bool] = None


class NewsRead(BaseModel):
    id: int
    title: str
    content: str
    is_published: bool
    published_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AggregatorCreate(BaseModel):
    aggregator_name: str = Field(..., min_length=1, max_length=150)
    client_name: str = Field(..., min_length=1, max_length=200)
    price: Decimal = Field(Decimal("0"), ge=0)
    notes: Optional[str] = Field(None, max_length=2000)
    website_url: Optional[str] = Field(None, max_length=512)


class AggregatorUpdate(BaseModel):
    aggregator_name: Optional[str] = Field(None, min_length=1, max_length=150)
    client_name: Optional[str] = Field(None, min_length=1, max_length=200)
    price: Optional[Decimal] = Field(None, ge=0)
    notes: Optional[str] = Field(None, max_length=2000)
    website_url: Optional[str] = Field(None, max_length=512)


class AggregatorRead(AggregatorCreate):
    id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StudioSettings(BaseModel):
    cancellation_minutes: int
    studio_info: Dict[str, Optional[str]] = Field(default_factory=dict)


class CancellationWindowUpdate(BaseModel):
    cancellation_minutes: int = Field(..., ge=0, le=7 * 24 * 60)


class StudioInfoUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    address: Optional[str] = Field(None, max_length=500)
    phone: Optional[str] = Field(None, max_length=40)
    instagram: Optional[str] = Field(None, max_length=255)


class DashboardStats(BaseModel):
    clients_count: int
    month_revenue: Decimal
    bookings_today: int

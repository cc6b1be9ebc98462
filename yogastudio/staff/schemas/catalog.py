from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, ConfigDict, field_validator


class CoachBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    specialization: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=40)
    photo_url: Optional[str] = Field(None, max_length=512)


class CoachCreate(CoachBase):
    pass


class CoachUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    specialization: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=40)
    photo_url: Optional[str] = Field(None, max_length=512)


class CoachRead(CoachBase):
    id: int

    model_config = ConfigDict(from_attributes=True)


class ClassTypeBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    description: Optional[str] = Field(None, max_length=2000)
    duration_min: int = Field(60, ge=5, le=600)
    color: str = Field("#3b82f6", max_length=20)


class ClassTypeCreate(ClassTypeBase):
    pass


class ClassTypeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    description: Optional[str] = Field(None, max_length=2000)
    duration_min: Optional[int] = Field(None, ge=5, le=600)
    color: Optional[str] = Field(None, max_length=20)


class ClassTypeRead(ClassTypeBase):
    id: int

    model_config = ConfigDict(from_attributes=True)


class PlanBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    price: Decimal = Field(..., ge=0)
    visits_count: Optional[int] = Field(None, ge=0, description="Empty or 0 for unlimited")
    duration_days: int = Field(30, ge=1, le=3650)
    description: Optional[str] = Field(None, max_length=2000)
    is_active: bool = True

    @field_validator("visits_count")
    @classmethod
    def zero_means_unlimited(cls, v: Optional[int]) -> Optional[int]:
        return v or None


class PlanCreate(PlanBase):
    pass


class PlanUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    price: Optional[Decimal] = Field(None, ge=0)
    visits_count: Optional[int] = Field(None, ge=0)
    duration_days: Optional[int] = Field(None, ge=1, le=3650)
    description: Optional[str] = Field(None, max_length=2000)
    is_active: Optional[bool] = None


class PlanRead(PlanBase):
    id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

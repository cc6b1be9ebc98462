from datetime import datetime, date
from typing import List, Optional

from pydantic import BaseModel, Field, ConfigDict, model_validator

from yogastudio.staff.schemas.catalog import CoachRead, ClassTypeRead


class SessionBase(BaseModel):
    start_time: datetime
    end_time: datetime
    capacity: int = Field(10, ge=1, le=500)
    class_type_id: Optional[int] = None
    coach_id: Optional[int] = None

    @model_validator(mode="after")
    def check_times(self):
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class SessionCreate(SessionBase):
    pass


class SessionUpdate(BaseModel):
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    capacity: Optional[int] = Field(None, ge=1, le=500)
    class_type_id: Optional[int] = None
    coach_id: Optional[int] = None


class SessionRead(BaseModel):
    id: int
    start_time: datetime
    end_time: datetime
    capacity: int
    class_type_id: Optional[int] = None
    coach_id: Optional[int] = None
    class_type: Optional[ClassTypeRead] = None
    coach: Optional[CoachRead] = None
    bookings_count: int = 0

    model_config = ConfigDict(from_attributes=True)


class DuplicateWeekRequest(BaseModel):
    """Copy every session of the week starting at week_start one week ahead"""
    week_start: date


class DuplicateWeekResponse(BaseModel):
    created: int
    sessions: List[SessionRead]

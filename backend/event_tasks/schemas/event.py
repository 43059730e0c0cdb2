from pydantic import BaseModel, ConfigDict, field_validator
from typing import Optional
from datetime import datetime

from event_tasks.schemas.timestamps import require_iso_datetime


class EventBase(BaseModel):
    name: str
    location: str
    start_time: datetime
    end_time: datetime


class EventCreate(EventBase):
    model_config = ConfigDict(extra="forbid")

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def check_times(cls, value):
        return require_iso_datetime(value)


class EventUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    location: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def check_times(cls, value):
        return require_iso_datetime(value)


class EventOut(EventBase):
    id: str

    class Config:
        from_attributes = True


class EventDeleted(BaseModel):
    message: str

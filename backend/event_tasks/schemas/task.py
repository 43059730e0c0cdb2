from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator

from event_tasks.schemas.timestamps import require_iso_datetime


class TaskCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    assigned_to: List[StrictInt] = Field(min_length=1)
    due_time: datetime

    @field_validator("due_time", mode="before")
    @classmethod
    def check_due_time(cls, value):
        return require_iso_datetime(value)


class TaskUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = Field(default=None, min_length=1)
    assigned_to: Optional[List[StrictInt]] = None
    due_time: Optional[datetime] = None

    @field_validator("due_time", mode="before")
    @classmethod
    def check_due_time(cls, value):
        return require_iso_datetime(value)


class TaskItemOut(BaseModel):
    id: str
    title: str
    description: str
    due_time: str
    assigned_to: List[int] = Field(default_factory=list)


class TaskOut(TaskItemOut):
    event_id: str

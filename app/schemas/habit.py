import uuid
from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field, model_validator


class HabitCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    category: str = Field(default="general", min_length=1, max_length=100)
    type: Literal["boolean", "numeric"] = "boolean"
    target_value: float | None = Field(default=None, gt=0)
    target_unit: str | None = Field(default=None, max_length=50)
    is_active: bool = True

    @model_validator(mode="after")
    def check_minute_target(self) -> "HabitCreate":
        # Minute targets size the focus timer's work interval
        if self.target_unit == "minutes" and self.target_value is not None:
            if self.target_value < 1 or not float(self.target_value).is_integer():
                raise ValueError("Minute targets must be a whole number of at least 1")
        return self


class HabitResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    name: str
    category: str
    type: str
    target_value: float | None
    target_unit: str | None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class HabitFilter(BaseModel):
    is_active: bool | None = True
    type: str | None = None
    target_unit: str | None = None
    category: str | None = None


class HabitLogUpsert(BaseModel):
    completed: bool = False
    value: float = Field(default=0, ge=0)
    completed_at: datetime | None = None
    duration_minutes: float | None = Field(default=None, ge=0)
    focus_score: int | None = Field(default=None, ge=1, le=10)


class HabitLogResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    habit_id: uuid.UUID
    date: date
    completed: bool
    value: float
    completed_at: datetime | None
    duration_minutes: float | None
    focus_score: int | None

    model_config = {"from_attributes": True}

import uuid
from datetime import date
from typing import Literal

from pydantic import BaseModel, Field

SessionType = Literal["work", "shortBreak", "longBreak"]


class TimerConfig(BaseModel):
    work_minutes: int = Field(default=25, ge=1, le=240)
    short_break_minutes: int = Field(default=5, ge=1, le=60)
    long_break_minutes: int = Field(default=15, ge=1, le=120)
    long_break_interval: int = Field(default=4, ge=1, le=12)
    auto_start_breaks: bool = False
    auto_start_work: bool = False
    sound_enabled: bool = True


class FocusHabit(BaseModel):
    """A minutes-based habit offered to the focus timer."""

    id: uuid.UUID
    name: str
    category: str
    target_time: int = Field(ge=1)  # minutes
    time_spent_today: float = 0
    completion_status: Literal["pending", "in_progress", "completed"] = "pending"


class CommitSessionEffect(BaseModel):
    habit_id: uuid.UUID | None
    session_minutes: int
    date: date


class TimerState(BaseModel):
    session_type: SessionType
    seconds_remaining: int = Field(ge=0)
    is_running: bool
    completed_pomodoros: int = Field(ge=0)
    seconds_elapsed_in_current_work_session: int = Field(ge=0)
    config: TimerConfig
    bound_habit: FocusHabit | None = None


class TimerMount(BaseModel):
    habit_id: uuid.UUID | None = None


class TimerTick(BaseModel):
    seconds: int = Field(default=1, ge=1, le=86400)


class TimerSwitch(BaseModel):
    session_type: SessionType


class TimerBindHabit(BaseModel):
    habit_id: uuid.UUID | None = None


class TimerResponse(BaseModel):
    state: TimerState
    display: str  # MM:SS
    progress_percent: float
    commits: list[CommitSessionEffect] = []
    persist_error: str | None = None


class TodayStats(BaseModel):
    total_focus_minutes: int
    completed_habits: int
    total_pomodoros: int
    current_streak: int

import uuid
from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel


class HabitLogEntry(BaseModel):
    """One completion-log row joined with its habit's name and category."""

    date: date
    habit_id: uuid.UUID
    habit_name: str
    category: str
    completed: bool
    completed_at: datetime | None = None
    duration_minutes: float | None = None
    focus_score: float | None = None

    model_config = {"frozen": True}


class HabitCorrelation(BaseModel):
    habit_a: str
    habit_b: str
    co_completion_percent: int  # 0-100
    strength: Literal["weak", "moderate", "strong"]


class TimePattern(BaseModel):
    hour: int  # 0-23
    completions: int
    success_rate_percent: int
    avg_focus_minutes: int


class StreakEvent(BaseModel):
    date: date
    streak_length: int
    category: str
    momentum: int


class PerformanceZone(BaseModel):
    date: date
    productivity_percent: int
    energy_percent: int
    mood_score: int
    zone: Literal["peak", "good", "average", "low"]


class CategoryInsight(BaseModel):
    category: str
    avg_completion_minutes: int
    best_time_of_day: Literal["Morning", "Afternoon", "Evening"]
    consistency_percent: int
    trend: Literal["up", "down", "stable"]


class Recommendation(BaseModel):
    kind: str  # "optimization", "timing", "stacking", "performance"
    title: str
    message: str


class AdvancedMetricsResponse(BaseModel):
    time_range: str
    habit_correlations: list[HabitCorrelation]
    time_patterns: list[TimePattern]
    streak_analysis: list[StreakEvent]
    performance_zones: list[PerformanceZone]
    category_insights: list[CategoryInsight]
    recommendations: list[Recommendation]

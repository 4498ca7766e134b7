import uuid
from datetime import timedelta

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.analytics import (
    AdvancedMetricsResponse,
    CategoryInsight,
    HabitCorrelation,
    HabitLogEntry,
    PerformanceZone,
    TimePattern,
)
from app.services import analytics_engine, habit_log_store
from app.time_utils import local_today

router = APIRouter(prefix="/analytics", tags=["analytics"])

TIME_RANGE_PATTERN = "^(1month|3months|6months|1year)$"


async def _window_logs(
    db: AsyncSession, user_id: uuid.UUID, time_range: str
) -> list[HabitLogEntry]:
    today = local_today()
    start = today - timedelta(days=analytics_engine.TIME_RANGE_DAYS[time_range])
    return await habit_log_store.fetch_logs(db, user_id, start, today)


@router.get("/advanced", response_model=AdvancedMetricsResponse)
async def get_advanced_metrics(
    time_range: str = Query(default="1month", pattern=TIME_RANGE_PATTERN),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    logs = await _window_logs(db, user.id, time_range)
    return analytics_engine.compute_advanced_metrics(logs, time_range=time_range)


@router.get("/correlations", response_model=list[HabitCorrelation])
async def get_correlations(
    time_range: str = Query(default="1month", pattern=TIME_RANGE_PATTERN),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    logs = await _window_logs(db, user.id, time_range)
    return analytics_engine.calculate_habit_correlations(logs)


@router.get("/time-patterns", response_model=list[TimePattern])
async def get_time_patterns(
    time_range: str = Query(default="1month", pattern=TIME_RANGE_PATTERN),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    logs = await _window_logs(db, user.id, time_range)
    return analytics_engine.calculate_time_patterns(logs)


@router.get("/performance-zones", response_model=list[PerformanceZone])
async def get_performance_zones(
    time_range: str = Query(default="1month", pattern=TIME_RANGE_PATTERN),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    logs = await _window_logs(db, user.id, time_range)
    return analytics_engine.calculate_performance_zones(logs)


@router.get("/categories", response_model=list[CategoryInsight])
async def get_category_insights(
    time_range: str = Query(default="1month", pattern=TIME_RANGE_PATTERN),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    logs = await _window_logs(db, user.id, time_range)
    return analytics_engine.calculate_category_insights(logs)

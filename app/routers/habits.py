import uuid
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.habit import (
    HabitCreate,
    HabitFilter,
    HabitLogResponse,
    HabitLogUpsert,
    HabitResponse,
)
from app.services import habit_log_store

router = APIRouter(prefix="/habits", tags=["habits"])


@router.get("", response_model=list[HabitResponse])
async def list_habits(
    is_active: bool | None = Query(default=True),
    habit_type: str | None = Query(default=None, alias="type", pattern="^(boolean|numeric)$"),
    target_unit: str | None = Query(default=None),
    category: str | None = Query(default=None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await habit_log_store.fetch_habits(
        db,
        user.id,
        HabitFilter(
            is_active=is_active,
            type=habit_type,
            target_unit=target_unit,
            category=category,
        ),
    )


@router.post("", response_model=HabitResponse, status_code=201)
async def create_habit(
    data: HabitCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await habit_log_store.create_habit(db, user.id, data.model_dump())


@router.put("/{habit_id}/logs/{log_date}", response_model=HabitLogResponse)
async def upsert_habit_log(
    habit_id: uuid.UUID,
    log_date: date,
    data: HabitLogUpsert,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    habit = await habit_log_store.get_habit(db, user.id, habit_id)
    if habit is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Habit not found")
    return await habit_log_store.upsert_habit_log(
        db,
        user.id,
        habit.id,
        log_date,
        completed=data.completed,
        value=data.value,
        completed_at=data.completed_at if data.completed else None,
        duration_minutes=data.duration_minutes,
        focus_score=data.focus_score,
    )

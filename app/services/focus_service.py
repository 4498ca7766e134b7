import logging
import math
import uuid
from datetime import date, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.habit import Habit
from app.models.user import User
from app.schemas.focus import (
    CommitSessionEffect,
    FocusHabit,
    TimerConfig,
    TimerState,
    TodayStats,
)
from app.schemas.habit import HabitFilter
from app.services import habit_log_store
from app.services.focus_timer import FocusTimerMachine
from app.time_utils import local_now, local_today

logger = logging.getLogger(__name__)

FOCUS_HABIT_FILTER = HabitFilter(is_active=True, type="numeric", target_unit="minutes")


def _timer_key(user_id: uuid.UUID) -> str:
    return f"focus_timer:{user_id}"


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


def default_timer_config() -> TimerConfig:
    return TimerConfig(
        work_minutes=settings.FOCUS_WORK_MINUTES,
        short_break_minutes=settings.FOCUS_SHORT_BREAK_MINUTES,
        long_break_minutes=settings.FOCUS_LONG_BREAK_MINUTES,
        long_break_interval=settings.FOCUS_LONG_BREAK_INTERVAL,
    )


def get_timer_config(user: User) -> TimerConfig:
    saved = (user.settings_json or {}).get("focus")
    if not saved:
        return default_timer_config()
    return TimerConfig(**{**default_timer_config().model_dump(), **saved})


async def save_timer_config(db: AsyncSession, user: User, config: TimerConfig) -> TimerConfig:
    result = await db.execute(select(User).where(User.id == user.id))
    stored = result.scalar_one()
    # Reassign so the JSON column is flagged dirty
    merged = {**(stored.settings_json or {}), "focus": config.model_dump()}
    stored.settings_json = merged
    user.settings_json = merged
    await db.flush()
    return config


# ---------------------------------------------------------------------------
# Habits
# ---------------------------------------------------------------------------


def to_focus_habit(habit: Habit, time_spent_today: float = 0) -> FocusHabit:
    # Rows written outside the API may hold fractional targets
    target = max(1, math.ceil(habit.target_value or settings.DEFAULT_HABIT_TARGET_MINUTES))
    if time_spent_today >= target:
        status = "completed"
    elif time_spent_today > 0:
        status = "in_progress"
    else:
        status = "pending"
    return FocusHabit(
        id=habit.id,
        name=habit.name,
        category=habit.category,
        target_time=target,
        time_spent_today=time_spent_today,
        completion_status=status,
    )


async def list_focus_habits(db: AsyncSession, user_id: uuid.UUID) -> list[FocusHabit]:
    """Active minutes-based habits with today's accumulated time."""
    habits = await habit_log_store.fetch_habits(db, user_id, FOCUS_HABIT_FILTER)
    logs = await habit_log_store.get_today_values(db, user_id, local_today())
    return [
        to_focus_habit(h, logs[h.id].value if h.id in logs else 0)
        for h in habits
    ]


async def get_focus_habit(
    db: AsyncSession, user_id: uuid.UUID, habit_id: uuid.UUID
) -> FocusHabit | None:
    habit = await habit_log_store.get_habit(db, user_id, habit_id)
    if habit is None:
        return None
    logs = await habit_log_store.get_today_values(db, user_id, local_today())
    return to_focus_habit(habit, logs[habit.id].value if habit.id in logs else 0)


# ---------------------------------------------------------------------------
# Commit effect
# ---------------------------------------------------------------------------


async def commit_session(
    db: AsyncSession, user_id: uuid.UUID, effect: CommitSessionEffect
) -> FocusHabit | None:
    """Persist a finished work interval.

    Records the focus session, then rolls the minutes into the habit's daily
    log and marks it completed once the target is reached. Returns the
    refreshed habit, or None when nothing was bound to the timer.
    """
    if effect.habit_id is None:
        logger.debug("Work interval finished with no habit bound; nothing to persist")
        return None

    habit = await habit_log_store.get_habit(db, user_id, effect.habit_id)
    if habit is None:
        raise ValueError("Habit bound to the timer no longer exists")

    await habit_log_store.upsert_focus_session(
        db,
        user_id,
        habit.id,
        effect.date,
        duration_minutes=effect.session_minutes,
        pomodoro_count=1,
    )

    logs = await habit_log_store.get_today_values(db, user_id, effect.date)
    previous_total = logs[habit.id].value if habit.id in logs else 0
    new_total = previous_total + effect.session_minutes
    focus_habit = to_focus_habit(habit, new_total)
    is_completed = new_total >= focus_habit.target_time

    await habit_log_store.upsert_habit_log(
        db,
        user_id,
        habit.id,
        effect.date,
        completed=is_completed,
        value=new_total,
        completed_at=local_now() if is_completed else None,
        duration_minutes=effect.session_minutes,
        focus_score=settings.DEFAULT_FOCUS_SCORE,
    )
    logger.info(
        "Committed %d focus minutes to habit %s (total %.0f/%d)",
        effect.session_minutes, habit.id, new_total, focus_habit.target_time,
    )
    return focus_habit


# ---------------------------------------------------------------------------
# Today stats
# ---------------------------------------------------------------------------


def calculate_streak(dates: list[date], today: date | None = None) -> int:
    """Consecutive days with a completed log ending at today."""
    today = today or local_today()
    streak = 0
    expected = today

    for d in dates:
        if d == expected:
            streak += 1
            expected -= timedelta(days=1)
        elif d < expected:
            break

    return streak


async def get_today_stats(db: AsyncSession, user_id: uuid.UUID) -> TodayStats:
    today = local_today()
    minutes, pomodoros = await habit_log_store.get_focus_totals(db, user_id, today)

    habits = await habit_log_store.fetch_habits(db, user_id, FOCUS_HABIT_FILTER)
    logs = await habit_log_store.get_today_values(db, user_id, today)
    completed = sum(1 for h in habits if h.id in logs and logs[h.id].completed)

    dates = await habit_log_store.get_completed_dates(db, user_id)

    return TodayStats(
        total_focus_minutes=minutes,
        completed_habits=completed,
        total_pomodoros=pomodoros,
        current_streak=calculate_streak(dates, today),
    )


# ---------------------------------------------------------------------------
# Timer parking
# ---------------------------------------------------------------------------


async def load_timer(redis_client, user_id: uuid.UUID) -> FocusTimerMachine | None:
    raw = await redis_client.get(_timer_key(user_id))
    if raw is None:
        return None
    return FocusTimerMachine.from_state(TimerState.model_validate_json(raw))


async def save_timer(redis_client, user_id: uuid.UUID, machine: FocusTimerMachine) -> None:
    await redis_client.set(
        _timer_key(user_id),
        machine.to_state().model_dump_json(),
        ex=settings.TIMER_STATE_TTL_SECONDS,
    )


async def discard_timer(redis_client, user_id: uuid.UUID) -> None:
    await redis_client.delete(_timer_key(user_id))

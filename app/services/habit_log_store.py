import uuid
from datetime import date, datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.focus_session import FocusSession
from app.models.habit import Habit
from app.models.habit_log import HabitLog
from app.schemas.analytics import HabitLogEntry
from app.schemas.habit import HabitFilter


def _to_entry(log: HabitLog, habit: Habit) -> HabitLogEntry:
    return HabitLogEntry(
        date=log.date,
        habit_id=habit.id,
        habit_name=habit.name,
        category=habit.category,
        completed=log.completed,
        completed_at=log.completed_at,
        duration_minutes=log.duration_minutes,
        focus_score=log.focus_score,
    )


async def fetch_logs(
    db: AsyncSession,
    user_id: uuid.UUID,
    start: date,
    end: date | None = None,
) -> list[HabitLogEntry]:
    """Completion logs joined with their habit, mapped to typed entries."""
    query = (
        select(HabitLog, Habit)
        .join(Habit, Habit.id == HabitLog.habit_id)
        .where(HabitLog.user_id == user_id, HabitLog.date >= start)
    )
    if end is not None:
        query = query.where(HabitLog.date <= end)
    query = query.order_by(HabitLog.date.asc())

    result = await db.execute(query)
    return [_to_entry(log, habit) for log, habit in result.all()]


async def fetch_habits(
    db: AsyncSession,
    user_id: uuid.UUID,
    habit_filter: HabitFilter | None = None,
) -> list[Habit]:
    habit_filter = habit_filter or HabitFilter()
    query = select(Habit).where(Habit.user_id == user_id)
    if habit_filter.is_active is not None:
        query = query.where(Habit.is_active == habit_filter.is_active)
    if habit_filter.type is not None:
        query = query.where(Habit.type == habit_filter.type)
    if habit_filter.target_unit is not None:
        query = query.where(Habit.target_unit == habit_filter.target_unit)
    if habit_filter.category is not None:
        query = query.where(Habit.category == habit_filter.category)
    query = query.order_by(Habit.created_at.asc(), Habit.name.asc())
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_habit(
    db: AsyncSession, user_id: uuid.UUID, habit_id: uuid.UUID
) -> Habit | None:
    result = await db.execute(
        select(Habit).where(Habit.id == habit_id, Habit.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def create_habit(db: AsyncSession, user_id: uuid.UUID, data: dict) -> Habit:
    habit = Habit(user_id=user_id, **data)
    db.add(habit)
    await db.flush()
    await db.refresh(habit)
    return habit


async def upsert_focus_session(
    db: AsyncSession,
    user_id: uuid.UUID,
    habit_id: uuid.UUID,
    session_date: date,
    duration_minutes: int,
    pomodoro_count: int = 1,
) -> FocusSession:
    """Record one committed focus session. Sessions are append-only."""
    session = FocusSession(
        user_id=user_id,
        habit_id=habit_id,
        date=session_date,
        duration=duration_minutes,
        pomodoros_completed=pomodoro_count,
    )
    db.add(session)
    await db.flush()
    await db.refresh(session)
    return session


async def upsert_habit_log(
    db: AsyncSession,
    user_id: uuid.UUID,
    habit_id: uuid.UUID,
    log_date: date,
    completed: bool,
    value: float,
    completed_at: datetime | None,
    duration_minutes: float | None = None,
    focus_score: int | None = None,
) -> HabitLog:
    """Create or update the daily log keyed by (user, habit, date).

    Select-then-write keeps this portable across SQLite and Postgres.
    """
    result = await db.execute(
        select(HabitLog).where(
            HabitLog.user_id == user_id,
            HabitLog.habit_id == habit_id,
            HabitLog.date == log_date,
        )
    )
    log = result.scalar_one_or_none()

    if log is None:
        log = HabitLog(user_id=user_id, habit_id=habit_id, date=log_date)
        db.add(log)
    else:
        log.updated_at = datetime.now(timezone.utc)

    log.completed = completed
    log.value = value
    log.completed_at = completed_at
    if duration_minutes is not None:
        log.duration_minutes = duration_minutes
    if focus_score is not None:
        log.focus_score = focus_score

    await db.flush()
    await db.refresh(log)
    return log


async def get_today_values(
    db: AsyncSession, user_id: uuid.UUID, log_date: date
) -> dict[uuid.UUID, HabitLog]:
    result = await db.execute(
        select(HabitLog).where(HabitLog.user_id == user_id, HabitLog.date == log_date)
    )
    return {log.habit_id: log for log in result.scalars().all()}


async def get_focus_totals(
    db: AsyncSession, user_id: uuid.UUID, session_date: date
) -> tuple[int, int]:
    """(focused minutes, pomodoros) recorded on a given day."""
    result = await db.execute(
        select(
            func.coalesce(func.sum(FocusSession.duration), 0).label("minutes"),
            func.coalesce(func.sum(FocusSession.pomodoros_completed), 0).label("pomodoros"),
        ).where(
            FocusSession.user_id == user_id,
            FocusSession.date == session_date,
        )
    )
    row = result.one()
    return int(row.minutes), int(row.pomodoros)


async def get_completed_dates(
    db: AsyncSession, user_id: uuid.UUID, limit: int = 30
) -> list[date]:
    """Distinct days with at least one completed log, newest first."""
    result = await db.execute(
        select(HabitLog.date)
        .where(HabitLog.user_id == user_id, HabitLog.completed == True)  # noqa: E712
        .group_by(HabitLog.date)
        .order_by(HabitLog.date.desc())
        .limit(limit)
    )
    return [row.date for row in result.all()]

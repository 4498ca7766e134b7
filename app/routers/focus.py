import logging

import sentry_sdk
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.focus import (
    CommitSessionEffect,
    FocusHabit,
    TimerBindHabit,
    TimerConfig,
    TimerMount,
    TimerResponse,
    TimerSwitch,
    TimerTick,
    TodayStats,
)
from app.services import focus_service
from app.services.focus_timer import FocusTimerMachine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/focus", tags=["focus"])


def _response(
    machine: FocusTimerMachine,
    commits: list[CommitSessionEffect] | None = None,
    persist_error: str | None = None,
) -> TimerResponse:
    return TimerResponse(
        state=machine.to_state(),
        display=machine.format_time(),
        progress_percent=round(machine.progress_percent, 1),
        commits=commits or [],
        persist_error=persist_error,
    )


async def _require_timer(req: Request, user: User) -> FocusTimerMachine:
    machine = await focus_service.load_timer(req.app.state.redis, user.id)
    if machine is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="No active focus timer"
        )
    return machine


async def _require_habit(db: AsyncSession, user: User, habit_id) -> FocusHabit:
    habit = await focus_service.get_focus_habit(db, user.id, habit_id)
    if habit is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Habit not found")
    return habit


# ---------------------------------------------------------------------------
# Settings, habits and stats
# ---------------------------------------------------------------------------


@router.get("/settings", response_model=TimerConfig)
async def get_settings(user: User = Depends(get_current_user)):
    return focus_service.get_timer_config(user)


@router.put("/settings", response_model=TimerConfig)
async def update_settings(
    data: TimerConfig,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await focus_service.save_timer_config(db, user, data)


@router.get("/habits", response_model=list[FocusHabit])
async def list_focus_habits(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await focus_service.list_focus_habits(db, user.id)


@router.get("/stats/today", response_model=TodayStats)
async def today_stats(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await focus_service.get_today_stats(db, user.id)


# ---------------------------------------------------------------------------
# Timer lifecycle
# ---------------------------------------------------------------------------


@router.post("/timer", response_model=TimerResponse, status_code=201)
async def mount_timer(
    data: TimerMount,
    req: Request,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create a fresh timer, bound to the given habit or the first focus habit."""
    if data.habit_id is not None:
        habit = await _require_habit(db, user, data.habit_id)
    else:
        habits = await focus_service.list_focus_habits(db, user.id)
        habit = habits[0] if habits else None

    machine = FocusTimerMachine(focus_service.get_timer_config(user), habit)
    await focus_service.save_timer(req.app.state.redis, user.id, machine)
    return _response(machine)


@router.get("/timer", response_model=TimerResponse)
async def get_timer(req: Request, user: User = Depends(get_current_user)):
    return _response(await _require_timer(req, user))


@router.delete("/timer", status_code=204)
async def unmount_timer(req: Request, user: User = Depends(get_current_user)):
    await focus_service.discard_timer(req.app.state.redis, user.id)


@router.post("/timer/start", response_model=TimerResponse)
async def start_timer(req: Request, user: User = Depends(get_current_user)):
    machine = await _require_timer(req, user)
    machine.start()
    await focus_service.save_timer(req.app.state.redis, user.id, machine)
    return _response(machine)


@router.post("/timer/pause", response_model=TimerResponse)
async def pause_timer(req: Request, user: User = Depends(get_current_user)):
    machine = await _require_timer(req, user)
    machine.pause()
    await focus_service.save_timer(req.app.state.redis, user.id, machine)
    return _response(machine)


@router.post("/timer/tick", response_model=TimerResponse)
async def tick_timer(
    data: TimerTick,
    req: Request,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Advance the countdown and persist any finished work intervals.

    The timer state is saved before persistence is attempted and is not
    reverted if it fails; the failure is reported in ``persist_error``.
    Effects that were saved before a failing one stay saved.
    """
    user_id = user.id
    machine = await _require_timer(req, user)
    commits = machine.advance(data.seconds)
    await focus_service.save_timer(req.app.state.redis, user_id, machine)

    persist_error = None
    for effect in commits:
        # One savepoint per effect so a failure only discards its own writes
        try:
            async with db.begin_nested():
                refreshed = await focus_service.commit_session(db, user_id, effect)
        except (SQLAlchemyError, ValueError) as exc:
            logger.exception("Failed to persist focus session for user %s", user_id)
            sentry_sdk.capture_exception(exc)
            persist_error = "Focus session could not be saved"
            continue
        if refreshed is not None and machine.bound_habit is not None and machine.bound_habit.id == refreshed.id:
            machine.bound_habit = refreshed

    if commits:
        await focus_service.save_timer(req.app.state.redis, user_id, machine)
    return _response(machine, commits, persist_error)


@router.post("/timer/reset", response_model=TimerResponse)
async def reset_timer(req: Request, user: User = Depends(get_current_user)):
    machine = await _require_timer(req, user)
    machine.reset()
    await focus_service.save_timer(req.app.state.redis, user.id, machine)
    return _response(machine)


@router.post("/timer/skip", response_model=TimerResponse)
async def skip_timer(req: Request, user: User = Depends(get_current_user)):
    machine = await _require_timer(req, user)
    machine.skip()
    await focus_service.save_timer(req.app.state.redis, user.id, machine)
    return _response(machine)


@router.post("/timer/switch", response_model=TimerResponse)
async def switch_timer(
    data: TimerSwitch, req: Request, user: User = Depends(get_current_user)
):
    machine = await _require_timer(req, user)
    machine.switch_session_type(data.session_type)
    await focus_service.save_timer(req.app.state.redis, user.id, machine)
    return _response(machine)


@router.put("/timer/habit", response_model=TimerResponse)
async def bind_timer_habit(
    data: TimerBindHabit,
    req: Request,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    machine = await _require_timer(req, user)
    habit = await _require_habit(db, user, data.habit_id) if data.habit_id else None
    machine.bind_habit(habit)
    await focus_service.save_timer(req.app.state.redis, user.id, machine)
    return _response(machine)

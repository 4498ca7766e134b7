"""Pomodoro countdown for a single focus session.

The machine is advanced only by explicit events (start, pause, tick, skip,
reset, switch, habit rebind). It performs no I/O: when a work interval counts
down to zero it returns a ``CommitSessionEffect`` and the caller decides how to
persist it. State already advanced is never rolled back if that fails.
"""

from collections.abc import Callable
from datetime import date

from app.schemas.focus import (
    CommitSessionEffect,
    FocusHabit,
    SessionType,
    TimerConfig,
    TimerState,
)
from app.time_utils import local_today

WORK = "work"
SHORT_BREAK = "shortBreak"
LONG_BREAK = "longBreak"


def _check_work_minutes(minutes: int) -> None:
    if minutes < 1:
        raise ValueError(f"Work interval must be at least one minute, got {minutes}")


class FocusTimerMachine:
    def __init__(
        self,
        config: TimerConfig,
        bound_habit: FocusHabit | None = None,
        today: Callable[[], date] = local_today,
    ):
        _check_work_minutes(config.work_minutes)
        if bound_habit is not None:
            _check_work_minutes(bound_habit.target_time)
        self.config = config
        self.bound_habit = bound_habit
        self._today = today

        self.session_type: SessionType = WORK
        self.is_running = False
        self.completed_pomodoros = 0
        self.seconds_elapsed_in_current_work_session = 0
        self.seconds_remaining = self.duration_seconds(WORK)

    # --- durations -------------------------------------------------------

    @property
    def work_minutes(self) -> int:
        if self.bound_habit is not None:
            return self.bound_habit.target_time
        return self.config.work_minutes

    def duration_seconds(self, session_type: SessionType) -> int:
        if session_type == WORK:
            return self.work_minutes * 60
        if session_type == SHORT_BREAK:
            return self.config.short_break_minutes * 60
        return self.config.long_break_minutes * 60

    @property
    def progress_percent(self) -> float:
        total = self.duration_seconds(self.session_type)
        if total <= 0:
            return 0.0
        return (total - self.seconds_remaining) / total * 100

    def format_time(self) -> str:
        minutes, seconds = divmod(self.seconds_remaining, 60)
        return f"{minutes:02d}:{seconds:02d}"

    # --- events ----------------------------------------------------------

    def start(self) -> None:
        self.is_running = True

    def pause(self) -> None:
        self.is_running = False

    def toggle(self) -> None:
        self.is_running = not self.is_running

    def tick(self) -> CommitSessionEffect | None:
        """Advance one second. Returns the commit effect if a work interval ended."""
        if not self.is_running:
            return None

        if self.seconds_remaining > 0:
            self.seconds_remaining -= 1
            if self.session_type == WORK:
                self.seconds_elapsed_in_current_work_session += 1

        if self.seconds_remaining == 0:
            return self._complete_session()
        return None

    def advance(self, seconds: int) -> list[CommitSessionEffect]:
        effects = []
        for _ in range(seconds):
            if not self.is_running:
                break
            effect = self.tick()
            if effect is not None:
                effects.append(effect)
        return effects

    def reset(self) -> None:
        self.is_running = False
        self.seconds_elapsed_in_current_work_session = 0
        self.seconds_remaining = self.duration_seconds(self.session_type)

    def skip(self) -> None:
        # Two-state cycle: a skip never lands on a long break and never commits
        self.is_running = False
        self.seconds_elapsed_in_current_work_session = 0
        if self.session_type == WORK:
            self.session_type = SHORT_BREAK
            self.seconds_remaining = self.config.short_break_minutes * 60
        else:
            self.session_type = WORK
            self.seconds_remaining = self.config.work_minutes * 60

    def switch_session_type(self, session_type: SessionType) -> None:
        self.session_type = session_type
        self.reset()

    def bind_habit(self, habit: FocusHabit | None) -> None:
        if habit is not None:
            _check_work_minutes(habit.target_time)
        self.bound_habit = habit
        if habit is not None and self.session_type == WORK and not self.is_running:
            self.seconds_remaining = habit.target_time * 60

    # --- completion ------------------------------------------------------

    def _complete_session(self) -> CommitSessionEffect | None:
        if self.session_type != WORK:
            self.session_type = WORK
            self.seconds_remaining = self.work_minutes * 60
            self.seconds_elapsed_in_current_work_session = 0
            self.is_running = self.config.auto_start_work
            return None

        effect = CommitSessionEffect(
            habit_id=self.bound_habit.id if self.bound_habit else None,
            session_minutes=self.work_minutes,
            date=self._today(),
        )

        self.completed_pomodoros += 1
        self.seconds_elapsed_in_current_work_session = 0
        if self.completed_pomodoros % self.config.long_break_interval == 0:
            self.session_type = LONG_BREAK
        else:
            self.session_type = SHORT_BREAK
        self.seconds_remaining = self.duration_seconds(self.session_type)
        self.is_running = self.config.auto_start_breaks
        return effect

    # --- snapshots -------------------------------------------------------

    def to_state(self) -> TimerState:
        return TimerState(
            session_type=self.session_type,
            seconds_remaining=self.seconds_remaining,
            is_running=self.is_running,
            completed_pomodoros=self.completed_pomodoros,
            seconds_elapsed_in_current_work_session=self.seconds_elapsed_in_current_work_session,
            config=self.config,
            bound_habit=self.bound_habit,
        )

    @classmethod
    def from_state(
        cls, state: TimerState, today: Callable[[], date] = local_today
    ) -> "FocusTimerMachine":
        machine = cls(state.config, state.bound_habit, today=today)
        machine.session_type = state.session_type
        machine.seconds_remaining = state.seconds_remaining
        machine.is_running = state.is_running
        machine.completed_pomodoros = state.completed_pomodoros
        machine.seconds_elapsed_in_current_work_session = (
            state.seconds_elapsed_in_current_work_session
        )
        return machine

from app.models.base import Base
from app.models.focus_session import FocusSession
from app.models.habit import Habit
from app.models.habit_log import HabitLog
from app.models.user import User

__all__ = [
    "Base",
    "FocusSession",
    "Habit",
    "HabitLog",
    "User",
]

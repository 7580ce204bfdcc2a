"""Reading goals: progress derivation and synchronization."""

from .progress import GoalProgressCalculator, calculate_progress
from .schemas import GoalProgress, GoalStatistics, GoalStatus, GoalWithProgress
from .sync import GoalSyncService

__all__ = [
    "GoalProgressCalculator",
    "calculate_progress",
    "GoalProgress",
    "GoalStatistics",
    "GoalStatus",
    "GoalWithProgress",
    "GoalSyncService",
]

"""Pydantic schemas for goal progress."""

from enum import Enum

from pydantic import BaseModel

from ..db.schemas import Goal


class GoalStatus(str, Enum):
    """Derived state of a goal."""

    COMPLETED = "completed"
    OVERDUE = "overdue"
    NOT_STARTED = "not-started"
    IN_PROGRESS = "in-progress"


class GoalProgress(BaseModel):
    """Snapshot of a goal's derived progress."""

    percentage: int
    is_completed: bool
    is_overdue: bool
    days_remaining: int
    books_remaining: int
    status: GoalStatus
    should_auto_complete: bool


class GoalWithProgress(BaseModel):
    goal: Goal
    progress: GoalProgress


class GoalStatistics(BaseModel):
    """Totals across all goals of a user."""

    total: int = 0
    completed: int = 0
    in_progress: int = 0
    not_started: int = 0
    overdue: int = 0
    total_books_target: int = 0
    total_books_read: int = 0

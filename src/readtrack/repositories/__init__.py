"""Repository interfaces and their adapters."""

from .base import (
    BookRepository,
    GoalRepository,
    ReadingActivityRepository,
    ReadingSessionRepository,
)
from .memory import (
    InMemoryBookRepository,
    InMemoryGoalRepository,
    InMemoryReadingActivityRepository,
    InMemoryReadingSessionRepository,
)
from .sql import (
    SqlBookRepository,
    SqlGoalRepository,
    SqlReadingActivityRepository,
    SqlReadingSessionRepository,
)

__all__ = [
    "BookRepository",
    "GoalRepository",
    "ReadingActivityRepository",
    "ReadingSessionRepository",
    "InMemoryBookRepository",
    "InMemoryGoalRepository",
    "InMemoryReadingActivityRepository",
    "InMemoryReadingSessionRepository",
    "SqlBookRepository",
    "SqlGoalRepository",
    "SqlReadingActivityRepository",
    "SqlReadingSessionRepository",
]

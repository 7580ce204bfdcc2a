"""Keeps goals in step with the user's finished books.

Every sync recounts from scratch rather than incrementing a counter, so
edited finish dates, imported history and deleted books all settle on the
next sync.

Writers are serialized per (user, goal) by a lock table shared by every
GoalSyncService in the process. Writes also carry the goal's version, so a
writer in another process that slipped in between read and write makes the
repository raise ConflictError, and the sync starts over from a fresh read.
"""

import logging
import threading
import weakref
from datetime import datetime
from typing import Callable, Optional

from ..db.schemas import Book, BookStatus, Goal, GoalUpdate
from ..errors import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from ..repositories.base import BookRepository, GoalRepository
from .progress import GoalProgressCalculator
from .schemas import GoalStatistics, GoalStatus, GoalWithProgress

logger = logging.getLogger(__name__)

# Attempts per sync before a version conflict is surfaced to the caller
MAX_SYNC_ATTEMPTS = 3

# Entries disappear once no thread holds or waits on the lock
_goal_locks: "weakref.WeakValueDictionary[tuple[str, str], threading.Lock]" = (
    weakref.WeakValueDictionary()
)
_goal_locks_guard = threading.Lock()


def goal_lock(user_id: str, goal_id: str) -> threading.Lock:
    """The process-wide lock for one user's goal."""
    with _goal_locks_guard:
        lock = _goal_locks.get((user_id, goal_id))
        if lock is None:
            lock = threading.Lock()
            _goal_locks[(user_id, goal_id)] = lock
        return lock


class GoalSyncService:
    """Recomputes goal progress and applies the auto-completion latch."""

    def __init__(self, goal_repository: GoalRepository, book_repository: BookRepository):
        self.goal_repository = goal_repository
        self.book_repository = book_repository

    def _load_owned_goal(self, goal_id: str, user_id: str) -> Goal:
        goal = self.goal_repository.get(goal_id)

        if goal is None:
            raise NotFoundError("Goal", goal_id)

        if goal.user_id != user_id:
            raise UnauthorizedError("You do not own this goal")

        return goal

    @staticmethod
    def count_books_in_window(goal: Goal, books: list[Book]) -> int:
        """Number of finished books whose finish date lies in the goal window."""
        return sum(
            1
            for book in books
            if book.status == BookStatus.READ
            and book.finished_at is not None
            and goal.contains(book.finished_at)
        )

    def _save_progress(self, goal: Goal, current_books: int) -> Goal:
        snapshot = goal.model_copy(update={"current_books": current_books})
        calculator = GoalProgressCalculator(snapshot)

        changes: dict = {"current_books": current_books}
        if calculator.should_auto_complete:
            changes["completed"] = True
            logger.info(
                "Goal %s reached %d/%d, marking completed",
                goal.id,
                current_books,
                goal.target_books,
            )

        updated = self.goal_repository.update(
            goal.id, GoalUpdate(**changes), expected_version=goal.version
        )
        if updated is None:
            raise NotFoundError("Goal", goal.id)

        return updated

    def _locked_write(
        self, goal_id: str, user_id: str, count: Callable[[Goal], int]
    ) -> Goal:
        """Load, recompute and save a goal under its lock, retrying on conflicts."""
        with goal_lock(user_id, goal_id):
            for attempt in range(1, MAX_SYNC_ATTEMPTS + 1):
                goal = self._load_owned_goal(goal_id, user_id)
                try:
                    return self._save_progress(goal, count(goal))
                except ConflictError:
                    if attempt == MAX_SYNC_ATTEMPTS:
                        raise
                    logger.warning(
                        "Goal %s changed during sync (attempt %d), retrying", goal_id, attempt
                    )

    # -------------------------------------------------------------------------
    # Synchronization
    # -------------------------------------------------------------------------

    def sync_goal_progress(self, goal_id: str, user_id: str) -> Goal:
        """Recount a goal's finished books and persist the result.

        Args:
            goal_id: Goal to sync
            user_id: Acting user, must own the goal

        Returns:
            The updated goal

        Raises:
            NotFoundError: If the goal does not exist
            UnauthorizedError: If the goal belongs to another user
            ConflictError: If the goal kept changing underneath every attempt
        """

        def recount(goal: Goal) -> int:
            books = self.book_repository.find_by_user(user_id)
            current_books = self.count_books_in_window(goal, books)
            logger.debug("Goal %s: %d finished books in window", goal_id, current_books)
            return current_books

        return self._locked_write(goal_id, user_id, recount)

    def sync_all_goals(self, user_id: str) -> list[Goal]:
        """Sync every goal the user owns."""
        return [
            self.sync_goal_progress(goal.id, user_id)
            for goal in self.goal_repository.find_by_user(user_id)
        ]

    def update_goal_progress(self, goal_id: str, user_id: str, current_books: int) -> Goal:
        """Set a goal's count directly, skipping the book re-scan.

        The auto-completion rule still applies.
        """
        if current_books < 0:
            raise ValidationError("Current books cannot be negative", field="current_books")

        return self._locked_write(goal_id, user_id, lambda goal: current_books)

    # -------------------------------------------------------------------------
    # Read side
    # -------------------------------------------------------------------------

    def get_goal_with_progress(
        self, goal_id: str, user_id: str, now: Optional[datetime] = None
    ) -> GoalWithProgress:
        goal = self._load_owned_goal(goal_id, user_id)
        return GoalWithProgress(goal=goal, progress=GoalProgressCalculator(goal, now).to_progress())

    def get_all_goals_with_progress(
        self, user_id: str, now: Optional[datetime] = None
    ) -> list[GoalWithProgress]:
        return [
            GoalWithProgress(goal=goal, progress=GoalProgressCalculator(goal, now).to_progress())
            for goal in self.goal_repository.find_by_user(user_id)
        ]

    def get_goal_statistics(self, user_id: str, now: Optional[datetime] = None) -> GoalStatistics:
        """Count a user's goals by status and total up targets and books read."""
        stats = GoalStatistics()

        for goal in self.goal_repository.find_by_user(user_id):
            status = GoalProgressCalculator(goal, now).status

            stats.total += 1
            stats.total_books_target += goal.target_books
            stats.total_books_read += goal.current_books

            if status == GoalStatus.COMPLETED:
                stats.completed += 1
            elif status == GoalStatus.IN_PROGRESS:
                stats.in_progress += 1
            elif status == GoalStatus.NOT_STARTED:
                stats.not_started += 1
            elif status == GoalStatus.OVERDUE:
                stats.overdue += 1

        return stats

"""Repository interfaces consumed by the engine.

The engine only ever talks to these; adapters (in-memory, SQLAlchemy) are
chosen when the services are wired together.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional

from ..db.schemas import (
    Book,
    BookStatus,
    BookUpdate,
    Goal,
    GoalUpdate,
    ReadingActivity,
    ReadingSession,
    ReadingSessionUpdate,
)


class BookRepository(ABC):
    @abstractmethod
    def add(self, book: Book) -> Book:
        pass

    @abstractmethod
    def get(self, book_id: str) -> Optional[Book]:
        pass

    @abstractmethod
    def find_by_user(self, user_id: str) -> list[Book]:
        pass

    @abstractmethod
    def find_by_status(self, user_id: str, status: BookStatus) -> list[Book]:
        pass

    @abstractmethod
    def update(self, book_id: str, update: BookUpdate) -> Optional[Book]:
        """Apply a partial update; returns None if the book does not exist."""
        pass


class GoalRepository(ABC):
    @abstractmethod
    def add(self, goal: Goal) -> Goal:
        pass

    @abstractmethod
    def get(self, goal_id: str) -> Optional[Goal]:
        pass

    @abstractmethod
    def find_by_user(self, user_id: str) -> list[Goal]:
        pass

    @abstractmethod
    def update(
        self,
        goal_id: str,
        update: GoalUpdate,
        expected_version: Optional[int] = None,
    ) -> Optional[Goal]:
        """Apply a partial update and bump the goal's version.

        Returns None if the goal does not exist. When ``expected_version`` is
        given and the stored version differs, raises ConflictError and writes
        nothing.
        """
        pass


class ReadingActivityRepository(ABC):
    @abstractmethod
    def add(self, activity: ReadingActivity) -> ReadingActivity:
        pass

    @abstractmethod
    def find_by_user(
        self,
        user_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[ReadingActivity]:
        """Activities for a user, optionally limited to an inclusive date range."""
        pass


class ReadingSessionRepository(ABC):
    @abstractmethod
    def add(self, session: ReadingSession) -> ReadingSession:
        pass

    @abstractmethod
    def get(self, session_id: str) -> Optional[ReadingSession]:
        pass

    @abstractmethod
    def find_active(self, user_id: str) -> Optional[ReadingSession]:
        """The user's open session, if any."""
        pass

    @abstractmethod
    def find_by_user(
        self,
        user_id: str,
        book_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> list[ReadingSession]:
        """Sessions for a user, most recent first, filtered by book and start day."""
        pass

    @abstractmethod
    def update(self, session_id: str, update: ReadingSessionUpdate) -> Optional[ReadingSession]:
        """Apply a partial update; returns None if the session does not exist."""
        pass

"""In-memory repositories keyed by entity id.

Used by tests and for wiring the engine without a database. Each repository
owns its own storage; nothing is shared at module level.
"""

import threading
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
from ..errors import ConflictError
from .base import (
    BookRepository,
    GoalRepository,
    ReadingActivityRepository,
    ReadingSessionRepository,
)


class InMemoryBookRepository(BookRepository):
    def __init__(self, books: Optional[list[Book]] = None):
        self._books: dict[str, Book] = {}
        self._lock = threading.Lock()
        for book in books or []:
            self.add(book)

    def add(self, book: Book) -> Book:
        with self._lock:
            self._books[book.id] = book.model_copy()
        return book

    def get(self, book_id: str) -> Optional[Book]:
        with self._lock:
            book = self._books.get(book_id)
            return book.model_copy() if book else None

    def find_by_user(self, user_id: str) -> list[Book]:
        with self._lock:
            return [b.model_copy() for b in self._books.values() if b.user_id == user_id]

    def find_by_status(self, user_id: str, status: BookStatus) -> list[Book]:
        return [b for b in self.find_by_user(user_id) if b.status == status]

    def update(self, book_id: str, update: BookUpdate) -> Optional[Book]:
        with self._lock:
            book = self._books.get(book_id)
            if book is None:
                return None
            updated = book.apply(update)
            self._books[book_id] = updated
            return updated.model_copy()

    def delete(self, book_id: str) -> bool:
        with self._lock:
            return self._books.pop(book_id, None) is not None


class InMemoryGoalRepository(GoalRepository):
    def __init__(self, goals: Optional[list[Goal]] = None):
        self._goals: dict[str, Goal] = {}
        self._lock = threading.Lock()
        for goal in goals or []:
            self.add(goal)

    def add(self, goal: Goal) -> Goal:
        with self._lock:
            self._goals[goal.id] = goal.model_copy()
        return goal

    def get(self, goal_id: str) -> Optional[Goal]:
        with self._lock:
            goal = self._goals.get(goal_id)
            return goal.model_copy() if goal else None

    def find_by_user(self, user_id: str) -> list[Goal]:
        with self._lock:
            return [g.model_copy() for g in self._goals.values() if g.user_id == user_id]

    def update(
        self,
        goal_id: str,
        update: GoalUpdate,
        expected_version: Optional[int] = None,
    ) -> Optional[Goal]:
        with self._lock:
            goal = self._goals.get(goal_id)
            if goal is None:
                return None
            if expected_version is not None and goal.version != expected_version:
                raise ConflictError("Goal", goal_id)
            updated = goal.apply(update).model_copy(update={"version": goal.version + 1})
            self._goals[goal_id] = updated
            return updated.model_copy()


class InMemoryReadingActivityRepository(ReadingActivityRepository):
    def __init__(self, activities: Optional[list[ReadingActivity]] = None):
        self._activities: dict[str, ReadingActivity] = {}
        self._lock = threading.Lock()
        for activity in activities or []:
            self.add(activity)

    def add(self, activity: ReadingActivity) -> ReadingActivity:
        with self._lock:
            self._activities[activity.id] = activity.model_copy()
        return activity

    def find_by_user(
        self,
        user_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[ReadingActivity]:
        with self._lock:
            activities = [a for a in self._activities.values() if a.user_id == user_id]

        if start_date:
            activities = [a for a in activities if a.activity_date >= start_date]
        if end_date:
            activities = [a for a in activities if a.activity_date <= end_date]

        return sorted(
            (a.model_copy() for a in activities),
            key=lambda a: a.activity_date,
            reverse=True,
        )


class InMemoryReadingSessionRepository(ReadingSessionRepository):
    def __init__(self, sessions: Optional[list[ReadingSession]] = None):
        self._sessions: dict[str, ReadingSession] = {}
        self._lock = threading.Lock()
        for session in sessions or []:
            self.add(session)

    def add(self, session: ReadingSession) -> ReadingSession:
        with self._lock:
            self._sessions[session.id] = session.model_copy()
        return session

    def get(self, session_id: str) -> Optional[ReadingSession]:
        with self._lock:
            session = self._sessions.get(session_id)
            return session.model_copy() if session else None

    def find_active(self, user_id: str) -> Optional[ReadingSession]:
        active = [s for s in self.find_by_user(user_id) if s.is_active]
        return active[0] if active else None

    def find_by_user(
        self,
        user_id: str,
        book_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> list[ReadingSession]:
        with self._lock:
            sessions = [s.model_copy() for s in self._sessions.values() if s.user_id == user_id]

        if book_id:
            sessions = [s for s in sessions if s.book_id == book_id]
        if start_date:
            sessions = [s for s in sessions if s.start_time.date() >= start_date]
        if end_date:
            sessions = [s for s in sessions if s.start_time.date() <= end_date]

        sessions.sort(key=lambda s: s.start_time, reverse=True)
        return sessions[:limit] if limit else sessions

    def update(self, session_id: str, update: ReadingSessionUpdate) -> Optional[ReadingSession]:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            updated = session.apply(update)
            self._sessions[session_id] = updated
            return updated.model_copy()

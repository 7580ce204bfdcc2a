"""SQLAlchemy-backed repositories over the local SQLite database."""

from datetime import date, datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy import update as sql_update

from ..db import models
from ..db.schemas import (
    Book,
    BookStatus,
    BookUpdate,
    Goal,
    GoalUpdate,
    ReadingActivity,
    ReadingSession,
    ReadingSessionUpdate,
    utcnow,
)
from ..db.sqlite import Database, get_db
from ..errors import ConflictError
from .base import (
    BookRepository,
    GoalRepository,
    ReadingActivityRepository,
    ReadingSessionRepository,
)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _parse(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


class SqlBookRepository(BookRepository):
    def __init__(self, db: Optional[Database] = None):
        self.db = db or get_db()

    @staticmethod
    def to_entity(row: models.Book) -> Book:
        """Convert ORM row -> entity."""
        return Book(
            id=row.id,
            user_id=row.user_id,
            external_id=row.external_id,
            title=row.title,
            authors=row.get_authors(),
            status=BookStatus(row.status),
            current_page=row.current_page or 0,
            page_count=row.page_count,
            rating=row.rating,
            added_at=_parse(row.added_at),
            finished_at=_parse(row.finished_at),
            genres=row.get_genres(),
        )

    @staticmethod
    def _write(row: models.Book, book: Book) -> None:
        row.user_id = book.user_id
        row.external_id = book.external_id
        row.title = book.title
        row.set_authors(book.authors)
        row.status = book.status.value
        row.current_page = book.current_page
        row.page_count = book.page_count
        row.rating = book.rating
        row.added_at = _iso(book.added_at)
        row.finished_at = _iso(book.finished_at)
        row.set_genres(book.genres)

    def add(self, book: Book) -> Book:
        with self.db.get_session() as session:
            row = models.Book(id=book.id)
            self._write(row, book)
            session.add(row)
        return book

    def get(self, book_id: str) -> Optional[Book]:
        with self.db.get_session() as session:
            row = session.get(models.Book, book_id)
            return self.to_entity(row) if row else None

    def find_by_user(self, user_id: str) -> list[Book]:
        with self.db.get_session() as session:
            stmt = (
                select(models.Book)
                .where(models.Book.user_id == user_id)
                .order_by(models.Book.added_at)
            )
            return [self.to_entity(row) for row in session.execute(stmt).scalars()]

    def find_by_status(self, user_id: str, status: BookStatus) -> list[Book]:
        with self.db.get_session() as session:
            stmt = (
                select(models.Book)
                .where(models.Book.user_id == user_id, models.Book.status == status.value)
                .order_by(models.Book.added_at)
            )
            return [self.to_entity(row) for row in session.execute(stmt).scalars()]

    def update(self, book_id: str, update: BookUpdate) -> Optional[Book]:
        with self.db.get_session() as session:
            row = session.get(models.Book, book_id)
            if row is None:
                return None
            # Validate the whole entity before touching the row
            updated = self.to_entity(row).apply(update)
            self._write(row, updated)
            return updated


class SqlGoalRepository(GoalRepository):
    def __init__(self, db: Optional[Database] = None):
        self.db = db or get_db()

    @staticmethod
    def to_entity(row: models.Goal) -> Goal:
        """Convert ORM row -> entity."""
        return Goal(
            id=row.id,
            user_id=row.user_id,
            title=row.title,
            description=row.description,
            target_books=row.target_books,
            current_books=row.current_books or 0,
            start_date=_parse(row.start_date),
            end_date=_parse(row.end_date),
            completed=bool(row.completed),
            version=row.version or 0,
        )

    @staticmethod
    def _write(row: models.Goal, goal: Goal) -> None:
        row.user_id = goal.user_id
        row.title = goal.title
        row.description = goal.description
        row.target_books = goal.target_books
        row.current_books = goal.current_books
        row.start_date = _iso(goal.start_date)
        row.end_date = _iso(goal.end_date)
        row.completed = goal.completed
        row.version = goal.version

    def add(self, goal: Goal) -> Goal:
        with self.db.get_session() as session:
            row = models.Goal(id=goal.id)
            self._write(row, goal)
            session.add(row)
        return goal

    def get(self, goal_id: str) -> Optional[Goal]:
        with self.db.get_session() as session:
            row = session.get(models.Goal, goal_id)
            return self.to_entity(row) if row else None

    def find_by_user(self, user_id: str) -> list[Goal]:
        with self.db.get_session() as session:
            stmt = (
                select(models.Goal)
                .where(models.Goal.user_id == user_id)
                .order_by(models.Goal.start_date)
            )
            return [self.to_entity(row) for row in session.execute(stmt).scalars()]

    def update(
        self,
        goal_id: str,
        update: GoalUpdate,
        expected_version: Optional[int] = None,
    ) -> Optional[Goal]:
        with self.db.get_session() as session:
            row = session.get(models.Goal, goal_id)
            if row is None:
                return None

            current = self.to_entity(row)
            if expected_version is None:
                expected_version = current.version
            elif current.version != expected_version:
                raise ConflictError("Goal", goal_id)

            updated = current.apply(update).model_copy(update={"version": expected_version + 1})

            # Only write if no other connection bumped the version since the read
            stmt = (
                sql_update(models.Goal)
                .where(models.Goal.id == goal_id, models.Goal.version == expected_version)
                .values(
                    title=updated.title,
                    description=updated.description,
                    target_books=updated.target_books,
                    current_books=updated.current_books,
                    start_date=_iso(updated.start_date),
                    end_date=_iso(updated.end_date),
                    completed=updated.completed,
                    version=updated.version,
                    updated_at=_iso(utcnow()),
                )
            )
            if session.execute(stmt).rowcount != 1:
                raise ConflictError("Goal", goal_id)
            return updated


class SqlReadingActivityRepository(ReadingActivityRepository):
    def __init__(self, db: Optional[Database] = None):
        self.db = db or get_db()

    @staticmethod
    def to_entity(row: models.ReadingActivity) -> ReadingActivity:
        """Convert ORM row -> entity."""
        return ReadingActivity(
            id=row.id,
            user_id=row.user_id,
            activity_date=date.fromisoformat(row.activity_date),
            minutes_read=row.minutes_read or 0,
            pages_read=row.pages_read or 0,
            book_id=row.book_id,
            created_at=_parse(row.created_at),
        )

    def add(self, activity: ReadingActivity) -> ReadingActivity:
        with self.db.get_session() as session:
            session.add(
                models.ReadingActivity(
                    id=activity.id,
                    user_id=activity.user_id,
                    activity_date=activity.activity_date.isoformat(),
                    minutes_read=activity.minutes_read,
                    pages_read=activity.pages_read,
                    book_id=activity.book_id,
                    created_at=_iso(activity.created_at),
                )
            )
        return activity

    def find_by_user(
        self,
        user_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[ReadingActivity]:
        with self.db.get_session() as session:
            stmt = select(models.ReadingActivity).where(
                models.ReadingActivity.user_id == user_id
            )

            if start_date:
                stmt = stmt.where(models.ReadingActivity.activity_date >= start_date.isoformat())
            if end_date:
                stmt = stmt.where(models.ReadingActivity.activity_date <= end_date.isoformat())

            stmt = stmt.order_by(models.ReadingActivity.activity_date.desc())
            return [self.to_entity(row) for row in session.execute(stmt).scalars()]


class SqlReadingSessionRepository(ReadingSessionRepository):
    def __init__(self, db: Optional[Database] = None):
        self.db = db or get_db()

    @staticmethod
    def to_entity(row: models.ReadingSession) -> ReadingSession:
        """Convert ORM row -> entity."""
        return ReadingSession(
            id=row.id,
            user_id=row.user_id,
            book_id=row.book_id,
            start_time=_parse(row.start_time),
            end_time=_parse(row.end_time),
            duration_minutes=row.duration_minutes,
            pages_read=row.pages_read,
            notes=row.notes,
            created_at=_parse(row.created_at),
        )

    @staticmethod
    def _write(row: models.ReadingSession, reading_session: ReadingSession) -> None:
        row.user_id = reading_session.user_id
        row.book_id = reading_session.book_id
        row.start_time = _iso(reading_session.start_time)
        row.end_time = _iso(reading_session.end_time)
        row.duration_minutes = reading_session.duration_minutes
        row.pages_read = reading_session.pages_read
        row.notes = reading_session.notes
        row.created_at = _iso(reading_session.created_at)

    def add(self, reading_session: ReadingSession) -> ReadingSession:
        with self.db.get_session() as session:
            row = models.ReadingSession(id=reading_session.id)
            self._write(row, reading_session)
            session.add(row)
        return reading_session

    def get(self, session_id: str) -> Optional[ReadingSession]:
        with self.db.get_session() as session:
            row = session.get(models.ReadingSession, session_id)
            return self.to_entity(row) if row else None

    def find_active(self, user_id: str) -> Optional[ReadingSession]:
        with self.db.get_session() as session:
            stmt = (
                select(models.ReadingSession)
                .where(
                    models.ReadingSession.user_id == user_id,
                    models.ReadingSession.end_time.is_(None),
                )
                .order_by(models.ReadingSession.start_time.desc())
                .limit(1)
            )
            row = session.execute(stmt).scalars().first()
            return self.to_entity(row) if row else None

    def find_by_user(
        self,
        user_id: str,
        book_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> list[ReadingSession]:
        with self.db.get_session() as session:
            stmt = select(models.ReadingSession).where(models.ReadingSession.user_id == user_id)

            if book_id:
                stmt = stmt.where(models.ReadingSession.book_id == book_id)
            # start_time is a UTC ISO string, so its first ten characters are the day
            if start_date:
                stmt = stmt.where(models.ReadingSession.start_time >= start_date.isoformat())
            if end_date:
                next_day = date.fromordinal(end_date.toordinal() + 1)
                stmt = stmt.where(models.ReadingSession.start_time < next_day.isoformat())

            stmt = stmt.order_by(models.ReadingSession.start_time.desc())
            if limit:
                stmt = stmt.limit(limit)
            return [self.to_entity(row) for row in session.execute(stmt).scalars()]

    def update(self, session_id: str, update: ReadingSessionUpdate) -> Optional[ReadingSession]:
        with self.db.get_session() as session:
            row = session.get(models.ReadingSession, session_id)
            if row is None:
                return None
            updated = self.to_entity(row).apply(update)
            self._write(row, updated)
            return updated

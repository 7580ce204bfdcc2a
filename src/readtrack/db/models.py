"""SQLAlchemy ORM models for local SQLite database.

Tables:
- books: Cataloged books and their reading state
- goals: Time-boxed reading goals
- reading_activities: Logged reading activity, several rows per day allowed
- reading_sessions: Timed reading sessions, open until ended
"""

import json
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from .schemas import BookStatus, generate_id


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class Book(Base):
    """Book model - one row per cataloged book."""

    __tablename__ = "books"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    external_id: Mapped[Optional[str]] = mapped_column(String(100))

    # Core fields
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    authors: Mapped[Optional[str]] = mapped_column(Text)  # JSON array, ordered
    status: Mapped[str] = mapped_column(
        String(20), default=BookStatus.WANT_TO_READ.value, index=True
    )

    # Progress
    current_page: Mapped[int] = mapped_column(Integer, default=0)
    page_count: Mapped[Optional[int]] = mapped_column(Integer)
    rating: Mapped[Optional[int]] = mapped_column(Integer)

    # Timestamps (ISO 8601, UTC)
    added_at: Mapped[str] = mapped_column(String(32), default=_now_iso)
    finished_at: Mapped[Optional[str]] = mapped_column(String(32))

    genres: Mapped[Optional[str]] = mapped_column(Text)  # JSON array

    def __repr__(self) -> str:
        return f"<Book(id={self.id}, title={self.title}, status={self.status})>"

    def get_authors(self) -> list[str]:
        """Get authors as list."""
        if self.authors:
            return json.loads(self.authors)
        return []

    def set_authors(self, authors: list[str]) -> None:
        """Set authors from list."""
        self.authors = json.dumps(authors) if authors else None

    def get_genres(self) -> list[str]:
        """Get genres as list."""
        if self.genres:
            return json.loads(self.genres)
        return []

    def set_genres(self, genres: list[str]) -> None:
        """Set genres from list."""
        self.genres = json.dumps(genres) if genres else None


class Goal(Base):
    """Goal model - reading targets over a date window."""

    __tablename__ = "goals"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)

    target_books: Mapped[int] = mapped_column(Integer, nullable=False)
    current_books: Mapped[int] = mapped_column(Integer, default=0)

    start_date: Mapped[str] = mapped_column(String(32), nullable=False)
    end_date: Mapped[str] = mapped_column(String(32), nullable=False)

    completed: Mapped[bool] = mapped_column(Boolean, default=False)

    # Compare-and-set guard for concurrent writers
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    updated_at: Mapped[str] = mapped_column(
        String(32), default=_now_iso, onupdate=_now_iso
    )

    def __repr__(self) -> str:
        return f"<Goal(id={self.id}, {self.current_books}/{self.target_books})>"


class ReadingActivity(Base):
    """Reading activity model - several rows may share a day."""

    __tablename__ = "reading_activities"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    activity_date: Mapped[str] = mapped_column(String(10), nullable=False, index=True)  # ISO date
    minutes_read: Mapped[int] = mapped_column(Integer, default=0)
    pages_read: Mapped[int] = mapped_column(Integer, default=0)
    book_id: Mapped[Optional[str]] = mapped_column(String(36))

    created_at: Mapped[str] = mapped_column(String(32), default=_now_iso)

    def __repr__(self) -> str:
        return f"<ReadingActivity(date={self.activity_date}, minutes={self.minutes_read})>"


class ReadingSession(Base):
    """Reading session model - end_time is NULL while the session is open."""

    __tablename__ = "reading_sessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    book_id: Mapped[Optional[str]] = mapped_column(String(36), index=True)

    start_time: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    end_time: Mapped[Optional[str]] = mapped_column(String(32))
    duration_minutes: Mapped[Optional[int]] = mapped_column(Integer)
    pages_read: Mapped[Optional[int]] = mapped_column(Integer)
    notes: Mapped[Optional[str]] = mapped_column(Text)

    created_at: Mapped[str] = mapped_column(String(32), default=_now_iso)

    def __repr__(self) -> str:
        return f"<ReadingSession(id={self.id}, start={self.start_time}, end={self.end_time})>"

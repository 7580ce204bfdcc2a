"""Pydantic schemas for reading and session statistics."""

from pydantic import BaseModel, Field

from ..db.schemas import Book


class ReadingStatistics(BaseModel):
    """Library-wide counts for one user."""

    total: int = 0
    want_to_read: int = 0
    reading: int = 0
    read: int = 0
    total_pages_read: int = 0  # Page counts of finished books
    average_rating: float = 0.0
    currently_reading: list[Book] = Field(default_factory=list)


class SessionStatistics(BaseModel):
    """Totals over ended reading sessions."""

    total_sessions: int = 0
    total_minutes: int = 0
    total_pages: int = 0
    average_session_length: int = 0  # Minutes
    longest_session: int = 0  # Minutes
    sessions_this_week: int = 0
    minutes_this_week: int = 0

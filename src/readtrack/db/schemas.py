"""Pydantic schemas for the reading-progress engine.

Entities (Book, Goal, ReadingActivity) are what repositories hand to the
engine. Updates (BookUpdate, GoalUpdate) are patches: only the fields that
were explicitly set are applied, so ``BookUpdate(rating=None)`` clears the
rating while ``BookUpdate()`` leaves it alone.
"""

from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator, model_validator


class BookStatus(str, Enum):
    """Reading lifecycle stage of a book."""

    WANT_TO_READ = "want-to-read"
    READING = "reading"
    READ = "read"


def generate_id() -> str:
    """Generate a UUID string for entity ids."""
    return str(uuid4())


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# ============================================================================
# Book Schemas
# ============================================================================


class Book(BaseModel):
    """A cataloged book owned by one user."""

    id: str = Field(default_factory=generate_id)
    user_id: str = Field(..., min_length=1)
    external_id: Optional[str] = Field(None, description="Catalog id, e.g. Google Books")
    title: str = Field(..., min_length=1)
    authors: list[str] = Field(default_factory=list)
    status: BookStatus = Field(default=BookStatus.WANT_TO_READ)
    current_page: int = Field(0, ge=0)
    page_count: Optional[int] = Field(None, gt=0)
    rating: Optional[int] = Field(None, ge=1, le=5, description="Rating 1-5")
    added_at: datetime = Field(default_factory=utcnow)
    finished_at: Optional[datetime] = None
    genres: list[str] = Field(default_factory=list)

    @field_validator("added_at", "finished_at")
    @classmethod
    def _ensure_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)

    @field_validator("genres")
    @classmethod
    def _normalize_genres(cls, value: list[str]) -> list[str]:
        # Genres are a set; keep a stable order for storage and comparison
        return sorted({g.strip() for g in value if g and g.strip()})

    @model_validator(mode="after")
    def _check_invariants(self) -> "Book":
        if self.status != BookStatus.READ:
            if self.rating is not None:
                raise ValueError("rating is only allowed on finished books")
            if self.finished_at is not None:
                raise ValueError("finished_at is only allowed on finished books")
        if self.page_count is not None and self.current_page > self.page_count:
            raise ValueError(
                f"current_page ({self.current_page}) cannot exceed page_count ({self.page_count})"
            )
        return self

    @property
    def is_finished(self) -> bool:
        return self.status == BookStatus.READ

    def apply(self, update: "BookUpdate") -> "Book":
        """Return a new, re-validated book with the patch applied."""
        data = self.model_dump()
        data.update(update.model_dump(exclude_unset=True))
        return Book.model_validate(data)


class BookUpdate(BaseModel):
    """Partial update for a book; unset fields are left untouched."""

    title: Optional[str] = Field(None, min_length=1)
    authors: Optional[list[str]] = None
    status: Optional[BookStatus] = None
    current_page: Optional[int] = Field(None, ge=0)
    page_count: Optional[int] = Field(None, gt=0)
    rating: Optional[int] = Field(None, ge=1, le=5)
    finished_at: Optional[datetime] = None
    genres: Optional[list[str]] = None

    def changes(self) -> dict:
        """Fields explicitly set on this patch."""
        return self.model_dump(exclude_unset=True)


# ============================================================================
# Goal Schemas
# ============================================================================


class Goal(BaseModel):
    """A time-boxed reading goal.

    Plain dates are accepted for the window: a start date means the start of
    that day, an end date means the very end of that day, both in UTC.
    """

    id: str = Field(default_factory=generate_id)
    user_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    target_books: int = Field(..., gt=0)
    current_books: int = Field(0, ge=0)
    start_date: datetime
    end_date: datetime
    completed: bool = False
    version: int = Field(0, ge=0, description="Bumped by the repository on every update")

    @field_validator("start_date", mode="before")
    @classmethod
    def _start_of_day(cls, value):
        if isinstance(value, date) and not isinstance(value, datetime):
            return datetime.combine(value, time.min, tzinfo=timezone.utc)
        return value

    @field_validator("end_date", mode="before")
    @classmethod
    def _end_of_day(cls, value):
        if isinstance(value, date) and not isinstance(value, datetime):
            return datetime.combine(value, time.max, tzinfo=timezone.utc)
        return value

    @field_validator("start_date", "end_date")
    @classmethod
    def _ensure_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @model_validator(mode="after")
    def _check_window(self) -> "Goal":
        if self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self

    def contains(self, moment: datetime) -> bool:
        """Whether a moment falls inside the inclusive goal window."""
        return self.start_date <= as_utc(moment) <= self.end_date

    def apply(self, update: "GoalUpdate") -> "Goal":
        """Return a new, re-validated goal with the patch applied."""
        data = self.model_dump()
        data.update(update.model_dump(exclude_unset=True))
        return Goal.model_validate(data)


class GoalUpdate(BaseModel):
    """Partial update for a goal; unset fields are left untouched."""

    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    target_books: Optional[int] = Field(None, gt=0)
    current_books: Optional[int] = Field(None, ge=0)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    completed: Optional[bool] = None

    def changes(self) -> dict:
        """Fields explicitly set on this patch."""
        return self.model_dump(exclude_unset=True)


# ============================================================================
# Reading Activity Schemas
# ============================================================================


class ReadingActivity(BaseModel):
    """A logged reading session or progress entry, at day granularity."""

    id: str = Field(default_factory=generate_id)
    user_id: str = Field(..., min_length=1)
    activity_date: date
    minutes_read: int = Field(0, ge=0)
    pages_read: int = Field(0, ge=0)
    book_id: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)

    @field_validator("activity_date", mode="before")
    @classmethod
    def _truncate_to_day(cls, value):
        # Time of day is ignored
        if isinstance(value, datetime):
            return value.date()
        return value


# ============================================================================
# Reading Session Schemas
# ============================================================================


class ReadingSession(BaseModel):
    """A timed reading session; active until it has an end time."""

    id: str = Field(default_factory=generate_id)
    user_id: str = Field(..., min_length=1)
    book_id: Optional[str] = None
    start_time: datetime = Field(default_factory=utcnow)
    end_time: Optional[datetime] = None
    duration_minutes: Optional[int] = Field(None, ge=0)
    pages_read: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)

    @field_validator("start_time", "end_time", "created_at")
    @classmethod
    def _normalize_to_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # Always UTC; repositories filter sessions on the UTC day of start_time
        return as_utc(value).astimezone(timezone.utc) if value else value

    @model_validator(mode="after")
    def _check_end(self) -> "ReadingSession":
        if self.end_time is not None and self.end_time < self.start_time:
            raise ValueError("end_time cannot be before start_time")
        return self

    @property
    def is_active(self) -> bool:
        return self.end_time is None

    def apply(self, update: "ReadingSessionUpdate") -> "ReadingSession":
        """Return a new, re-validated session with the patch applied."""
        data = self.model_dump()
        data.update(update.model_dump(exclude_unset=True))
        return ReadingSession.model_validate(data)


class ReadingSessionUpdate(BaseModel):
    """Fields written when a session ends."""

    end_time: Optional[datetime] = None
    duration_minutes: Optional[int] = Field(None, ge=0)
    pages_read: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None

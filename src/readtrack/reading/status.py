"""Reading status transitions.

Decides which status changes are legal for a book and computes the patch
that a change implies (finish date, page reset, rating removal).
"""

import logging
from datetime import datetime
from typing import Optional

from ..db.schemas import Book, BookStatus, BookUpdate, utcnow
from ..errors import ValidationError

logger = logging.getLogger(__name__)


# Directed graph of legal status changes; no self-loops
VALID_TRANSITIONS: dict[BookStatus, frozenset[BookStatus]] = {
    BookStatus.WANT_TO_READ: frozenset({BookStatus.READING, BookStatus.READ}),
    BookStatus.READING: frozenset({BookStatus.WANT_TO_READ, BookStatus.READ}),
    BookStatus.READ: frozenset({BookStatus.READING, BookStatus.WANT_TO_READ}),
}

MIN_RATING = 1
MAX_RATING = 5


class StatusTransitionPolicy:
    """Validates status changes and the fields tied to them."""

    @staticmethod
    def can_transition(current: BookStatus, new_status: BookStatus) -> bool:
        """Check whether ``current -> new_status`` is a legal transition."""
        return new_status in VALID_TRANSITIONS.get(current, frozenset())

    def transition(
        self,
        book: Book,
        new_status: BookStatus,
        now: Optional[datetime] = None,
    ) -> BookUpdate:
        """Compute the patch for moving a book to a new status.

        Args:
            book: Book in its current state (not modified)
            new_status: Requested status
            now: Timestamp used for ``finished_at`` (default: current UTC time)

        Returns:
            BookUpdate containing only the fields that change

        Raises:
            ValidationError: If the transition is not allowed
        """
        if not self.can_transition(book.status, new_status):
            raise ValidationError(
                f"Cannot transition from {book.status.value} to {new_status.value}",
                field="status",
            )

        changes: dict = {"status": new_status}

        if new_status == BookStatus.READ and book.finished_at is None:
            changes["finished_at"] = now or utcnow()
            if book.page_count:
                changes["current_page"] = book.page_count

        if book.status == BookStatus.READ and new_status != BookStatus.READ:
            # A rating only lives on a finished book
            changes["finished_at"] = None
            changes["rating"] = None

        if new_status == BookStatus.WANT_TO_READ:
            changes["current_page"] = 0

        logger.debug(
            "Book %s: %s -> %s (%s)",
            book.id,
            book.status.value,
            new_status.value,
            ", ".join(sorted(changes)),
        )
        return BookUpdate(**changes)

    @staticmethod
    def can_be_rated(book: Book) -> bool:
        return book.status == BookStatus.READ

    def validate_rating(self, book: Book, rating: int) -> None:
        """Raise ValidationError unless ``rating`` may be set on ``book``."""
        if not self.can_be_rated(book):
            raise ValidationError("Only finished books can be rated", field="rating")

        if isinstance(rating, bool) or not isinstance(rating, int):
            raise ValidationError("Rating must be an integer", field="rating")

        if rating < MIN_RATING or rating > MAX_RATING:
            raise ValidationError(
                f"Rating must be between {MIN_RATING} and {MAX_RATING}", field="rating"
            )

    @staticmethod
    def validate_page_progress(book: Book, current_page: int) -> None:
        """Raise ValidationError if ``current_page`` is out of bounds for ``book``."""
        if current_page < 0:
            raise ValidationError("Current page cannot be negative", field="current_page")

        if book.page_count and current_page > book.page_count:
            raise ValidationError(
                f"Current page ({current_page}) cannot exceed total pages ({book.page_count})",
                field="current_page",
            )

    @staticmethod
    def should_auto_mark_as_read(book: Book) -> bool:
        """Whether the book's progress has reached its last page while reading.

        Acting on this is up to the caller.
        """
        return (
            book.status == BookStatus.READING
            and book.page_count is not None
            and book.current_page >= book.page_count
        )

    @staticmethod
    def reading_progress(book: Book) -> int:
        """Percentage of the book read, 0-100."""
        if not book.page_count:
            return 0
        return min(100, round(book.current_page / book.page_count * 100))

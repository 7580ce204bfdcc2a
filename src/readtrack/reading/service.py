"""Book use cases built on the status policy.

Whenever a book enters or leaves the finished state, the user's goals are
re-synced so their counts follow.
"""

import logging
from datetime import datetime
from typing import Optional

from ..db.schemas import Book, BookStatus, BookUpdate
from ..errors import NotFoundError, UnauthorizedError
from ..goals.sync import GoalSyncService
from ..repositories.base import BookRepository
from .schemas import ReadingStatistics
from .status import StatusTransitionPolicy

logger = logging.getLogger(__name__)


class BookService:
    """Status changes, page progress and ratings for a user's books."""

    def __init__(
        self,
        book_repository: BookRepository,
        goal_sync: Optional[GoalSyncService] = None,
        policy: Optional[StatusTransitionPolicy] = None,
    ):
        """Initialize book service.

        Args:
            book_repository: Where books are loaded from and saved to
            goal_sync: Goal sync to run when a book's finished state changes
            policy: Status transition policy
        """
        self.book_repository = book_repository
        self.goal_sync = goal_sync
        self.policy = policy or StatusTransitionPolicy()

    def _load_owned_book(self, book_id: str, user_id: str) -> Book:
        book = self.book_repository.get(book_id)

        if book is None:
            raise NotFoundError("Book", book_id)

        if book.user_id != user_id:
            raise UnauthorizedError("You do not own this book")

        return book

    def _save(self, book: Book, update: BookUpdate) -> Book:
        updated = self.book_repository.update(book.id, update)

        if updated is None:
            raise NotFoundError("Book", book.id)

        if self.goal_sync and book.is_finished != updated.is_finished:
            logger.info("Book %s finished state changed, syncing goals", book.id)
            self.goal_sync.sync_all_goals(updated.user_id)

        return updated

    def update_status(
        self,
        book_id: str,
        user_id: str,
        new_status: BookStatus,
        now: Optional[datetime] = None,
    ) -> Book:
        """Move a book to a new status and persist the resulting patch."""
        book = self._load_owned_book(book_id, user_id)
        update = self.policy.transition(book, new_status, now=now)
        return self._save(book, update)

    def update_reading_progress(
        self,
        book_id: str,
        user_id: str,
        current_page: int,
        now: Optional[datetime] = None,
    ) -> Book:
        """Record the current page, finishing the book when the last page is reached."""
        book = self._load_owned_book(book_id, user_id)
        self.policy.validate_page_progress(book, current_page)

        changes = {"current_page": current_page}
        progressed = book.model_copy(update=changes)

        if self.policy.should_auto_mark_as_read(progressed):
            finish = self.policy.transition(progressed, BookStatus.READ, now=now)
            changes.update(finish.changes())

        return self._save(book, BookUpdate(**changes))

    def rate_book(self, book_id: str, user_id: str, rating: int) -> Book:
        book = self._load_owned_book(book_id, user_id)
        self.policy.validate_rating(book, rating)
        return self._save(book, BookUpdate(rating=rating))

    def get_reading_statistics(self, user_id: str) -> ReadingStatistics:
        """Count a user's books by status, with pages and average rating."""
        books = self.book_repository.find_by_user(user_id)
        stats = ReadingStatistics(total=len(books))

        ratings = []
        for book in books:
            if book.status == BookStatus.WANT_TO_READ:
                stats.want_to_read += 1
            elif book.status == BookStatus.READING:
                stats.reading += 1
                stats.currently_reading.append(book)
            elif book.status == BookStatus.READ:
                stats.read += 1
                if book.page_count:
                    stats.total_pages_read += book.page_count
                if book.rating:
                    ratings.append(book.rating)

        if ratings:
            stats.average_rating = round(sum(ratings) / len(ratings), 1)

        return stats

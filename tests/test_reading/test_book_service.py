"""Tests for BookService."""

from datetime import datetime, timezone

import pytest

from readtrack.db.schemas import BookStatus
from readtrack.errors import NotFoundError, UnauthorizedError, ValidationError
from readtrack.reading import BookService

from conftest import NOW, OTHER_USER_ID, USER_ID

JAN_15 = datetime(2025, 1, 15, 9, 0, tzinfo=timezone.utc)


class TestUpdateStatus:
    """Tests for status changes through the service."""

    def test_persists_patch(self, book_service, book_repo, make_book):
        book = book_repo.add(make_book(status=BookStatus.READING, current_page=10))

        updated = book_service.update_status(book.id, USER_ID, BookStatus.READ, now=NOW)

        assert updated.status == BookStatus.READ
        assert updated.finished_at == NOW
        assert updated.current_page == 300
        assert book_repo.get(book.id) == updated

    def test_missing_book(self, book_service):
        with pytest.raises(NotFoundError, match="Book with id nope not found"):
            book_service.update_status("nope", USER_ID, BookStatus.READING)

    def test_other_users_book(self, book_service, book_repo, make_book):
        book = book_repo.add(make_book())

        with pytest.raises(UnauthorizedError):
            book_service.update_status(book.id, OTHER_USER_ID, BookStatus.READING)

        assert book_repo.get(book.id).status == BookStatus.WANT_TO_READ

    def test_illegal_transition_leaves_book(self, book_service, book_repo, make_book):
        book = book_repo.add(make_book(status=BookStatus.READING, current_page=10))

        with pytest.raises(ValidationError):
            book_service.update_status(book.id, USER_ID, BookStatus.READING)

        assert book_repo.get(book.id) == book

    def test_finishing_syncs_goals(self, book_service, book_repo, goal_repo, make_book, make_goal):
        goal = goal_repo.add(make_goal(target_books=1))
        book = book_repo.add(make_book(status=BookStatus.READING))

        book_service.update_status(book.id, USER_ID, BookStatus.READ, now=JAN_15)

        synced = goal_repo.get(goal.id)
        assert synced.current_books == 1
        assert synced.completed is True

    def test_unfinishing_syncs_goals(self, book_service, book_repo, goal_repo, make_book, make_goal):
        goal = goal_repo.add(make_goal(target_books=3, current_books=1))
        book = book_repo.add(make_book(status=BookStatus.READ, finished_at=JAN_15))

        book_service.update_status(book.id, USER_ID, BookStatus.READING)

        assert goal_repo.get(goal.id).current_books == 0

    def test_without_goal_sync(self, book_repo, goal_repo, make_book, make_goal):
        service = BookService(book_repo)
        goal = goal_repo.add(make_goal(target_books=1))
        book = book_repo.add(make_book(status=BookStatus.READING))

        service.update_status(book.id, USER_ID, BookStatus.READ, now=JAN_15)

        assert goal_repo.get(goal.id).current_books == 0


class TestUpdateReadingProgress:
    """Tests for page progress updates."""

    def test_records_page(self, book_service, book_repo, make_book):
        book = book_repo.add(make_book(status=BookStatus.READING))

        updated = book_service.update_reading_progress(book.id, USER_ID, 150)

        assert updated.current_page == 150
        assert updated.status == BookStatus.READING

    def test_last_page_finishes_book(self, book_service, book_repo, goal_repo, make_book, make_goal):
        goal = goal_repo.add(make_goal(target_books=2))
        book = book_repo.add(make_book(status=BookStatus.READING, current_page=280))

        updated = book_service.update_reading_progress(book.id, USER_ID, 300, now=JAN_15)

        assert updated.status == BookStatus.READ
        assert updated.finished_at == JAN_15
        assert updated.current_page == 300
        assert goal_repo.get(goal.id).current_books == 1

    def test_out_of_bounds(self, book_service, book_repo, make_book):
        book = book_repo.add(make_book(status=BookStatus.READING))

        with pytest.raises(ValidationError) as exc_info:
            book_service.update_reading_progress(book.id, USER_ID, 301)

        assert exc_info.value.field == "current_page"
        assert book_repo.get(book.id).current_page == 0


class TestRateBook:
    """Tests for rating books."""

    def test_rate_finished_book(self, book_service, book_repo, make_book):
        book = book_repo.add(make_book(status=BookStatus.READ))

        assert book_service.rate_book(book.id, USER_ID, 4).rating == 4

    def test_rate_unfinished_book(self, book_service, book_repo, make_book):
        book = book_repo.add(make_book(status=BookStatus.READING))

        with pytest.raises(ValidationError, match="Only finished books"):
            book_service.rate_book(book.id, USER_ID, 4)


class TestReadingStatistics:
    """Tests for library statistics."""

    def test_counts(self, book_service, book_repo, make_book):
        book_repo.add(make_book(status=BookStatus.WANT_TO_READ))
        reading = book_repo.add(make_book(status=BookStatus.READING))
        book_repo.add(make_book(status=BookStatus.READ, rating=4, page_count=200))
        book_repo.add(make_book(status=BookStatus.READ, rating=5, page_count=100))
        book_repo.add(make_book(status=BookStatus.READ, page_count=None))
        book_repo.add(make_book(user_id=OTHER_USER_ID, status=BookStatus.READ, rating=1))

        stats = book_service.get_reading_statistics(USER_ID)

        assert stats.total == 5
        assert stats.want_to_read == 1
        assert stats.reading == 1
        assert stats.read == 3
        assert stats.total_pages_read == 300
        assert stats.average_rating == 4.5
        assert [b.id for b in stats.currently_reading] == [reading.id]

    def test_empty_library(self, book_service):
        stats = book_service.get_reading_statistics(USER_ID)

        assert stats.total == 0
        assert stats.average_rating == 0.0

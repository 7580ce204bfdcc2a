"""Reading status lifecycle, book use cases and reading sessions."""

from .schemas import ReadingStatistics, SessionStatistics
from .service import BookService
from .session import SessionService
from .status import VALID_TRANSITIONS, StatusTransitionPolicy

__all__ = [
    "ReadingStatistics",
    "SessionStatistics",
    "BookService",
    "SessionService",
    "StatusTransitionPolicy",
    "VALID_TRANSITIONS",
]

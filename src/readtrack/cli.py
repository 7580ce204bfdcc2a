"""Command-line interface for readtrack.

Built with Typer for commands and Rich for output.
"""

import logging
from datetime import datetime
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from . import __version__
from .config import get_config
from .db import get_db
from .db.schemas import Book, BookStatus, Goal
from .errors import DomainError
from .goals import GoalSyncService
from .reading import BookService, SessionService, StatusTransitionPolicy
from .repositories import (
    SqlBookRepository,
    SqlGoalRepository,
    SqlReadingActivityRepository,
    SqlReadingSessionRepository,
)
from .streaks import StreakCategory, StreakService

# Create the main app
app = typer.Typer(
    name="readtrack",
    help="Track your reading: books, goals and streaks.",
    no_args_is_help=True,
)

# Sub-apps for command groups
book_app = typer.Typer(help="Manage books and their reading status.")
app.add_typer(book_app, name="book")

goal_app = typer.Typer(help="Manage time-boxed reading goals.")
app.add_typer(goal_app, name="goal")

session_app = typer.Typer(help="Time reading sessions.")
app.add_typer(session_app, name="session")

# Rich console for pretty output
console = Console()

DATE_FORMATS = ["%Y-%m-%d"]


# ============================================================================
# Helper Functions
# ============================================================================


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[bold red]Error:[/bold red] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[bold green]Success:[/bold green] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[bold yellow]Warning:[/bold yellow] {message}")


def _book_service() -> BookService:
    db = get_db(str(get_config().db_path))
    books = SqlBookRepository(db)
    return BookService(books, goal_sync=GoalSyncService(SqlGoalRepository(db), books))


def _goal_service() -> GoalSyncService:
    db = get_db(str(get_config().db_path))
    return GoalSyncService(SqlGoalRepository(db), SqlBookRepository(db))


def _streak_service() -> StreakService:
    return StreakService(SqlReadingActivityRepository(get_db(str(get_config().db_path))))


def _session_service() -> SessionService:
    db = get_db(str(get_config().db_path))
    return SessionService(SqlReadingSessionRepository(db), SqlReadingActivityRepository(db))


def _resolve_book(service: BookService, user_id: str, book_id: str) -> Book:
    """Find a book by id or unique id prefix."""
    books = service.book_repository.find_by_user(user_id)
    matches = [b for b in books if b.id.startswith(book_id)]
    if len(matches) != 1:
        if matches:
            print_error(f"Ambiguous book id: {book_id}")
        else:
            print_error(f"No book found with id: {book_id}")
        raise typer.Exit(1)
    return matches[0]


def format_book_table(books: list[Book], title: str = "Books") -> Table:
    """Create a rich table for displaying books."""
    policy = StatusTransitionPolicy()
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim")
    table.add_column("Title", style="cyan", no_wrap=False, max_width=40)
    table.add_column("Authors", style="green", max_width=25)
    table.add_column("Status", style="yellow")
    table.add_column("Rating", justify="center")
    table.add_column("Progress", justify="center")

    for book in books:
        rating = "★" * book.rating + "☆" * (5 - book.rating) if book.rating else "-"
        progress = f"{policy.reading_progress(book)}%" if book.page_count else "-"
        table.add_row(
            book.id[:8],
            book.title,
            ", ".join(book.authors) or "-",
            book.status.value,
            rating,
            progress,
        )

    return table


@app.callback()
def main() -> None:
    """Validate configuration and set up logging."""
    config = get_config()

    errors = config.validate()
    if errors:
        for error in errors:
            print_error(error)
        raise typer.Exit(1)

    logging.basicConfig(
        level=config.log_level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


# ============================================================================
# Book Commands
# ============================================================================


@book_app.command("add")
def book_add(
    title: str = typer.Option(..., "--title", "-t", prompt="Book title"),
    author: Optional[list[str]] = typer.Option(None, "--author", "-a", help="Author (repeatable)"),
    pages: Optional[int] = typer.Option(None, "--pages", "-p", min=1, help="Page count"),
    genre: Optional[list[str]] = typer.Option(None, "--genre", "-g", help="Genre (repeatable)"),
    external_id: Optional[str] = typer.Option(None, "--external-id", help="Catalog id"),
) -> None:
    """Add a book to the want-to-read shelf."""
    service = _book_service()
    book = Book(
        user_id=get_config().user_id,
        title=title,
        authors=author or [],
        page_count=pages,
        genres=genre or [],
        external_id=external_id,
    )
    service.book_repository.add(book)
    print_success(f"Added: {book.title} ({book.id[:8]})")


@book_app.command("list")
def book_list(
    status: Optional[BookStatus] = typer.Option(None, "--status", "-s", help="Filter by status"),
) -> None:
    """List books, optionally filtered by status."""
    service = _book_service()
    user_id = get_config().user_id

    if status:
        books = service.book_repository.find_by_status(user_id, status)
        title = f"Books - {status.value}"
    else:
        books = service.book_repository.find_by_user(user_id)
        title = "All Books"

    if not books:
        console.print("[dim]No books found.[/dim]")
        return

    console.print(format_book_table(books, title=title))


@book_app.command("status")
def book_status(
    book_id: str = typer.Argument(..., help="Book id or id prefix"),
    status: BookStatus = typer.Argument(..., help="New status"),
) -> None:
    """Move a book to a new reading status."""
    service = _book_service()
    user_id = get_config().user_id
    book = _resolve_book(service, user_id, book_id)

    try:
        updated = service.update_status(book.id, user_id, status)
    except DomainError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"{updated.title}: {book.status.value} -> {updated.status.value}")


@book_app.command("progress")
def book_progress(
    book_id: str = typer.Argument(..., help="Book id or id prefix"),
    page: int = typer.Argument(..., help="Current page"),
) -> None:
    """Record the page you are on."""
    service = _book_service()
    user_id = get_config().user_id
    book = _resolve_book(service, user_id, book_id)

    try:
        updated = service.update_reading_progress(book.id, user_id, page)
    except DomainError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"{updated.title}: page {updated.current_page}")
    if updated.status == BookStatus.READ and book.status != BookStatus.READ:
        console.print("[bold]Finished! Marked as read.[/bold]")


@book_app.command("rate")
def book_rate(
    book_id: str = typer.Argument(..., help="Book id or id prefix"),
    rating: int = typer.Argument(..., help="Rating 1-5"),
) -> None:
    """Rate a finished book."""
    service = _book_service()
    user_id = get_config().user_id
    book = _resolve_book(service, user_id, book_id)

    try:
        updated = service.rate_book(book.id, user_id, rating)
    except DomainError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"Rated {updated.title}: {'★' * rating}")


@book_app.command("stats")
def book_stats() -> None:
    """Show library statistics."""
    stats = _book_service().get_reading_statistics(get_config().user_id)

    table = Table(title="Library", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Total books", str(stats.total))
    table.add_row("Want to read", str(stats.want_to_read))
    table.add_row("Reading", str(stats.reading))
    table.add_row("Read", str(stats.read))
    table.add_row("Pages read", str(stats.total_pages_read))
    table.add_row("Average rating", f"{stats.average_rating:.1f}" if stats.average_rating else "-")
    console.print(table)


# ============================================================================
# Goal Commands
# ============================================================================


@goal_app.command("add")
def goal_add(
    title: str = typer.Option(..., "--title", "-t", prompt="Goal title"),
    target: int = typer.Option(..., "--target", "-n", min=1, help="Books to read"),
    start: datetime = typer.Option(..., "--start", formats=DATE_FORMATS, help="First day"),
    end: datetime = typer.Option(..., "--end", formats=DATE_FORMATS, help="Last day"),
    description: Optional[str] = typer.Option(None, "--description", "-d"),
) -> None:
    """Create a goal and count books already finished in its window."""
    service = _goal_service()
    user_id = get_config().user_id

    if end.date() < start.date():
        print_error("End date must not be before start date")
        raise typer.Exit(1)

    goal = Goal(
        user_id=user_id,
        title=title,
        description=description,
        target_books=target,
        start_date=start.date(),
        end_date=end.date(),
    )
    service.goal_repository.add(goal)
    goal = service.sync_goal_progress(goal.id, user_id)
    print_success(f"Goal created: {goal.title} ({goal.current_books}/{goal.target_books})")


@goal_app.command("list")
def goal_list() -> None:
    """List goals with their progress."""
    goals = _goal_service().get_all_goals_with_progress(get_config().user_id)

    if not goals:
        console.print("[dim]No goals yet.[/dim]")
        return

    table = Table(title="Reading Goals", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim")
    table.add_column("Title", style="cyan")
    table.add_column("Books", justify="center")
    table.add_column("Progress", justify="right")
    table.add_column("Days left", justify="right")
    table.add_column("Status", style="yellow")

    for item in goals:
        goal, progress = item.goal, item.progress
        table.add_row(
            goal.id[:8],
            goal.title,
            f"{goal.current_books}/{goal.target_books}",
            f"{progress.percentage}%",
            str(progress.days_remaining),
            progress.status.value,
        )

    console.print(table)


@goal_app.command("sync")
def goal_sync() -> None:
    """Recount every goal from your finished books."""
    try:
        goals = _goal_service().sync_all_goals(get_config().user_id)
    except DomainError as e:
        print_error(str(e))
        raise typer.Exit(1)

    if not goals:
        print_warning("No goals to sync. Create one with 'readtrack goal add'.")
        return

    for goal in goals:
        console.print(f"  {goal.title}: {goal.current_books}/{goal.target_books}")
    print_success(f"Synced {len(goals)} goal(s)")


@goal_app.command("stats")
def goal_stats() -> None:
    """Show goal statistics."""
    stats = _goal_service().get_goal_statistics(get_config().user_id)
    console.print(
        f"[bold]{stats.total}[/bold] goals: "
        f"{stats.completed} completed, {stats.in_progress} in progress, "
        f"{stats.not_started} not started, {stats.overdue} overdue"
    )
    console.print(f"Books read toward goals: {stats.total_books_read}/{stats.total_books_target}")


# ============================================================================
# Session Commands
# ============================================================================


@session_app.command("start")
def session_start(
    book_id: Optional[str] = typer.Option(None, "--book", "-b", help="Book id or id prefix"),
) -> None:
    """Start timing a reading session."""
    user_id = get_config().user_id
    if book_id:
        book_id = _resolve_book(_book_service(), user_id, book_id).id

    try:
        session = _session_service().start_session(user_id, book_id=book_id)
    except DomainError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"Session started ({session.id[:8]})")


@session_app.command("end")
def session_end(
    pages: Optional[int] = typer.Option(None, "--pages", "-p", min=0, help="Pages read"),
    notes: Optional[str] = typer.Option(None, "--notes", "-n", help="Session notes"),
) -> None:
    """End the active session and log it."""
    service = _session_service()
    user_id = get_config().user_id

    active = service.get_active_session(user_id)
    if active is None:
        print_error("No active reading session")
        raise typer.Exit(1)

    try:
        session = service.end_session(active.id, user_id, pages_read=pages, notes=notes)
    except DomainError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"Session ended: {session.duration_minutes} min")


@session_app.command("list")
def session_list(
    limit: int = typer.Option(10, "--limit", "-l", min=1, help="Sessions to show"),
) -> None:
    """List recent reading sessions."""
    sessions = _session_service().get_user_sessions(get_config().user_id, limit=limit)

    if not sessions:
        console.print("[dim]No sessions yet.[/dim]")
        return

    table = Table(title="Reading Sessions", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim")
    table.add_column("Started", style="cyan")
    table.add_column("Minutes", justify="right")
    table.add_column("Pages", justify="right")
    table.add_column("Notes", max_width=30)

    for session in sessions:
        table.add_row(
            session.id[:8],
            session.start_time.strftime("%Y-%m-%d %H:%M"),
            "active" if session.is_active else str(session.duration_minutes),
            str(session.pages_read) if session.pages_read is not None else "-",
            session.notes or "",
        )

    console.print(table)


@session_app.command("stats")
def session_stats() -> None:
    """Show session statistics."""
    stats = _session_service().get_session_statistics(get_config().user_id)
    console.print(
        f"[bold]{stats.total_sessions}[/bold] sessions, {stats.total_minutes} min, "
        f"{stats.total_pages} pages"
    )
    console.print(
        f"Average {stats.average_session_length} min, longest {stats.longest_session} min"
    )
    console.print(
        f"Last 7 days: {stats.sessions_this_week} sessions, {stats.minutes_this_week} min"
    )


# ============================================================================
# Activity & Streak Commands
# ============================================================================


@app.command()
def log(
    minutes: int = typer.Option(0, "--minutes", "-m", min=0, help="Minutes read"),
    pages: int = typer.Option(0, "--pages", "-p", min=0, help="Pages read"),
    book_id: Optional[str] = typer.Option(None, "--book", "-b", help="Book id"),
    on: Optional[datetime] = typer.Option(None, "--date", formats=DATE_FORMATS, help="Day"),
) -> None:
    """Log a reading session."""
    service = _streak_service()

    try:
        activity = service.record_activity(
            get_config().user_id,
            minutes_read=minutes,
            pages_read=pages,
            book_id=book_id,
            activity_date=on.date() if on else None,
        )
    except DomainError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(
        f"Logged {activity.minutes_read} min, {activity.pages_read} pages "
        f"on {activity.activity_date.isoformat()}"
    )


@app.command()
def streak() -> None:
    """Show your reading streak."""
    result = _streak_service().get_user_streak(get_config().user_id)

    style = {
        StreakCategory.NO_ACTIVITY: "dim",
        StreakCategory.AT_RISK: "bold yellow",
        StreakCategory.BUILDING: "green",
        StreakCategory.LONG_RUNNING: "bold green",
    }[result.category]

    console.print(f"Current streak: [bold]{result.current_streak}[/bold] day(s)")
    console.print(f"Longest streak: {result.longest_streak} day(s)")
    console.print(f"Days read: {result.total_days_read}")
    if result.last_activity_date:
        console.print(f"Last activity: {result.last_activity_date.isoformat()}")
    console.print(f"[{style}]{result.message}[/{style}]")


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"readtrack version {__version__}")


if __name__ == "__main__":
    app()

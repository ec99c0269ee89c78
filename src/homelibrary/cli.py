"""Command-line interface for homelibrary.

Built with Typer for commands and Rich for beautiful output.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .catalog import CatalogManager
from .config import Config, get_config
from .db.schemas import BookCreate, BookStatus, BookUpdate, STATUS_FILTER_ALL
from .db.sqlite import Database
from .lending import LendingManager, LendRequest, ReturnRequest
from .results import Err, ErrorKind
from .search import BookPage, BookQuery, SearchManager
from .stats import LibraryAnalytics
from .timeutil import from_storage, utcnow

# Create the main app
app = typer.Typer(
    name="homelibrary",
    help="Keep track of your books, your wishlist and who borrowed what.",
    no_args_is_help=True,
)

# Rich console for pretty output
console = Console()

DATE_FORMATS = ["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M:%S"]


# ============================================================================
# Helper Functions
# ============================================================================


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[bold red]Error:[/bold red] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[bold green]Success:[/bold green] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[dim]{message}[/dim]")


def open_db(config: Optional[Config] = None) -> Database:
    """Open the configured database, creating tables if needed."""
    config = config or get_config()
    db = Database(config.db_path)
    db.create_tables()
    return db


def fail(err: Err) -> None:
    """Report a failed operation and exit."""
    if err.kind == ErrorKind.VALIDATION:
        for field_error in err.fields:
            print_error(f"{field_error.field}: {field_error.message}")
    else:
        print_error(err.detail)
    raise typer.Exit(1)


def format_date(value: Optional[str]) -> str:
    parsed = from_storage(value)
    return parsed.strftime("%Y-%m-%d") if parsed else "-"


def format_book_table(books: list, title: str = "Books") -> Table:
    """Create a rich table for displaying books."""
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim", max_width=8)
    table.add_column("Title", style="cyan", no_wrap=False, max_width=40)
    table.add_column("Author", style="green", max_width=25)
    table.add_column("Genre")
    table.add_column("Status", style="yellow")
    table.add_column("Borrower")
    table.add_column("Due", justify="center")

    for book in books:
        record = book.open_record
        table.add_row(
            book.id[:8],
            book.title,
            book.author,
            book.genre or "-",
            book.status,
            record.borrower_name if record else "-",
            format_date(record.expected_return) if record else "-",
        )

    return table


def resolve_book_id(db: Database, prefix: str) -> str:
    """Expand a short ID prefix (as shown in tables) to a full book ID."""
    if len(prefix) == 36:
        return prefix
    matches = [book.id for book in db.get_all_books() if book.id.startswith(prefix)]
    if len(matches) == 1:
        return matches[0]
    if not matches:
        print_error(f"No book found with ID starting with '{prefix}'")
    else:
        print_error(f"ID prefix '{prefix}' is ambiguous ({len(matches)} matches)")
    raise typer.Exit(1)


# ============================================================================
# General Commands
# ============================================================================


@app.command()
def version() -> None:
    """Show the homelibrary version."""
    console.print(f"homelibrary {__version__}")


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port to listen on"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
) -> None:
    """Run the REST API server."""
    import uvicorn

    from .server import create_app

    config = get_config()
    errors = config.validate()
    if errors:
        for error in errors:
            print_error(error)
        raise typer.Exit(1)

    logging.basicConfig(
        level=config.log_level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )

    console.print(
        Panel(
            f"API: http://{host or config.host}:{port or config.port}/api\n"
            f"Database: {config.db_path}\n"
            f"Environment: {config.environment}",
            title="Home Library",
        )
    )
    uvicorn.run(
        create_app(config),
        host=host or config.host,
        port=port or config.port,
        reload=reload,
        log_config=None,
    )


@app.command("init-db")
def init_db() -> None:
    """Create the database tables."""
    config = get_config()
    open_db(config)
    print_success(f"Database ready at {config.db_path}")


@app.command()
def seed(
    keep: bool = typer.Option(False, "--keep", help="Keep existing books"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Load the sample catalog."""
    from .seed import seed_library

    if not keep and not yes:
        if not typer.confirm("This deletes all existing books. Continue?", default=False):
            print_info("Cancelled.")
            raise typer.Exit(0)

    db = open_db()
    books = seed_library(db, clear=not keep)
    print_success(f"Created {len(books)} books")
    _print_stats(db)


# ============================================================================
# Catalog Commands
# ============================================================================


@app.command()
def add(
    title: str = typer.Option(..., "--title", "-t", help="Book title"),
    author: str = typer.Option(..., "--author", "-a", help="Author name"),
    isbn: Optional[str] = typer.Option(None, "--isbn", "-i", help="ISBN"),
    genre: Optional[str] = typer.Option(None, "--genre", "-g", help="Genre tag"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="Description"),
    wishlist: bool = typer.Option(False, "--wishlist", "-w", help="Add to wishlist instead"),
) -> None:
    """Add a book to the catalog."""
    catalog = CatalogManager(open_db())
    try:
        data = BookCreate(
            title=title,
            author=author,
            isbn=isbn,
            genre=genre,
            description=description,
            status=BookStatus.WISHLIST if wishlist else BookStatus.OWNED,
        )
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)
    result = catalog.create_book(data)
    if not result.ok:
        fail(result)
    book = result.value
    print_success(f"Added: {book.title} by {book.author} ({book.status})")
    print_info(f"ID: {book.id}")


@app.command("list")
def list_books(
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Search text"),
    status: str = typer.Option(STATUS_FILTER_ALL, "--status", help="OWNED, LENT, WISHLIST or all"),
    genre: Optional[str] = typer.Option(None, "--genre", "-g", help="Genre filter"),
    page: int = typer.Option(1, "--page", help="Page number"),
    limit: int = typer.Option(20, "--limit", "-l", help="Books per page"),
) -> None:
    """List books with optional filters."""
    db = open_db()
    try:
        query = BookQuery(search=search, status=status, genre=genre, page=page, limit=limit)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)

    books, total = SearchManager(db).find_books(query)
    if not books:
        console.print("[dim]No books found.[/dim]")
        return

    pages = BookPage.count_pages(total, query.limit)
    console.print(format_book_table(books, title=f"Books (page {query.page}/{pages}, {total} total)"))


@app.command()
def show(book_id: str = typer.Argument(..., help="Book ID or ID prefix")) -> None:
    """Show a book and its lending history."""
    db = open_db()
    book_id = resolve_book_id(db, book_id)
    result = CatalogManager(db).get_book(book_id)
    if not result.ok:
        fail(result)
    book = result.value

    lines = [
        f"[bold]{book.title}[/bold] by {book.author}",
        f"Status: [yellow]{book.status}[/yellow]",
    ]
    if book.isbn:
        lines.append(f"ISBN: {book.isbn}")
    if book.genre:
        lines.append(f"Genre: {book.genre}")
    if book.description:
        lines.append(f"\n{book.description}")
    console.print(Panel("\n".join(lines), title=book.id))

    history = LendingManager(db).history(book_id).value
    if history:
        table = Table(title="Lending history", header_style="bold magenta")
        table.add_column("Borrower", style="cyan")
        table.add_column("Contact")
        table.add_column("Lent")
        table.add_column("Due")
        table.add_column("Returned")
        for record in history:
            table.add_row(
                record.borrower_name,
                record.borrower_contact,
                format_date(record.date_lent),
                format_date(record.expected_return),
                format_date(record.actual_return) if record.actual_return else "[red]out[/red]",
            )
        console.print(table)


@app.command()
def update(
    book_id: str = typer.Argument(..., help="Book ID or ID prefix"),
    title: Optional[str] = typer.Option(None, "--title", "-t"),
    author: Optional[str] = typer.Option(None, "--author", "-a"),
    isbn: Optional[str] = typer.Option(None, "--isbn", "-i"),
    genre: Optional[str] = typer.Option(None, "--genre", "-g"),
    description: Optional[str] = typer.Option(None, "--description", "-d"),
    status: Optional[BookStatus] = typer.Option(None, "--status", help="OWNED or WISHLIST"),
) -> None:
    """Update a book's details (e.g. move it from the wishlist to OWNED)."""
    db = open_db()
    book_id = resolve_book_id(db, book_id)
    changes = {
        key: value
        for key, value in {
            "title": title,
            "author": author,
            "isbn": isbn,
            "genre": genre,
            "description": description,
            "status": status,
        }.items()
        if value is not None
    }
    if not changes:
        print_info("Nothing to update.")
        return

    result = CatalogManager(db).update_book(book_id, BookUpdate(**changes))
    if not result.ok:
        fail(result)
    print_success(f"Updated: {result.value.title} ({result.value.status})")


@app.command()
def delete(
    book_id: str = typer.Argument(..., help="Book ID or ID prefix"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a book and its lending history."""
    db = open_db()
    book_id = resolve_book_id(db, book_id)
    if not yes and not typer.confirm("Delete this book and its lending history?", default=False):
        print_info("Cancelled.")
        raise typer.Exit(0)

    result = CatalogManager(db).delete_book(book_id)
    if not result.ok:
        fail(result)
    print_success(f"Deleted: {result.value.title}")


# ============================================================================
# Lending Commands
# ============================================================================


@app.command()
def lend(
    book_id: str = typer.Argument(..., help="Book ID or ID prefix"),
    borrower: str = typer.Option(..., "--to", help="Borrower name"),
    contact: str = typer.Option(..., "--contact", "-c", help="Borrower email or phone"),
    date_lent: Optional[datetime] = typer.Option(
        None, "--on", formats=DATE_FORMATS, help="Date lent (default: now)"
    ),
    due: Optional[datetime] = typer.Option(
        None, "--due", formats=DATE_FORMATS, help="Expected return date"
    ),
    days: int = typer.Option(14, "--days", help="Loan length when --due is not given"),
    notes: Optional[str] = typer.Option(None, "--notes", "-n"),
) -> None:
    """Lend a book to someone."""
    db = open_db()
    book_id = resolve_book_id(db, book_id)
    lent_at = date_lent or utcnow()
    expected = due or lent_at + timedelta(days=days)

    manager = LendingManager(db, allow_wishlist_lending=get_config().allow_wishlist_lending)
    try:
        request = LendRequest(
            borrower_name=borrower,
            borrower_contact=contact,
            date_lent=lent_at,
            expected_return=expected,
            notes=notes,
        )
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)

    result = manager.lend(book_id, request)
    if not result.ok:
        fail(result)
    book = result.value
    print_success(
        f"Lent '{book.title}' to {borrower}, due {format_date(book.open_record.expected_return)}"
    )


@app.command("return")
def return_book(
    book_id: str = typer.Argument(..., help="Book ID or ID prefix"),
    returned: Optional[datetime] = typer.Option(
        None, "--on", formats=DATE_FORMATS, help="Return date (default: now)"
    ),
    notes: Optional[str] = typer.Option(None, "--notes", "-n"),
) -> None:
    """Record that a lent book came back."""
    db = open_db()
    book_id = resolve_book_id(db, book_id)
    result = LendingManager(db).return_book(
        book_id, ReturnRequest(actual_return=returned, notes=notes)
    )
    if not result.ok:
        fail(result)
    print_success(f"Returned: {result.value.title}")


@app.command()
def overdue() -> None:
    """List lent books that are past their return date."""
    db = open_db()
    books = LibraryAnalytics(db).get_overdue_books().value
    if not books:
        console.print("[green]Nothing is overdue.[/green]")
        return
    console.print(format_book_table(books, title=f"Overdue ({len(books)})"))


def _print_stats(db: Database) -> None:
    stats = LibraryAnalytics(db).get_stats().value
    table = Table(title="Library", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Count", justify="right")
    table.add_row("Total books", str(stats.total_books))
    table.add_row("Owned", str(stats.owned_books))
    table.add_row("Lent", str(stats.lent_books))
    table.add_row("Wishlist", str(stats.wishlist_books))
    console.print(table)


@app.command()
def stats() -> None:
    """Show counts of owned, lent and wishlisted books."""
    _print_stats(open_db())


if __name__ == "__main__":
    app()

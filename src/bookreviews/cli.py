"""Command-line interface for bookreviews.

Built with Typer for commands and Rich for output.
"""

from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .catalog import CatalogManager
from .config import get_config
from .db import get_db
from .errors import BookReviewsError
from .logger import setup_logging
from .pagination import parse_page

# Create the main app
app = typer.Typer(
    name="bookreviews",
    help="Catalogue books and collect reader reviews.",
    no_args_is_help=True,
)

# Create sub-apps for command groups
books_app = typer.Typer(help="Manage the book catalogue.")
app.add_typer(books_app, name="books")

reviews_app = typer.Typer(help="Inspect reviews.")
app.add_typer(reviews_app, name="reviews")

# Rich console for pretty output
console = Console()


# ============================================================================
# Helper Functions
# ============================================================================


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[bold red]Error:[/bold red] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[bold green]Success:[/bold green] {message}")


def stars(rating: int) -> str:
    return "★" * rating + "☆" * (5 - rating)


def format_book_table(books: list, title: str = "Books") -> Table:
    """Create a rich table for displaying books."""
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("ID", justify="right", style="dim")
    table.add_column("Title", style="cyan", no_wrap=False, max_width=40)
    table.add_column("Author", style="green", max_width=25)
    table.add_column("Genre", style="yellow")

    for book in books:
        table.add_row(str(book.id), book.title, book.author, book.genre or "-")

    return table


def _catalog() -> CatalogManager:
    return CatalogManager(get_db())


# ============================================================================
# General Commands
# ============================================================================


@app.command()
def version() -> None:
    """Show the installed version."""
    console.print(f"bookreviews {__version__}")


@app.command("init-db")
def init_db() -> None:
    """Create the database schema if it does not exist."""
    config = get_config()
    get_db()
    print_success(f"Database ready at {config.db_path}")


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Interface to bind"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port to listen on"),
    debug: bool = typer.Option(False, "--debug", help="Enable Flask debug mode"),
) -> None:
    """Run the HTTP API."""
    from .web import run_server

    config = get_config()
    problems = config.validate()
    if problems and not debug and not config.debug:
        for problem in problems:
            print_error(problem)
        raise typer.Exit(1)

    setup_logging(config.log_level, config.log_format)
    run_server(host=host or config.host, port=port or config.port, debug=debug or config.debug)


# ============================================================================
# Book Commands
# ============================================================================


@books_app.command("add")
def books_add(
    title: str = typer.Argument(..., help="Book title"),
    author: str = typer.Option(..., "--author", "-a", help="Author"),
    genre: Optional[str] = typer.Option(None, "--genre", "-g", help="Genre"),
) -> None:
    """Add a book to the catalogue."""
    try:
        book = _catalog().create_book(title, author, genre)
    except BookReviewsError as e:
        print_error(e.message)
        raise typer.Exit(1)
    print_success(f"Added #{book.id}: {book.title} by {book.author}")


@books_app.command("list")
def books_list(
    author: Optional[str] = typer.Option(None, "--author", "-a", help="Exact author filter"),
    genre: Optional[str] = typer.Option(None, "--genre", "-g", help="Exact genre filter"),
    page: int = typer.Option(1, "--page", help="Page number"),
    limit: int = typer.Option(10, "--limit", "-l", help="Books per page"),
) -> None:
    """List books in the catalogue."""
    resolved = parse_page(page, limit, default_limit=10, max_limit=get_config().max_page_size)
    books = _catalog().list_books(
        limit=resolved.limit, offset=resolved.offset, author=author, genre=genre
    )
    if not books:
        console.print("[dim]No books found.[/dim]")
        return
    console.print(format_book_table(books, title=f"Books (page {resolved.page})"))


@books_app.command("search")
def books_search(query: str = typer.Argument(..., help="Text to find in title or author")) -> None:
    """Search books by title or author."""
    try:
        books = _catalog().search_books(query)
    except BookReviewsError as e:
        print_error(e.message)
        raise typer.Exit(1)
    if not books:
        console.print(f"[dim]No books matching '{query}'.[/dim]")
        return
    console.print(format_book_table(books, title=f"Results for '{query}'"))


@books_app.command("show")
def books_show(book_id: int = typer.Argument(..., help="Book ID")) -> None:
    """Show a book with its average rating."""
    try:
        detail = _catalog().get_book_detail(book_id)
    except BookReviewsError as e:
        print_error(e.message)
        raise typer.Exit(1)

    lines = [
        f"[bold cyan]{detail.title}[/bold cyan]",
        f"by [green]{detail.author}[/green]",
        f"Genre: {detail.genre or '-'}",
        f"Average rating: [yellow]{detail.average_rating}[/yellow] "
        f"({detail.review_count} reviews)",
        f"Added: {detail.created_at}",
    ]
    console.print(Panel("\n".join(lines), title=f"Book #{detail.id}", style="magenta"))


# ============================================================================
# Review Commands
# ============================================================================


@reviews_app.command("list")
def reviews_list(
    book_id: int = typer.Argument(..., help="Book ID"),
    page: int = typer.Option(1, "--page", help="Page number"),
    limit: int = typer.Option(5, "--limit", "-l", help="Reviews per page"),
) -> None:
    """List reviews for a book."""
    catalog = _catalog()
    if catalog.get_book(book_id) is None:
        print_error("Book not found")
        raise typer.Exit(1)

    resolved = parse_page(page, limit, default_limit=5, max_limit=get_config().max_page_size)
    items = catalog.reviews.list_reviews_for_book(
        book_id, limit=resolved.limit, offset=resolved.offset
    )
    if not items:
        console.print("[dim]No reviews yet.[/dim]")
        return

    table = Table(title=f"Reviews of {items[0].book_title}", header_style="bold magenta")
    table.add_column("ID", justify="right", style="dim")
    table.add_column("User", style="green")
    table.add_column("Rating", justify="center")
    table.add_column("Comment", max_width=50)
    table.add_column("Edited", style="dim")
    for item in items:
        table.add_row(
            str(item.id),
            item.username,
            stars(item.rating),
            item.comment or "-",
            "yes" if item.updated_at else "",
        )
    console.print(table)


@reviews_app.command("by-user")
def reviews_by_user(username: str = typer.Argument(..., help="Reviewer username")) -> None:
    """List every review written by a user."""
    catalog = _catalog()
    user = catalog.db.get_user_by_username(username)
    if user is None:
        print_error(f"User '{username}' not found")
        raise typer.Exit(1)

    reviews = catalog.reviews.list_reviews_for_user(user.id)
    if not reviews:
        console.print(f"[dim]{username} has not reviewed any books.[/dim]")
        return

    table = Table(title=f"Reviews by {username}", header_style="bold magenta")
    table.add_column("ID", justify="right", style="dim")
    table.add_column("Book", style="cyan")
    table.add_column("Rating", justify="center")
    table.add_column("Comment", max_width=50)
    for review in reviews:
        table.add_row(
            str(review.id),
            review.book.title,
            stars(review.rating),
            review.comment or "-",
        )
    console.print(table)


if __name__ == "__main__":
    app()

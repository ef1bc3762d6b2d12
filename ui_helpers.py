import os
import json
from typing import List, Any

from rich.console import Console
from rich.table import Table
from rich.panel import Panel

# Environment variable to control CLI output mode
# Allowed values: 'plain' (default), 'json', 'rich'
OUTPUT_MODE_ENV = "LIB_CLI_OUTPUT"

_console = Console()


def set_output_mode(mode: str) -> None:
    mode = (mode or "").lower().strip()
    if mode in {"plain", "json", "rich"}:
        os.environ[OUTPUT_MODE_ENV] = mode


def get_output_mode() -> str:
    return os.environ.get(OUTPUT_MODE_ENV, "plain").lower()


def print_list_result(books: List[Any]) -> None:
    """Print the book list in the current output mode.
    - plain: 'ID - ISBN - Title by Author (Year)' lines, or 'No books in library.'
    - json: JSON array of full records
    - rich: Rich table
    """
    mode = get_output_mode()

    if not books:
        print("No books in library.")
        return

    if mode == "json":
        print(json.dumps([b.to_dict() for b in books], ensure_ascii=False))
    elif mode == "rich":
        table = Table(title="Books", show_lines=True, header_style="bold cyan")
        table.add_column("ID", style="dim", no_wrap=True)
        table.add_column("ISBN", style="magenta", no_wrap=True)
        table.add_column("Title", style="white")
        table.add_column("Author", style="white")
        table.add_column("Genre", style="white")
        table.add_column("Year", justify="right")
        for b in books:
            table.add_row(b.id, b.isbn, b.title, b.author, b.genre, str(b.year_published))
        _console.print(table)
    else:
        for b in books:
            print(f"{b.id} - {b.isbn} - {b.title} by {b.author} ({b.year_published})")


def print_book_result(book: Any, heading: str = "Book") -> None:
    """Print a single book in the current output mode."""
    mode = get_output_mode()

    if mode == "json":
        print(json.dumps(book.to_dict(), ensure_ascii=False))
    elif mode == "rich":
        content = (
            f"[bold]Title:[/] {book.title}\n[bold]Author:[/] {book.author}\n"
            f"[bold]Genre:[/] {book.genre}\n[bold]Year:[/] {book.year_published}\n"
            f"[bold]ISBN:[/] {book.isbn}\n[bold]ID:[/] {book.id}"
        )
        _console.print(Panel.fit(content, title=heading, border_style="blue"))
    else:
        print(heading)
        print(f"ID: {book.id}")
        print(f"Title: {book.title}")
        print(f"Author: {book.author}")
        print(f"Genre: {book.genre}")
        print(f"Year: {book.year_published}")
        print(f"ISBN: {book.isbn}")

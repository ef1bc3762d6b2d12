import subprocess
import sys
from typing import Optional

import typer

import database
from config import configure_logging, settings
from errors import LibraryError
from library import Library
from ui_helpers import set_output_mode, print_list_result, print_book_result
from validators import run_create_chain, run_update_chain, validate_identifier

APP_NAME = "Library CLI"


class LibraryManager:
    """Holds the CLI's Library, rebuilt when the backing file changes."""

    _instance: Optional[Library] = None
    _db_file_snapshot: Optional[str] = None

    @classmethod
    def get_instance(cls) -> Library:
        current_db = database.DATABASE_FILE
        if cls._instance is None or current_db != cls._db_file_snapshot:
            if cls._instance is not None:
                cls._instance.close()
            cls._instance = Library(db_file=current_db)
            cls._db_file_snapshot = current_db
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        cls._instance = None
        cls._db_file_snapshot = None


def _fail(message: str) -> None:
    print(message)
    raise typer.Exit(code=1)


# --- Typer CLI app ---
app = typer.Typer(help=APP_NAME)


@app.callback()
def _global_options(
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output format: plain | json | rich (default: plain)",
    ),
    log_level: str = typer.Option("WARNING", "--log-level", help="Logging level for library messages"),
):
    """Global CLI options (output mode, logging)."""
    configure_logging(log_level)
    if output:
        set_output_mode(output)


@app.command("list")
def cli_list():
    """List all books."""
    print_list_result(LibraryManager.get_instance().get_all())


@app.command("show")
def cli_show(book_id: str):
    """Show a single book by id."""
    try:
        validate_identifier(book_id)
    except LibraryError as e:
        _fail(f"Error: {e.message}")
    book = LibraryManager.get_instance().get_by_id(book_id)
    if not book:
        _fail(f"Book with ID {book_id} not found.")
    print_book_result(book)


@app.command("add")
def cli_add(
    isbn: str = typer.Option(..., "--isbn", help="13-digit ISBN, hyphens allowed"),
    title: str = typer.Option(..., "--title"),
    author: str = typer.Option(..., "--author"),
    genre: str = typer.Option(..., "--genre"),
    year: int = typer.Option(..., "--year", help="Year published"),
):
    """Add a book to the catalog."""
    lib = LibraryManager.get_instance()
    payload = {"isbn": isbn, "title": title, "author": author, "genre": genre, "yearPublished": year}
    try:
        book = lib.create(run_create_chain(lib, payload))
    except LibraryError as e:
        _fail(f"Error: {e.message}")
    print(f"Successfully added: {book.title} by {book.author} (ID: {book.id})")


@app.command("update")
def cli_update(
    book_id: str,
    isbn: str = typer.Option(..., "--isbn"),
    title: str = typer.Option(..., "--title"),
    author: str = typer.Option(..., "--author"),
    genre: str = typer.Option(..., "--genre"),
    year: int = typer.Option(..., "--year"),
):
    """Replace every field of a book."""
    lib = LibraryManager.get_instance()
    payload = {"isbn": isbn, "title": title, "author": author, "genre": genre, "yearPublished": year}
    try:
        book = lib.update(book_id, run_update_chain(lib, book_id, payload))
    except LibraryError as e:
        _fail(f"Error: {e.message}")
    if not book:
        _fail(f"Book with ID {book_id} not found.")
    print(f"Successfully updated: {book.title} by {book.author}")


@app.command("remove")
def cli_remove(book_id: str):
    """Remove a book by id."""
    try:
        validate_identifier(book_id)
    except LibraryError as e:
        _fail(f"Error: {e.message}")
    if LibraryManager.get_instance().delete(book_id):
        print(f"Book with ID {book_id} has been removed.")
    else:
        _fail(f"Book with ID {book_id} not found.")


@app.command("serve")
def cli_serve(
    host: Optional[str] = typer.Option(None, "--host"),
    port: Optional[int] = typer.Option(None, "--port"),
    reload: bool = typer.Option(False, "--reload", help="Restart the server on code changes"),
):
    """Start the REST API with uvicorn."""
    host = host or settings.api_host
    port = port or int(settings.api_port)
    print(f"Starting API on http://{host}:{port}/")
    args = [
        sys.executable,
        "-m", "uvicorn",
        "api:app",
        "--host", host,
        "--port", str(port),
    ]
    if reload:
        args.append("--reload")
    subprocess.run(args)


if __name__ == "__main__":
    app()

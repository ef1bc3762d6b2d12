import json
from unittest.mock import patch

from typer.testing import CliRunner

from main import app, LibraryManager

runner = CliRunner()

ADD_ARGS = [
    "add",
    "--isbn", "978-0-06-112008-4",
    "--title", "To Kill a Mockingbird",
    "--author", "Harper Lee",
    "--genre", "Fiction",
    "--year", "1960",
]


def _add_book():
    result = runner.invoke(app, ADD_ARGS)
    assert result.exit_code == 0, result.stdout
    return LibraryManager.get_instance().get_by_isbn("9780061120084")


def test_list_no_books(cli_db):
    result = runner.invoke(app, ["list"])
    assert result.exit_code == 0
    assert "No books in library." in result.stdout


def test_add_and_list(cli_db):
    book = _add_book()

    result = runner.invoke(app, ["list"])
    assert result.exit_code == 0
    assert f"{book.id} - 9780061120084 - To Kill a Mockingbird by Harper Lee (1960)" in result.stdout


def test_add_prints_success(cli_db):
    result = runner.invoke(app, ADD_ARGS)
    assert result.exit_code == 0
    assert "Successfully added: To Kill a Mockingbird by Harper Lee" in result.stdout


def test_list_json_output(cli_db):
    book = _add_book()
    result = runner.invoke(app, ["--output", "json", "list"])
    assert result.exit_code == 0
    assert json.loads(result.stdout.strip()) == [book.to_dict()]


def test_add_duplicate_isbn(cli_db):
    _add_book()
    result = runner.invoke(app, ADD_ARGS)
    assert result.exit_code == 1
    assert "Book with ISBN 9780061120084 already exists" in result.stdout


def test_add_invalid_year(cli_db):
    args = list(ADD_ARGS)
    args[-1] = "2999"
    result = runner.invoke(app, args)
    assert result.exit_code == 1
    assert "Year published must be a valid year" in result.stdout
    assert LibraryManager.get_instance().get_all() == []


def test_show_book(cli_db):
    book = _add_book()
    result = runner.invoke(app, ["--output", "plain", "show", book.id])
    assert result.exit_code == 0
    assert "Title: To Kill a Mockingbird" in result.stdout
    assert "ISBN: 9780061120084" in result.stdout


def test_show_book_not_found(cli_db):
    result = runner.invoke(app, ["show", "nonexistent"])
    assert result.exit_code == 1
    assert "Book with ID nonexistent not found." in result.stdout


def test_update_book(cli_db):
    book = _add_book()
    result = runner.invoke(
        app,
        ["update", book.id, "--isbn", "9780061120084", "--title", "Mockingbird",
         "--author", "Harper Lee", "--genre", "Classic", "--year", "1960"],
    )
    assert result.exit_code == 0
    assert "Successfully updated: Mockingbird by Harper Lee" in result.stdout
    assert LibraryManager.get_instance().get_by_id(book.id).genre == "Classic"


def test_update_book_not_found(cli_db):
    result = runner.invoke(
        app,
        ["update", "zzz", "--isbn", "9780061120084", "--title", "T",
         "--author", "A", "--genre", "G", "--year", "1960"],
    )
    assert result.exit_code == 1
    assert "Book with ID zzz not found." in result.stdout


def test_remove_book(cli_db):
    book = _add_book()
    result = runner.invoke(app, ["remove", book.id])
    assert result.exit_code == 0
    assert f"Book with ID {book.id} has been removed." in result.stdout

    result = runner.invoke(app, ["remove", book.id])
    assert result.exit_code == 1
    assert "not found" in result.stdout


def test_changes_persist_to_file(cli_db):
    book = _add_book()
    with open(cli_db, "r", encoding="utf-8") as f:
        assert json.load(f) == [book.to_dict()]


@patch("main.subprocess.run")
def test_serve_command(mock_subprocess_run, cli_db):
    result = runner.invoke(app, ["serve", "--port", "5055"])
    assert result.exit_code == 0
    assert "Starting API on" in result.stdout
    mock_subprocess_run.assert_called_once()
    args = mock_subprocess_run.call_args[0][0]
    assert "uvicorn" in args
    assert "api:app" in args
    assert "--host" in args
    assert "5055" in args
    assert "--reload" not in args


def test_remove_blank_id(cli_db):
    _add_book()
    result = runner.invoke(app, ["remove", "   "])
    assert result.exit_code == 1
    assert "Error: Valid book ID is required" in result.stdout
    assert len(LibraryManager.get_instance().get_all()) == 1

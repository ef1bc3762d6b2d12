import json
import logging
import os
import tempfile
from typing import List, Dict, Any

from config import settings
from errors import PersistenceError

logger = logging.getLogger(__name__)

# Default backing file.
# Priority:
# 1) LIBRARY_DB_FILE (explicit override, used by tests and one-off runs)
# 2) LIBRARY_DATA_FILE via settings (.env / config.py)
DATABASE_FILE = os.environ.get("LIBRARY_DB_FILE") or settings.data_file

# Written only when the backing file does not exist yet.
SAMPLE_BOOKS: List[Dict[str, Any]] = [
    {
        "id": "1",
        "isbn": "9780061120084",
        "title": "To Kill a Mockingbird",
        "author": "Harper Lee",
        "yearPublished": 1960,
        "genre": "Fiction",
    },
    {
        "id": "2",
        "isbn": "9780451524935",
        "title": "1984",
        "author": "George Orwell",
        "yearPublished": 1949,
        "genre": "Dystopian",
    },
    {
        "id": "3",
        "isbn": "9780743273565",
        "title": "The Great Gatsby",
        "author": "F. Scott Fitzgerald",
        "yearPublished": 1925,
        "genre": "Classic",
    },
]


def ensure_data_dir(db_file: str) -> None:
    """Creates the directory holding the backing file if it is missing."""
    data_dir = os.path.dirname(os.path.abspath(db_file))
    os.makedirs(data_dir, exist_ok=True)


def read_books_file(db_file: str) -> List[Dict[str, Any]]:
    """Reads the raw record list from the backing file.

    Raises PersistenceError when the file cannot be read, is not valid JSON,
    or does not hold a JSON array of objects.
    """
    try:
        with open(db_file, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
        raise PersistenceError(f"Error reading or parsing {db_file}: {e}") from e

    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        raise PersistenceError(f"Error parsing {db_file}: expected a JSON array of book objects")
    return data


def write_books_file(db_file: str, records: List[Dict[str, Any]]) -> None:
    """Writes the whole record list to the backing file.

    The content goes to a temporary sibling first and is then moved over the
    target, so a failed write never leaves a truncated file behind.
    """
    tmp_path = None
    try:
        ensure_data_dir(db_file)
        fd, tmp_path = tempfile.mkstemp(
            prefix=".books-", suffix=".tmp", dir=os.path.dirname(os.path.abspath(db_file))
        )
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(records, f, indent=2, ensure_ascii=False)
            f.write("\n")
        os.replace(tmp_path, db_file)
        tmp_path = None
    except (OSError, TypeError, ValueError) as e:
        raise PersistenceError(f"Error saving to {db_file}: {e}") from e
    finally:
        if tmp_path and os.path.exists(tmp_path):
            try:
                os.remove(tmp_path)
            except OSError:
                logger.warning(f"Could not remove temporary file {tmp_path}")


def initialize_database(db_file: str, seed: bool = True) -> List[Dict[str, Any]]:
    """Prepares the backing file and returns its records.

    Creates the data directory, seeds a missing file with SAMPLE_BOOKS (or an
    empty list when ``seed`` is false) and loads an existing one. A failed
    seed write is logged and the seed records are still returned; read
    errors are left to the caller.
    """
    try:
        ensure_data_dir(db_file)
    except OSError as e:
        raise PersistenceError(f"Could not create data directory for {db_file}: {e}") from e

    if not os.path.exists(db_file):
        records = [dict(item) for item in SAMPLE_BOOKS] if seed else []
        logger.info(f"No data file at {db_file}, seeding {len(records)} books")
        try:
            write_books_file(db_file, records)
        except PersistenceError as e:
            logger.error(f"Seeding failed: {e}")
        return records
    return read_books_file(db_file)

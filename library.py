import logging
import threading
import uuid
from typing import List, Optional, Dict, Any

import database
from book import Book
from config import settings
from errors import ConflictError, LibraryError, PersistenceError
from validators import ISBNValidator, validate_create_payload, validate_identifier

logger = logging.getLogger(__name__)


class Library:
    """Manages the collection of books and its file persistence.

    The in-memory list is authoritative for the lifetime of the instance; the
    backing JSON file is rewritten in full after every mutation. All
    read-modify-write sequences run under one re-entrant lock so the ISBN
    uniqueness invariant holds when handlers run on a thread pool.
    """

    def __init__(self, db_file: Optional[str] = None, seed: Optional[bool] = None) -> None:
        self.db_file = db_file or database.DATABASE_FILE
        self.seed = settings.seed_sample_data if seed is None else seed
        self._lock = threading.RLock()
        self.books: List[Book] = []
        self.reload()

    # ------------------------- Persistence ------------------------- #
    def reload(self) -> None:
        """(Re)load the collection from the backing file, never raising."""
        with self._lock:
            self.books = self._load_books_from_file()

    def _load_books_from_file(self) -> List[Book]:
        try:
            records = database.initialize_database(self.db_file, seed=self.seed)
            books = [self._record_to_book(item) for item in records]
        except LibraryError as e:
            logger.error(f"Error initializing database from {self.db_file}: {e}. Starting with an empty collection.")
            return []

        # A hand-edited file may repeat an id or an ISBN; the first record wins.
        seen_ids, seen_isbns, unique = set(), set(), []
        for book in books:
            if book.id in seen_ids or book.isbn in seen_isbns:
                logger.warning(f"Skipping duplicate book {book.id} (ISBN {book.isbn}) in {self.db_file}")
                continue
            seen_ids.add(book.id)
            seen_isbns.add(book.isbn)
            unique.append(book)

        logger.info(f"Database initialized successfully: {len(unique)} books from {self.db_file}")
        return unique

    @staticmethod
    def _record_to_book(record: Dict[str, Any]) -> Book:
        """Build a Book from a stored record, applying the same field checks as new input."""
        book_id = validate_identifier(record.get("id"))
        fields = validate_create_payload(record)
        return Book(
            id=book_id,
            isbn=fields["isbn"],
            title=fields["title"],
            author=fields["author"],
            genre=fields["genre"],
            year_published=fields["yearPublished"],
        )

    def _save_to_file(self) -> bool:
        """Write the whole collection. Failures are logged, never raised."""
        try:
            database.write_books_file(self.db_file, [book.to_dict() for book in self.books])
            return True
        except PersistenceError as e:
            logger.error(f"Error saving to database file: {e}")
            return False

    # ------------------------- Queries ------------------------- #
    def get_all(self) -> List[Book]:
        with self._lock:
            return [book.copy() for book in self.books]

    def get_by_id(self, book_id: str) -> Optional[Book]:
        with self._lock:
            book = self._find_by_id(book_id)
            return book.copy() if book else None

    def get_by_isbn(self, isbn: str) -> Optional[Book]:
        norm = ISBNValidator.normalize_isbn(isbn)
        with self._lock:
            for book in self.books:
                if book.isbn == norm:
                    return book.copy()
        return None

    def isbn_exists(self, isbn: str, exclude_id: Optional[str] = None) -> bool:
        norm = ISBNValidator.normalize_isbn(isbn)
        with self._lock:
            return any(book.isbn == norm and book.id != exclude_id for book in self.books)

    def __len__(self) -> int:
        with self._lock:
            return len(self.books)

    # ------------------------- Mutations ------------------------- #
    def create(self, fields: Dict[str, Any]) -> Book:
        """Add a new book built from ``fields`` and a generated id.

        Raises ConflictError if the normalised ISBN is already taken.
        """
        isbn = ISBNValidator.normalize_isbn(fields["isbn"])
        with self._lock:
            if self.isbn_exists(isbn):
                raise ConflictError(isbn)
            book = Book(
                id=self._generate_id(),
                isbn=isbn,
                title=fields["title"],
                author=fields["author"],
                genre=fields["genre"],
                year_published=fields["yearPublished"],
            )
            self.books.append(book)
            self._save_to_file()
            logger.info(f"Created book {book.id} (ISBN {book.isbn})")
            return book.copy()

    def update(self, book_id: str, fields: Dict[str, Any]) -> Optional[Book]:
        """Replace every field of a book except its id.

        Returns None if no book has ``book_id``; raises ConflictError if the
        new ISBN belongs to another book.
        """
        isbn = ISBNValidator.normalize_isbn(fields["isbn"])
        with self._lock:
            index = self._index_of(book_id)
            if index is None:
                return None

            current = self.books[index]
            if isbn != current.isbn and self.isbn_exists(isbn, exclude_id=current.id):
                raise ConflictError(isbn, on_update=True)

            updated = Book(
                id=current.id,
                isbn=isbn,
                title=fields["title"],
                author=fields["author"],
                genre=fields["genre"],
                year_published=fields["yearPublished"],
            )
            self.books[index] = updated
            self._save_to_file()
            logger.info(f"Updated book {updated.id}")
            return updated.copy()

    def delete(self, book_id: str) -> bool:
        with self._lock:
            index = self._index_of(book_id)
            if index is None:
                return False
            del self.books[index]
            self._save_to_file()
            logger.info(f"Deleted book {book_id}")
            return True

    # ------------------------- Utilities ------------------------- #
    def _find_by_id(self, book_id: str) -> Optional[Book]:
        for book in self.books:
            if book.id == book_id:
                return book
        return None

    def _index_of(self, book_id: str) -> Optional[int]:
        for index, book in enumerate(self.books):
            if book.id == book_id:
                return index
        return None

    def _generate_id(self) -> str:
        while True:
            candidate = uuid.uuid4().hex
            if self._find_by_id(candidate) is None:
                return candidate

    def close(self) -> None:
        """Compatibility helper for tests and the CLI.

        Every mutation is flushed immediately, so there is nothing to release.
        """
        return None

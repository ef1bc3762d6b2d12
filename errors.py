"""Error taxonomy shared by the repository, the validators and the API.

Every error carries the HTTP status it maps to, so the request layer can
translate them with a single handler.
"""

from typing import Optional


class LibraryError(Exception):
    """Base class for all catalog errors."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message}


class ValidationError(LibraryError):
    """Client input is malformed."""

    status_code = 400


class ConflictError(LibraryError):
    """An ISBN is already owned by a record."""

    status_code = 409

    def __init__(self, isbn: str, on_update: bool = False) -> None:
        self.isbn = isbn
        self.on_update = on_update
        if on_update:
            message = f"Another book with ISBN {isbn} already exists"
        else:
            message = f"Book with ISBN {isbn} already exists"
        super().__init__(message)


class NotFoundError(LibraryError):
    status_code = 404

    def __init__(self, book_id: Optional[str] = None) -> None:
        self.book_id = book_id
        super().__init__("Book not found")


class PersistenceError(LibraryError):
    """Reading or writing the backing file failed."""


class InternalError(LibraryError):
    """Unexpected failure; its message is never shown to API clients."""

    def __init__(self, message: str = "Internal Server Error") -> None:
        super().__init__(message)

"""Validation chain guarding every catalog mutation.

Checks run in a fixed order and the first failure short-circuits the chain:

* create: payload fields, then ISBN uniqueness
* update: identifier, payload fields, then ISBN uniqueness excluding the
  book being updated

Field problems raise ValidationError, ISBN collisions raise ConflictError and
anything unexpected is reported as InternalError.
"""

import logging
import math
import re
from datetime import date
from typing import Any, Callable, Dict

from config import settings
from errors import ConflictError, InternalError, LibraryError, ValidationError

logger = logging.getLogger(__name__)

_SEPARATORS = re.compile(r"[-\s]")
_DIGITS = re.compile(r"[0-9]+")


class ISBNValidator:
    """ISBN-13 normalisation and checks."""

    LENGTH = 13

    @staticmethod
    def normalize_isbn(raw: Any) -> str:
        if raw is None:
            return ""
        return _SEPARATORS.sub("", str(raw))

    @staticmethod
    def has_valid_checksum(isbn: str) -> bool:
        s = ISBNValidator.normalize_isbn(isbn)
        if len(s) != ISBNValidator.LENGTH or not _DIGITS.fullmatch(s):
            return False
        total = 0
        for i, ch in enumerate(s[:-1]):
            factor = 1 if i % 2 == 0 else 3
            total += factor * int(ch)
        check_val = (10 - (total % 10)) % 10
        return check_val == int(s[-1])


class TextValidator:

    @staticmethod
    def is_encodable(text: str) -> bool:
        # Lone surrogates survive JSON decoding but cannot be written back out
        try:
            text.encode("utf-8")
        except UnicodeEncodeError:
            return False
        return True

    @staticmethod
    def is_non_empty(text: Any) -> bool:
        return isinstance(text, str) and bool(text.strip()) and TextValidator.is_encodable(text)


def _validate_isbn(isbn: Any) -> str:
    if not isbn or not isinstance(isbn, str):
        raise ValidationError("ISBN is required and must be a string")

    cleaned = ISBNValidator.normalize_isbn(isbn)
    if cleaned and not _DIGITS.fullmatch(cleaned):
        raise ValidationError("ISBN must contain only numeric characters")
    if len(cleaned) != ISBNValidator.LENGTH:
        raise ValidationError("ISBN must be 13 digits long")
    if settings.strict_isbn_checksum and not ISBNValidator.has_valid_checksum(cleaned):
        raise ValidationError("Invalid ISBN-13 check digit")
    return cleaned


def _validate_year(year: Any) -> int:
    current_year = date.today().year
    message = f"Year published must be a valid year between 1000 and {current_year}"

    # bool is an int subclass but never a year
    if isinstance(year, bool) or not isinstance(year, (int, float)):
        raise ValidationError(message)
    if isinstance(year, float) and (math.isnan(year) or not year.is_integer()):
        raise ValidationError(message)
    if year < 1000 or year > current_year:
        raise ValidationError(message)
    return int(year)


def validate_create_payload(payload: Any) -> Dict[str, Any]:
    """Check the shape of a book payload and return its cleaned fields.

    The ISBN comes back normalised and the year as an int; text fields are
    returned unchanged.
    """
    if not isinstance(payload, dict):
        raise InternalError(f"Expected a JSON object, got {type(payload).__name__}")

    isbn = _validate_isbn(payload.get("isbn"))

    for field, label in (("title", "Title"), ("author", "Author"), ("genre", "Genre")):
        if not TextValidator.is_non_empty(payload.get(field)):
            raise ValidationError(f"{label} is required and must be a non-empty string")

    year = _validate_year(payload.get("yearPublished"))

    return {
        "isbn": isbn,
        "title": payload["title"],
        "author": payload["author"],
        "genre": payload["genre"],
        "yearPublished": year,
    }


def validate_identifier(book_id: Any) -> str:
    if not book_id or not isinstance(book_id, str) or not book_id.strip():
        raise ValidationError("Valid book ID is required")
    return book_id


def check_create_uniqueness(library, isbn: str) -> None:
    norm = ISBNValidator.normalize_isbn(isbn)
    if library.isbn_exists(norm):
        raise ConflictError(norm)


def check_update_uniqueness(library, book_id: str, isbn: str) -> None:
    """Reject an ISBN owned by a book other than ``book_id``.

    An unknown id passes so the caller can report "not found" itself, and
    keeping the book's own ISBN never conflicts.
    """
    current = library.get_by_id(book_id)
    if current is None:
        return
    norm = ISBNValidator.normalize_isbn(isbn)
    if norm == current.isbn:
        return
    if library.isbn_exists(norm, exclude_id=book_id):
        raise ConflictError(norm, on_update=True)


def _guarded(check: Callable[..., Any], *args: Any) -> Any:
    try:
        return check(*args)
    except LibraryError:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error in {check.__name__}")
        raise InternalError() from e


def run_create_chain(library, payload: Any) -> Dict[str, Any]:
    fields = _guarded(validate_create_payload, payload)
    _guarded(check_create_uniqueness, library, fields["isbn"])
    return fields


def run_update_chain(library, book_id: Any, payload: Any) -> Dict[str, Any]:
    book_id = _guarded(validate_identifier, book_id)
    fields = _guarded(validate_create_payload, payload)
    _guarded(check_update_uniqueness, library, book_id, fields["isbn"])
    return fields

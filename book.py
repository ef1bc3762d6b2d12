from __future__ import annotations


class Book:
    """Represents a single book item in the catalog."""

    def __init__(self, id: str, isbn: str, title: str, author: str, genre: str, year_published: int) -> None:
        self.id = id
        self.isbn = isbn
        self.title = title
        self.author = author
        self.genre = genre
        self.year_published = year_published

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.title} by {self.author} (ISBN: {self.isbn})"

    def __repr__(self) -> str:
        return f"Book(id={self.id!r}, isbn={self.isbn!r}, title={self.title!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Book):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def copy(self) -> "Book":
        return Book.from_dict(self.to_dict())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "isbn": self.isbn,
            "title": self.title,
            "author": self.author,
            "genre": self.genre,
            "yearPublished": self.year_published,
        }

    @staticmethod
    def from_dict(data: dict) -> "Book":
        return Book(
            id=str(data["id"]),
            isbn=data["isbn"],
            title=data["title"],
            author=data["author"],
            genre=data["genre"],
            year_published=data["yearPublished"],
        )

from __future__ import annotations

from dataclasses import dataclass


class Book:
    """Represents a single book record held by the remote catalog."""

    def __init__(self, id: int, title: str, author: str, isbn: int) -> None:
        self.id = id
        self.title = title
        self.author = author
        self.isbn = isbn

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.title} by {self.author} (ISBN: {self.isbn})"

    def __repr__(self) -> str:
        return f"Book(id={self.id!r}, title={self.title!r}, author={self.author!r}, isbn={self.isbn!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Book):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "isbn": self.isbn,
        }

    @staticmethod
    def from_dict(data: dict) -> "Book":
        # Booleans are ints in Python; a record with a bool id or isbn is malformed
        for key in ("id", "isbn"):
            if isinstance(data[key], bool) or not isinstance(data[key], int):
                raise TypeError(f"Book field '{key}' must be an integer, got {data[key]!r}")
        for key in ("title", "author"):
            if not isinstance(data[key], str):
                raise TypeError(f"Book field '{key}' must be a string, got {data[key]!r}")
        return Book(
            id=data["id"],
            title=data["title"],
            author=data["author"],
            isbn=data["isbn"],
        )


@dataclass
class BookDraft:
    """Unsaved form input. ISBN stays text until the draft is submitted."""

    title: str = ""
    author: str = ""
    isbn: str = ""

    @classmethod
    def from_book(cls, book: Book) -> "BookDraft":
        return cls(title=book.title, author=book.author, isbn=str(book.isbn))

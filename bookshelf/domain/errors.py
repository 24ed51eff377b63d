from __future__ import annotations


class BookshelfError(Exception):
    """Base class for errors surfaced to API clients as ``{"error": message}``."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ValidationError(BookshelfError):
    """A book or patch failed field validation."""


class NotFoundError(BookshelfError):
    """A lookup by id or title matched no row."""


class StorageError(BookshelfError):
    """The database rejected a statement or could not be reached."""


class MalformedRequestError(BookshelfError):
    """The request body could not be decoded into the expected shape."""

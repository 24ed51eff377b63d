"""Book table model and CRUD helpers."""

from bookshelf.storage.books.base import BookTable
from bookshelf.storage.books import crud

__all__ = ["BookTable", "crud"]

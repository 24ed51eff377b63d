"""Storage layer for the books table via SQLAlchemy async."""

from bookshelf.storage import books
from bookshelf.storage.db import DatabaseService, init_db_service
from bookshelf.storage.repo import BookRepository, SQLAlchemyBookRepository

__all__ = ["books", "BookRepository", "DatabaseService", "SQLAlchemyBookRepository", "init_db_service"]

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Protocol

from loguru import logger
from sqlalchemy.exc import DBAPIError, SQLAlchemyError

from bookshelf.domain.errors import StorageError
from bookshelf.domain.models import Book, UpdateBookInput
from bookshelf.storage.books import crud as books_crud
from bookshelf.storage.db import DatabaseService
from bookshelf.storage.types import BookRow


class BookRepository(Protocol):
    async def create(self, book: Book) -> Book: ...

    async def find_all(self) -> list[Book]: ...

    async def find_by_id(self, book_id: int) -> Book: ...

    async def find_by_title(self, title: str) -> Book: ...

    async def update(self, book_id: int, patch: UpdateBookInput) -> None: ...

    async def delete(self, book_id: int) -> None: ...


def _to_book(row: BookRow) -> Book:
    return Book(id=row.id, title=row.title, author=row.author)


@contextmanager
def _storage_errors() -> Iterator[None]:
    try:
        yield
    except DBAPIError as exc:
        raise StorageError(str(exc.orig)) from exc
    except SQLAlchemyError as exc:
        raise StorageError(str(exc)) from exc


class SQLAlchemyBookRepository:
    def __init__(self, db: DatabaseService):
        self.db = db

    async def create(self, book: Book) -> Book:
        book.validate()
        with _storage_errors():
            async with self.db.session_scope() as session:
                book_id = await books_crud.insert_book(session, book.title, book.author)
        book.id = book_id
        logger.debug("Created book id={}", book_id)
        return book

    async def find_all(self) -> list[Book]:
        with _storage_errors():
            async with self.db.with_session() as session:
                rows = await books_crud.list_books(session)
        return [_to_book(row) for row in rows]

    async def find_by_id(self, book_id: int) -> Book:
        with _storage_errors():
            async with self.db.with_session() as session:
                row = await books_crud.get_book(session, book_id)
        return _to_book(row)

    async def find_by_title(self, title: str) -> Book:
        with _storage_errors():
            async with self.db.with_session() as session:
                row = await books_crud.get_book_by_title(session, title)
        return _to_book(row)

    async def update(self, book_id: int, patch: UpdateBookInput) -> None:
        patch.validate()
        with _storage_errors():
            async with self.db.session_scope() as session:
                affected = await books_crud.update_book(session, book_id, patch)
        if affected == 0:
            logger.debug("Update of book id={} matched no rows", book_id)

    async def delete(self, book_id: int) -> None:
        with _storage_errors():
            async with self.db.session_scope() as session:
                affected = await books_crud.delete_book(session, book_id)
        if affected == 0:
            logger.debug("Delete of book id={} matched no rows", book_id)

from __future__ import annotations

from sqlalchemy import delete, insert, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from bookshelf.domain.errors import NotFoundError
from bookshelf.domain.models import UpdateBookInput
from bookshelf.storage.books.base import BookTable
from bookshelf.storage.types import BookRow, UpdateStatement

RECORD_NOT_FOUND = "record not found"

# Column order of a partial update; bind parameters are numbered in this order.
UPDATABLE_COLUMNS = ("title", "author")


def build_update_statement(book_id: int, patch: UpdateBookInput) -> UpdateStatement:
    """Render ``UPDATE books SET ... WHERE id = ...`` for the fields present in ``patch``.

    Placeholders are ``:p1``, ``:p2``, ... assigned title first, then author,
    with the id always bound to the last one.
    """
    patch.validate()

    assignments: list[str] = []
    params: dict[str, object] = {}
    for column in UPDATABLE_COLUMNS:
        value = getattr(patch, column)
        if value is None:
            continue
        key = f"p{len(params) + 1}"
        assignments.append(f"{column} = :{key}")
        params[key] = value

    id_key = f"p{len(params) + 1}"
    params[id_key] = book_id
    sql = f"UPDATE {BookTable.__tablename__} SET {', '.join(assignments)} WHERE id = :{id_key}"
    return UpdateStatement(sql=sql, params=params)


def _to_row(row) -> BookRow:
    return BookRow(id=int(row[0]), title=str(row[1]), author=str(row[2]))


async def insert_book(session: AsyncSession, title: str, author: str) -> int:
    result = await session.execute(
        insert(BookTable).values(title=title, author=author).returning(BookTable.id)
    )
    return int(result.scalar_one())


async def list_books(session: AsyncSession) -> list[BookRow]:
    result = await session.execute(select(BookTable.id, BookTable.title, BookTable.author))
    return [_to_row(row) for row in result.all()]


async def get_book(session: AsyncSession, book_id: int) -> BookRow:
    result = await session.execute(
        select(BookTable.id, BookTable.title, BookTable.author).where(BookTable.id == book_id)
    )
    row = result.one_or_none()
    if row is None:
        raise NotFoundError(RECORD_NOT_FOUND)
    return _to_row(row)


async def get_book_by_title(session: AsyncSession, title: str) -> BookRow:
    result = await session.execute(
        select(BookTable.id, BookTable.title, BookTable.author).where(BookTable.title == title)
    )
    row = result.one_or_none()
    if row is None:
        raise NotFoundError(RECORD_NOT_FOUND)
    return _to_row(row)


async def update_book(session: AsyncSession, book_id: int, patch: UpdateBookInput) -> int:
    stmt = build_update_statement(book_id, patch)
    result = await session.execute(text(stmt.sql), stmt.params)
    return int(result.rowcount)


async def delete_book(session: AsyncSession, book_id: int) -> int:
    result = await session.execute(delete(BookTable).where(BookTable.id == book_id))
    return int(result.rowcount)

from __future__ import annotations

from typing import Protocol

from bookshelf.domain.models import Book, UpdateBookInput
from bookshelf.storage.repo import BookRepository


class BookService(Protocol):
    async def create(self, book: Book) -> Book: ...

    async def get_all(self) -> list[Book]: ...

    async def get_by_id(self, book_id: int) -> Book: ...

    async def get_by_title(self, title: str) -> Book: ...

    async def update(self, book_id: int, patch: UpdateBookInput) -> None: ...

    async def delete(self, book_id: int) -> None: ...


class BooksService:
    """Forwards every call to the repository it was built with."""

    def __init__(self, repo: BookRepository):
        self.repo = repo

    async def create(self, book: Book) -> Book:
        return await self.repo.create(book)

    async def get_all(self) -> list[Book]:
        return await self.repo.find_all()

    async def get_by_id(self, book_id: int) -> Book:
        return await self.repo.find_by_id(book_id)

    async def get_by_title(self, title: str) -> Book:
        return await self.repo.find_by_title(title)

    async def update(self, book_id: int, patch: UpdateBookInput) -> None:
        await self.repo.update(book_id, patch)

    async def delete(self, book_id: int) -> None:
        await self.repo.delete(book_id)

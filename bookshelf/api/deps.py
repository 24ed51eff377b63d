"""FastAPI dependency implementations."""

from __future__ import annotations

from fastapi import Request

from bookshelf.service.books import BookService


def get_book_service(request: Request) -> BookService:
    """Return the service wired into the app at construction time."""
    return request.app.state.book_service

"""Book routes: JSON in, JSON out, errors as ``{"error": message}``."""

from __future__ import annotations

import re
from typing import Any

import orjson
from fastapi import APIRouter, Depends, Request, Response

from bookshelf.api.deps import get_book_service
from bookshelf.api.schemas import CreateBookRequest, UpdateBookRequest, decode_body
from bookshelf.domain.errors import ValidationError
from bookshelf.domain.models import Book, UpdateBookInput
from bookshelf.service.books import BookService

router = APIRouter()

_ID_PATTERN = re.compile(r"[+-]?[0-9]+")

# Ids are stored as BIGINT.
_MIN_ID = -(2**63)
_MAX_ID = 2**63 - 1


def respond(status_code: int, data: Any = None) -> Response:
    if data is None:
        return Response(status_code=status_code)
    return Response(content=orjson.dumps(data), status_code=status_code, media_type="application/json")


def parse_book_id(raw: str) -> int:
    if not _ID_PATTERN.fullmatch(raw):
        raise ValidationError(f'invalid book id "{raw}"')
    book_id = int(raw)
    if not _MIN_ID <= book_id <= _MAX_ID:
        raise ValidationError(f'invalid book id "{raw}"')
    return book_id


@router.post("/books")
async def create_book(request: Request, service: BookService = Depends(get_book_service)) -> Response:
    payload = decode_body(await request.body(), CreateBookRequest)
    book = Book(title=payload.title or "", author=payload.author or "")
    created = await service.create(book)
    return respond(201, created.to_dict())


@router.get("/books/")
async def list_books(service: BookService = Depends(get_book_service)) -> Response:
    books = await service.get_all()
    return respond(200, [book.to_dict() for book in books])


@router.get("/books/{book_id}")
async def get_book(book_id: str, service: BookService = Depends(get_book_service)) -> Response:
    book = await service.get_by_id(parse_book_id(book_id))
    return respond(200, book.to_dict())


@router.put("/books/{book_id}")
async def update_book(
    book_id: str,
    request: Request,
    service: BookService = Depends(get_book_service),
) -> Response:
    parsed_id = parse_book_id(book_id)
    payload = decode_body(await request.body(), UpdateBookRequest)
    await service.update(parsed_id, UpdateBookInput(title=payload.title, author=payload.author))
    return respond(200)


@router.delete("/books/{book_id}")
async def delete_book(book_id: str, service: BookService = Depends(get_book_service)) -> Response:
    await service.delete(parse_book_id(book_id))
    return respond(200)

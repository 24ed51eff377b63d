"""FastAPI application factory."""

from __future__ import annotations

import time
import uuid
from typing import AsyncContextManager, Callable

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from bookshelf.api.routes import respond, router
from bookshelf.domain.errors import BookshelfError, MalformedRequestError
from bookshelf.service.books import BookService

REQUEST_ID_HEADER = "X-Request-ID"

Lifespan = Callable[[FastAPI], AsyncContextManager[None]]


def status_for(exc: BookshelfError) -> int:
    """Malformed bodies are 400; validation, not-found and storage errors are all 422."""
    if isinstance(exc, MalformedRequestError):
        return 400
    return 422


async def _handle_bookshelf_error(request: Request, exc: BookshelfError) -> Response:
    status_code = status_for(exc)
    logger.bind(status_code=status_code, error_type=type(exc).__name__).info("request.rejected: {}", exc)
    return respond(status_code, {"error": str(exc)})


async def _handle_http_error(request: Request, exc: StarletteHTTPException) -> Response:
    return respond(exc.status_code, {"error": str(exc.detail)})


async def _log_requests(request: Request, call_next) -> Response:
    request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
    start = time.perf_counter()

    with logger.contextualize(request_id=request_id):
        logger.bind(method=request.method, path=request.url.path).debug("request.start")
        try:
            response = await call_next(request)
        except Exception as exc:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.bind(
                method=request.method,
                path=request.url.path,
                status_code=500,
                duration_ms=round(duration_ms, 1),
            ).exception("request.error")
            response = respond(500, {"error": f"internal server error: {type(exc).__name__}"})
        else:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.bind(
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round(duration_ms, 1),
            ).info("{} {} -> {}", request.method, request.url.path, response.status_code)

    response.headers.setdefault(REQUEST_ID_HEADER, request_id)
    return response


def create_app(service: BookService, lifespan: Lifespan | None = None) -> FastAPI:
    """Build the app around an already constructed service."""
    app = FastAPI(
        title="bookshelf",
        docs_url=None,
        redoc_url=None,
        lifespan=lifespan,
        redirect_slashes=False,
    )
    app.state.book_service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(_log_requests)

    app.add_exception_handler(BookshelfError, _handle_bookshelf_error)
    app.add_exception_handler(StarletteHTTPException, _handle_http_error)

    app.include_router(router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app

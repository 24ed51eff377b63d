from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

import uvicorn
from fastapi import FastAPI
from loguru import logger

from bookshelf.api.app import create_app
from bookshelf.config.schema import AppConfigRoot
from bookshelf.service.books import BooksService
from bookshelf.storage.db import DatabaseService
from bookshelf.storage.repo import SQLAlchemyBookRepository


def build_app(db: DatabaseService) -> FastAPI:
    """Wire repository -> service -> app on top of ``db``; the engine is disposed on shutdown."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        logger.info("Shutting down, closing database connections")
        await db.dispose()

    repo = SQLAlchemyBookRepository(db)
    service = BooksService(repo)
    return create_app(service, lifespan=lifespan)


def _uvicorn_level(log_level: str) -> str:
    level = log_level.lower()
    return level if level in uvicorn.config.LOG_LEVELS else "info"


async def serve(db: DatabaseService, config: AppConfigRoot, log_level: str) -> None:
    """Serve on an already connected database until uvicorn is told to stop."""
    server = uvicorn.Server(
        uvicorn.Config(
            build_app(db),
            host=config.http.host,
            port=config.http.port,
            log_level=_uvicorn_level(log_level),
            log_config=None,
            access_log=False,
        )
    )
    logger.info("Listening on {}:{}", config.http.host, config.http.port)
    await server.serve()

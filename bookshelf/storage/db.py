from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from loguru import logger
from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from bookshelf.storage.base import Base, import_all_models


def build_sqlite_url(db_path: Path) -> str:
    resolved = db_path.resolve()
    return f"sqlite+aiosqlite:///{resolved.as_posix()}"


def _ensure_sqlite_parent(db_url: str) -> None:
    url = make_url(db_url)
    if url.get_backend_name() != "sqlite" or not url.database or url.database == ":memory:":
        return
    Path(url.database).parent.mkdir(parents=True, exist_ok=True)


class DatabaseService:
    """Owns the async engine and hands out sessions.

    Built once at startup and passed to the repository; nothing here is cached
    at module level.
    """

    def __init__(self, db_url: str):
        self.db_url = db_url
        _ensure_sqlite_parent(db_url)
        self.engine: AsyncEngine = create_async_engine(db_url, future=True)
        self._sessionmaker = async_sessionmaker(self.engine, expire_on_commit=False)

    async def ping(self) -> None:
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def init_models(self) -> None:
        import_all_models()
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    @asynccontextmanager
    async def with_session(self) -> AsyncGenerator[AsyncSession, None]:
        async with self._sessionmaker() as session:
            yield session

    @asynccontextmanager
    async def session_scope(self) -> AsyncGenerator[AsyncSession, None]:
        """Yield a session that commits on success and rolls back on any error.

        Raises:
            Exception: whatever the wrapped block raised, after rollback.

        """

        async with self.with_session() as session:
            try:
                yield session
                await session.commit()
            except Exception as exc:
                logger.warning("Rolling back session: {}", exc)
                await session.rollback()
                raise

    async def dispose(self) -> None:
        await self.engine.dispose()


async def init_db_service(db_url: str) -> DatabaseService:
    """Connect, create the schema if absent and return the ready service."""
    service = DatabaseService(db_url)
    try:
        await service.ping()
        await service.init_models()
    except Exception:
        await service.dispose()
        raise
    logger.info("Database ready at {}", make_url(db_url).render_as_string(hide_password=True))
    return service

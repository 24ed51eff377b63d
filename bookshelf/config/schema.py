from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    env: Literal["local", "dev", "prod"] = "prod"
    log_level: str | None = None
    log_json: bool = True

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str | None) -> str | None:
        if value is None:
            return value
        level = value.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return level


class HttpConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    host: str = "127.0.0.1"
    port: int = 8080

    @field_validator("port")
    @classmethod
    def _port_range(cls, value: int) -> int:
        if not 1 <= value <= 65535:
            raise ValueError("http.port must be between 1 and 65535")
        return value


class StorageConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    database_url: str = Field(default="sqlite+aiosqlite:///./data/bookshelf.db")

    @field_validator("database_url")
    @classmethod
    def _parseable_url(cls, value: str) -> str:
        try:
            make_url(value)
        except ArgumentError as exc:
            raise ValueError(f"storage.database_url is not a valid URL: {exc}") from exc
        return value


class AppConfigRoot(BaseModel):
    model_config = ConfigDict(extra="forbid")

    app: AppConfig = Field(default_factory=AppConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)


def resolve_paths(config: AppConfigRoot, base_dir: Path) -> AppConfigRoot:
    url = make_url(config.storage.database_url)
    if url.get_backend_name() != "sqlite" or not url.database or url.database == ":memory:":
        return config

    db_path = Path(url.database)
    if not db_path.is_absolute():
        resolved = (base_dir / db_path).resolve()
        config.storage.database_url = url.set(database=resolved.as_posix()).render_as_string(hide_password=False)
    return config

from __future__ import annotations

import inspect
import logging
import sys
from loguru import logger


_DEFAULT_CONTEXT = {
    "request_id": "-",
}

_ENV_LEVELS = {
    "local": "DEBUG",
    "dev": "DEBUG",
    "prod": "INFO",
}


def _inject_default_context(record: dict) -> None:
    extra = record["extra"]
    for key, value in _DEFAULT_CONTEXT.items():
        extra.setdefault(key, value)


def resolve_log_level(env: str, level: str | None = None) -> str:
    """Pick the level for an environment tier; unknown tiers get prod settings."""
    if level:
        return level.upper()
    return _ENV_LEVELS.get(env, "INFO")


class InterceptHandler(logging.Handler):
    """Forward stdlib ``logging`` records (uvicorn, SQLAlchemy) into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        # The request middleware logs every request already.
        if record.name == "uvicorn.access":
            return

        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Point loguru at the original caller, not the logging module.
        frame, depth = inspect.currentframe(), 0
        while frame and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).bind(logger_name=record.name).log(
            level, record.getMessage()
        )


def setup_logging(env: str, level: str | None = None, json: bool = True) -> str:
    """Configure loguru for the server process and return the effective level."""
    effective_level = resolve_log_level(env, level)

    logger.remove()
    logger.configure(patcher=_inject_default_context)
    logger.add(
        sys.stderr,
        level=effective_level,
        backtrace=env != "prod",
        diagnose=False,
        serialize=json,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> "
            "| <level>{level:<8}</level> "
            "| req={extra[request_id]} "
            "| {message}"
        ),
    )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        std_logger = logging.getLogger(name)
        std_logger.handlers = []
        std_logger.propagate = True
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)

    logger.debug("Logging configured env={} level={} json={}", env, effective_level, json)
    return effective_level

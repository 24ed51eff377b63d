from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any

from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.pretty import Pretty
from sqlalchemy.exc import SQLAlchemyError

from bookshelf.api.server import serve
from bookshelf.config import load_config
from bookshelf.config.loader import masked_env_snapshot
from bookshelf.storage.db import init_db_service
from bookshelf.utils.logging import setup_logging

console = Console()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bookshelf")
    parser.add_argument("--config", type=Path, default=None, help="Path to custom config YAML")
    parser.add_argument("--profile", type=str, default=None, help="Config profile name")
    parser.add_argument("--env", choices=["local", "dev", "prod"], default=None, help="Override environment tier")
    parser.add_argument("--database-url", type=str, default=None, help="Override storage connection URL")

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("config", help="Validate and print effective config")
    subparsers.add_parser("init-db", help="Create the books table if it does not exist")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", type=str, default=None, help="Listen host")
    serve_parser.add_argument("--port", type=int, default=None, help="Listen port")

    return parser


def _build_overrides(args: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    if args.env:
        overrides["app"] = {"env": args.env}
    if args.database_url:
        overrides["storage"] = {"database_url": args.database_url}

    http_overrides: dict[str, Any] = {}
    if getattr(args, "host", None):
        http_overrides["host"] = args.host
    if getattr(args, "port", None) is not None:
        http_overrides["port"] = args.port
    if http_overrides:
        overrides["http"] = http_overrides
    return overrides


def _print_config(config) -> None:
    env_snapshot = masked_env_snapshot(config)
    data = config.model_dump(mode="json")
    data["storage"]["database_url"] = env_snapshot["storage.database_url"]
    console.print(Panel(Pretty(data), title="Effective Config"))
    console.print(Panel(Pretty(env_snapshot), title="Env Snapshot"))


async def _main_async(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    overrides = _build_overrides(args)
    config = load_config(
        config_path=args.config,
        profile=args.profile,
        overrides=overrides,
    )

    level = setup_logging(config.app.env, config.app.log_level, config.app.log_json)
    logger.info("Loaded configuration env={}", config.app.env)

    if args.command == "config":
        _print_config(config)
        return 0

    try:
        db = await init_db_service(config.storage.database_url)
    except (SQLAlchemyError, OSError) as exc:
        logger.critical("Storage is unavailable, exiting: {}", exc)
        return 1

    if args.command == "init-db":
        await db.dispose()
        console.print(Panel("books table is ready", title="init-db"))
        return 0

    await serve(db, config, level)
    return 0


def main() -> None:
    sys.exit(asyncio.run(_main_async()))


if __name__ == "__main__":
    main()

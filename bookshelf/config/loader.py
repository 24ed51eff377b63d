from __future__ import annotations

from pathlib import Path
from typing import Any
import os

import yaml
from loguru import logger
from sqlalchemy.engine import make_url

from bookshelf.config.schema import AppConfigRoot, resolve_paths

CONFIG_PATH_VAR = "BOOKSHELF_CONFIG_PATH"

# Environment variable -> (section, key)
_ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "BOOKSHELF_ENV": ("app", "env"),
    "BOOKSHELF_LOG_LEVEL": ("app", "log_level"),
    "BOOKSHELF_DATABASE_URL": ("storage", "database_url"),
    "BOOKSHELF_HTTP_HOST": ("http", "host"),
    "BOOKSHELF_HTTP_PORT": ("http", "port"),
}


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    return data or {}


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            base[key] = _deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def _load_dotenv(dotenv_path: Path) -> None:
    if not dotenv_path.exists():
        return
    for raw_line in dotenv_path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip("\"")
        os.environ.setdefault(key, value)


def _apply_env(config_data: dict[str, Any]) -> dict[str, Any]:
    for var, (section, key) in _ENV_OVERRIDES.items():
        value = os.getenv(var)
        if value:
            config_data.setdefault(section, {})[key] = value
    return config_data


def load_config(
    config_path: Path | None = None,
    profile: str | None = None,
    overrides: dict[str, Any] | None = None,
) -> AppConfigRoot:
    base_dir = Path.cwd()
    _load_dotenv(base_dir / ".env")

    config_data: dict[str, Any] = {}
    config_data = _deep_merge(config_data, _read_yaml(base_dir / "configs" / "default.yaml"))

    if profile:
        profile_path = base_dir / "configs" / "profiles" / f"{profile}.yaml"
        config_data = _deep_merge(config_data, _read_yaml(profile_path))

    if config_path is None and os.getenv(CONFIG_PATH_VAR):
        config_path = Path(os.environ[CONFIG_PATH_VAR])
    if config_path:
        if not config_path.exists():
            raise FileNotFoundError(f"config file does not exist: {config_path}")
        config_data = _deep_merge(config_data, _read_yaml(config_path))

    config_data = _apply_env(config_data)

    if overrides:
        config_data = _deep_merge(config_data, overrides)

    config = AppConfigRoot.model_validate(config_data)
    config = resolve_paths(config, base_dir)

    logger.debug("Loaded config from {}", base_dir)
    return config


def masked_env_snapshot(config: AppConfigRoot | None = None) -> dict[str, str | None]:
    snapshot: dict[str, str | None] = {}
    for var in (CONFIG_PATH_VAR, *_ENV_OVERRIDES):
        snapshot[var] = os.getenv(var)

    database_url = snapshot.get("BOOKSHELF_DATABASE_URL")
    if database_url:
        snapshot["BOOKSHELF_DATABASE_URL"] = make_url(database_url).render_as_string(hide_password=True)

    if config is not None:
        snapshot["storage.database_url"] = make_url(config.storage.database_url).render_as_string(
            hide_password=True
        )
    return snapshot

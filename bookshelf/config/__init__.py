"""Configuration loading and schema."""

from bookshelf.config.loader import load_config
from bookshelf.config.schema import AppConfig, AppConfigRoot

__all__ = ["AppConfig", "AppConfigRoot", "load_config"]

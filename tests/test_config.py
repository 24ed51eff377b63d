from __future__ import annotations

from pathlib import Path
import textwrap

import pytest
from pydantic import ValidationError

from bookshelf.config.loader import load_config, masked_env_snapshot
from bookshelf.config.schema import AppConfigRoot, HttpConfig, resolve_paths

_ENV_VARS = (
    "BOOKSHELF_CONFIG_PATH",
    "BOOKSHELF_ENV",
    "BOOKSHELF_LOG_LEVEL",
    "BOOKSHELF_DATABASE_URL",
    "BOOKSHELF_HTTP_HOST",
    "BOOKSHELF_HTTP_PORT",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    # setenv first so monkeypatch restores whatever .env loading writes.
    for var in _ENV_VARS:
        monkeypatch.setenv(var, "")
        monkeypatch.delenv(var)


def test_defaults() -> None:
    config = AppConfigRoot()

    assert config.app.env == "prod"
    assert config.app.log_level is None
    assert config.http.port == 8080
    assert config.storage.database_url.startswith("sqlite+aiosqlite:///")


def test_resolve_paths_makes_sqlite_path_absolute(tmp_path: Path) -> None:
    config = AppConfigRoot()
    config.storage.database_url = "sqlite+aiosqlite:///data/books.db"

    resolved = resolve_paths(config, tmp_path)

    expected = (tmp_path / "data/books.db").resolve().as_posix()
    assert resolved.storage.database_url == f"sqlite+aiosqlite:///{expected}"


def test_resolve_paths_leaves_server_urls_alone(tmp_path: Path) -> None:
    config = AppConfigRoot()
    config.storage.database_url = "postgresql+asyncpg://user:secret@db:5432/books"

    resolved = resolve_paths(config, tmp_path)

    assert resolved.storage.database_url == "postgresql+asyncpg://user:secret@db:5432/books"


def test_http_port_validated() -> None:
    with pytest.raises(ValidationError):
        HttpConfig(port=0)


def test_unknown_env_tier_rejected() -> None:
    with pytest.raises(ValidationError):
        AppConfigRoot.model_validate({"app": {"env": "staging"}})


def test_log_level_normalized_and_checked() -> None:
    assert AppConfigRoot.model_validate({"app": {"log_level": "debug"}}).app.log_level == "DEBUG"

    with pytest.raises(ValidationError):
        AppConfigRoot.model_validate({"app": {"log_level": "loud"}})


def test_unknown_keys_rejected() -> None:
    with pytest.raises(ValidationError):
        AppConfigRoot.model_validate({"http": {"address": "localhost:8080"}})


def test_load_config_merge_order(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    configs_dir = tmp_path / "configs"
    profiles_dir = configs_dir / "profiles"
    profiles_dir.mkdir(parents=True)

    (configs_dir / "default.yaml").write_text(
        textwrap.dedent(
            """
            app:
              env: "local"
            http:
              host: "127.0.0.1"
              port: 8000
            storage:
              database_url: "sqlite+aiosqlite:///./default.db"
            """
        ).strip(),
        encoding="utf-8",
    )
    (profiles_dir / "dev.yaml").write_text(
        textwrap.dedent(
            """
            app:
              env: "dev"
            http:
              port: 8001
            """
        ).strip(),
        encoding="utf-8",
    )
    (configs_dir / "custom.yaml").write_text(
        textwrap.dedent(
            """
            http:
              host: "0.0.0.0"
              port: 8002
            """
        ).strip(),
        encoding="utf-8",
    )

    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("BOOKSHELF_DATABASE_URL", "sqlite+aiosqlite:///./env.db")

    config = load_config(
        config_path=configs_dir / "custom.yaml",
        profile="dev",
        overrides={"http": {"port": 9000}},
    )

    assert config.app.env == "dev"
    assert config.http.host == "0.0.0.0"
    assert config.http.port == 9000
    assert config.storage.database_url == f"sqlite+aiosqlite:///{(tmp_path / 'env.db').resolve().as_posix()}"


def test_env_port_is_coerced(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("BOOKSHELF_HTTP_PORT", "9100")

    assert load_config().http.port == 9100


def test_config_path_from_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    custom = tmp_path / "bookshelf.yaml"
    custom.write_text("app:\n  env: local\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("BOOKSHELF_CONFIG_PATH", str(custom))

    assert load_config().app.env == "local"


def test_missing_explicit_config_file_fails(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)

    with pytest.raises(FileNotFoundError):
        load_config(config_path=tmp_path / "missing.yaml")


def test_dotenv_does_not_override_real_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / ".env").write_text('BOOKSHELF_ENV="dev"\nBOOKSHELF_HTTP_HOST=0.0.0.0\n', encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("BOOKSHELF_ENV", "local")

    config = load_config()

    assert config.app.env == "local"
    assert config.http.host == "0.0.0.0"


def test_masked_env_snapshot_hides_password(monkeypatch: pytest.MonkeyPatch) -> None:
    url = "postgresql+asyncpg://user:secret@db:5432/books"
    monkeypatch.setenv("BOOKSHELF_DATABASE_URL", url)
    config = AppConfigRoot.model_validate({"storage": {"database_url": url}})

    snapshot = masked_env_snapshot(config)

    assert "secret" not in (snapshot["BOOKSHELF_DATABASE_URL"] or "")
    assert "secret" not in (snapshot["storage.database_url"] or "")
    assert snapshot["BOOKSHELF_HTTP_PORT"] is None

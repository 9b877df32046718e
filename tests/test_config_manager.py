"""Unit tests for configuration management."""

from pathlib import Path

import pytest

from docman.config import (
    ConfigError,
    ConfigManager,
    DocmanConfig,
    env_overrides,
    flatten_for_env,
    resolve_with_precedence,
)


def _fresh_manager(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, env: dict[str, str] | None = None
) -> ConfigManager:
    monkeypatch.setenv("HOME", str(tmp_path))
    return ConfigManager(env=env or {})


def test_ensure_exists_creates_default_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)

    path = manager.ensure_exists()

    assert path == tmp_path / ".docman" / "config.yaml"
    text = path.read_text(encoding="utf-8")
    assert "Docman configuration file" in text
    assert "Last updated:" in text

    config = manager.load(include_env=False)
    assert isinstance(config, DocmanConfig)
    assert config.store.batch_size == 999


def test_load_without_file_uses_defaults(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)

    config = manager.load()

    assert not manager.config_path.exists()
    assert config.store.provider == "sqlite"
    assert config.search.page_size == 100
    assert config.search.fuzzy_limit == 25


def test_resolve_with_precedence_respects_order(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env = {"DOCMAN__STORE__BATCH_SIZE": "500", "DOCMAN__SEARCH__FUZZY_LIMIT": "10"}
    manager = _fresh_manager(tmp_path, monkeypatch, env)
    manager.save({"store": {"provider": "mariadb", "batch_size": 200}})

    config = manager.load(overrides={"search.fuzzy_limit": 5})

    assert config.store.provider == "mariadb"
    # Environment overrides the file
    assert config.store.batch_size == 500
    # Explicit overrides win over the environment
    assert config.search.fuzzy_limit == 5


def test_environment_is_ignored_when_excluded(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch, {"DOCMAN__STORE__ECHO": "true"})

    assert manager.load().store.echo is True
    assert manager.load(include_env=False).store.echo is False


def test_invalid_yaml_raises_config_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.ensure_exists()

    manager.config_path.write_text("- not-a-mapping", encoding="utf-8")

    with pytest.raises(ConfigError):
        manager.load()


def test_env_overrides_parse_scalars() -> None:
    overrides = env_overrides(
        {
            "DOCMAN__STORE__PORT": "3307",
            "DOCMAN__SCANNING__INCLUDE_HIDDEN": "yes",
            "UNRELATED": "1",
        }
    )

    assert overrides == {"store": {"port": 3307}, "scanning": {"include_hidden": True}}


def test_flatten_for_env_renders_defaults() -> None:
    flat = flatten_for_env(DocmanConfig())

    assert flat["DOCMAN__STORE__PROVIDER"] == "sqlite"
    assert flat["DOCMAN__STORE__BATCH_SIZE"] == "999"
    assert flat["DOCMAN__LOGGING__FILE"] == "null"


@pytest.mark.parametrize(
    "overrides",
    [
        {"store": {"batch_size": 0}},
        {"store": {"provider": "oracle"}},
        {"search": {"page_size": "many"}},
        {"store": {"unknown": 1}},
    ],
)
def test_resolve_with_precedence_invalid_value_raises(overrides: dict) -> None:
    with pytest.raises(ConfigError):
        resolve_with_precedence(defaults=DocmanConfig(), file_overrides=overrides)

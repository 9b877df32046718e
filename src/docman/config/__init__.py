"""Configuration management for Docman."""

from __future__ import annotations

import os
import textwrap
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

import yaml

from .exceptions import ConfigError
from .models import (
    DocmanConfig,
    LoggingSettings,
    ScanningSettings,
    SearchSettings,
    StoreSettings,
)
from .resolver import ENV_PREFIX, env_overrides, flatten_for_env, resolve_with_precedence

DEFAULT_CONFIG_PATH = Path("~/.docman/config.yaml")
_CONFIG_HEADER = textwrap.dedent(
    """\
    # Docman configuration file
    # Generated automatically. Values may be overridden with DOCMAN__SECTION__KEY
    # environment variables (for example DOCMAN__STORE__PROVIDER=mariadb).
    """
)


class ConfigManager:
    """Load and persist configuration data, applying precedence rules.

    Sources are merged as defaults < YAML file < environment < explicit
    overrides.
    """

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._config_path = (config_path or DEFAULT_CONFIG_PATH).expanduser()
        self._env = env if env is not None else os.environ

    @property
    def config_path(self) -> Path:
        """Return the resolved configuration path."""
        return self._config_path

    def load(
        self,
        *,
        overrides: Mapping[str, Any] | None = None,
        include_env: bool = True,
        ensure_file: bool = False,
    ) -> DocmanConfig:
        """Load configuration data, applying precedence rules.

        Args:
            overrides: Explicit overrides keyed by dotted paths such as
                ``store.batch_size``.
            include_env: Whether ``DOCMAN__`` environment variables are applied.
            ensure_file: Write a default configuration file when none exists.

        Returns:
            DocmanConfig: Validated configuration.

        Raises:
            ConfigError: If the file cannot be parsed or values are invalid.
        """
        if ensure_file:
            self.ensure_exists()

        return resolve_with_precedence(
            defaults=DocmanConfig(),
            file_overrides=self._read_file(),
            env_overrides=env_overrides(self._env) if include_env else None,
            cli_overrides=overrides,
        )

    def save(self, config: DocmanConfig | Mapping[str, Any]) -> None:
        """Persist configuration data to disk."""
        if isinstance(config, DocmanConfig):
            data = config.model_dump(mode="python")
        else:
            data = dict(config)
        self._write_file(data)

    def ensure_exists(self) -> Path:
        """Create a configuration file with defaults if one does not exist."""
        path = self._config_path
        if not path.exists():
            self._write_file(DocmanConfig().model_dump(mode="python"))
        return path

    # Internal helpers -------------------------------------------------

    def _read_file(self) -> dict[str, Any]:
        if not self._config_path.exists():
            return {}

        try:
            raw = yaml.safe_load(self._config_path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse configuration file: {exc}") from exc

        if not isinstance(raw, dict):
            raise ConfigError("Configuration file must contain a mapping at the top level.")

        return raw

    def _write_file(self, data: Mapping[str, Any]) -> None:
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        serialized = yaml.safe_dump(dict(data), sort_keys=False)
        stamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        self._config_path.write_text(
            _CONFIG_HEADER + f"# Last updated: {stamp}\n" + serialized, encoding="utf-8"
        )


__all__ = [
    "ConfigManager",
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "ENV_PREFIX",
    "DocmanConfig",
    "StoreSettings",
    "SearchSettings",
    "ScanningSettings",
    "LoggingSettings",
    "env_overrides",
    "flatten_for_env",
    "resolve_with_precedence",
]

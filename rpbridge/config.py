"""Bridge configuration loading helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping

import tomllib

from pydantic import BaseModel, Field

CONFIG_FILE = Path.home() / ".config" / "rpbridge" / "config.toml"
DIAGNOSTIC_ENV = "RPBRIDGE_DIAGNOSTIC_LOG"


class BridgeConfig(BaseModel):
    """Shape of the bridge configuration file."""

    diagnostic_path: Path | None = None
    plugins: dict[str, bool] = Field(default_factory=dict)

    def plugin_filters(self) -> tuple[set[str] | None, set[str]]:
        """Return allow/block lists for plugin enablement."""

        allowed = {name for name, flag in self.plugins.items() if flag}
        disabled = {name for name, flag in self.plugins.items() if not flag}
        allowlist: set[str] | None = allowed or None
        return allowlist, disabled

    def is_plugin_enabled(self, name: str) -> bool:
        allowlist, disabled = self.plugin_filters()
        if allowlist is not None:
            return name in allowlist
        return name not in disabled

    def with_diagnostic_path(self, path: Path | None) -> BridgeConfig:
        """Return a copy pointing diagnostics at ``path`` (``None`` disables)."""

        return self.model_copy(update={"diagnostic_path": path})


def load_config(environ: Mapping[str, str] | None = None) -> BridgeConfig:
    """Load configuration from disk and the environment; fall back to defaults."""

    try:
        data = _read_config_file()
    except FileNotFoundError:
        data = {}
    except (tomllib.TOMLDecodeError, OSError):
        data = {}

    config = BridgeConfig(
        diagnostic_path=data.get("diagnostic_path"),
        plugins=data.get("plugins", {}),
    )
    return _apply_environment(config, os.environ if environ is None else environ)


def _apply_environment(config: BridgeConfig, environ: Mapping[str, str]) -> BridgeConfig:
    if DIAGNOSTIC_ENV not in environ:
        return config
    value = environ[DIAGNOSTIC_ENV].strip()
    return config.with_diagnostic_path(Path(value).expanduser() if value else None)


def _read_config_file() -> dict[str, object]:
    with CONFIG_FILE.open("rb") as handle:
        raw = tomllib.load(handle)
    data: dict[str, object] = {}
    if isinstance(raw, dict):
        diagnostic_path = raw.get("diagnostic_path")
        if isinstance(diagnostic_path, str) and diagnostic_path:
            data["diagnostic_path"] = Path(diagnostic_path).expanduser()
        plugins = raw.get("plugins")
        if isinstance(plugins, dict):
            parsed_plugins: dict[str, bool] = {}
            for name, enabled in plugins.items():
                parsed_plugins[str(name)] = bool(enabled)
            data["plugins"] = parsed_plugins
    return data

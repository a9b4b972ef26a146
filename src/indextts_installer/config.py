"""Configuration loading for the IndexTTS installer.

Precedence, lowest first: model defaults, ``config.yaml``, ``INDEXTTS_INSTALLER_*``
environment variables.
"""

import os
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import yaml

from indextts_installer.models.config import AppConfig

ENV_PREFIX = "INDEXTTS_INSTALLER_"


def default_config_path() -> Path:
    """config.yaml location: $INDEXTTS_INSTALLER_CONFIG_PATH, else the per-user config dir."""
    if override := os.getenv(f"{ENV_PREFIX}CONFIG_PATH"):
        return Path(override).expanduser()

    if sys.platform == "win32":
        base = Path(os.getenv("APPDATA", str(Path.home()))) / "IndexTTS Installer"
    elif sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support" / "IndexTTS Installer"
    else:
        base = Path(os.getenv("XDG_CONFIG_HOME", str(Path.home() / ".config"))) / "indextts-installer"
    return base / "config.yaml"


def _set_port(config: AppConfig, value: str) -> None:
    config.server.port = int(value)


def _set_host(config: AppConfig, value: str) -> None:
    config.server.host = value


def _set_language(config: AppConfig, value: str) -> None:
    if value in ("en", "zh"):
        config.ui.preferred_language = value  # type: ignore[assignment]


def _set_data_dir(config: AppConfig, value: str) -> None:
    config.paths.data_dir = Path(value).expanduser()
    # logs_dir follows data_dir
    config.paths.logs_dir = None
    config.paths.model_post_init(None)


def _set_repo_url(config: AppConfig, value: str) -> None:
    config.installer.repo_url = value


def _set_step_delay(config: AppConfig, value: str) -> None:
    config.installer.step_delay = max(0.0, float(value))


def _set_log_level(config: AppConfig, value: str) -> None:
    if value.upper() in ("INFO", "DEBUG", "TRACE"):
        config.advanced.log_level = value.upper()  # type: ignore[assignment]


ENV_OVERRIDES: dict[str, Callable[[AppConfig, str], None]] = {
    "SERVER_PORT": _set_port,
    "SERVER_HOST": _set_host,
    "UI_PREFERRED_LANGUAGE": _set_language,
    "DATA_DIR": _set_data_dir,
    "REPO_URL": _set_repo_url,
    "STEP_DELAY": _set_step_delay,
    "LOG_LEVEL": _set_log_level,
}


class ConfigManager:
    """Reads and writes config.yaml and caches the merged AppConfig."""

    def __init__(self, config_path: Path | None = None) -> None:
        self.config_path = config_path or default_config_path()
        self._config: AppConfig | None = None

    def load(self) -> AppConfig:
        """Build a fresh AppConfig from the file (if any) plus environment overrides."""
        data: dict[str, Any] = {}
        if self.config_path.exists():
            with open(self.config_path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}

        config = AppConfig.model_validate(data)
        for suffix, apply in ENV_OVERRIDES.items():
            value = os.getenv(f"{ENV_PREFIX}{suffix}")
            if value:
                apply(config, value)
        return config

    def save(self, config: AppConfig) -> None:
        """Write ``config`` to config.yaml, creating the directory if needed."""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        payload = config.model_dump(mode="json", exclude_none=True)
        with open(self.config_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(payload, f, allow_unicode=True, sort_keys=False)

    def get_config(self) -> AppConfig:
        if self._config is None:
            self._config = self.load()
        return self._config

    def reload(self) -> AppConfig:
        self._config = self.load()
        return self._config


_config_manager = ConfigManager()


def get_config() -> AppConfig:
    """Process-wide configuration, loaded on first use."""
    return _config_manager.get_config()


def reload_config() -> AppConfig:
    return _config_manager.reload()


def save_config(config: AppConfig) -> None:
    _config_manager.save(config)

"""Internationalization service for the IndexTTS installer."""

import json
from pathlib import Path
from typing import Any

from indextts_installer.logger import get_logger

logger = get_logger(__name__)


class I18nService:
    """
    Dot-path lookup into a JSON catalog whose leaves map language codes to text.

    ``installation.steps.cloning`` resolves to
    ``{"en": "Cloning {app_name} source code...", "zh": "..."}``; a missing or
    unreadable catalog degrades to returning keys rather than failing requests.
    """

    def __init__(self, i18n_file: Path) -> None:
        self.i18n_file = i18n_file
        self._data: dict[str, Any] = {}
        self._load()

    def _load(self) -> None:
        try:
            text = self.i18n_file.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.warning("Translation catalog missing", path=str(self.i18n_file))
            self._data = {}
            return
        except OSError as e:
            logger.error("Translation catalog unreadable", path=str(self.i18n_file), error=str(e))
            self._data = {}
            return

        try:
            self._data = json.loads(text)
        except json.JSONDecodeError as e:
            logger.error("Translation catalog is not valid JSON", path=str(self.i18n_file), error=str(e))
            self._data = {}
            return
        logger.debug("Loaded translation catalog", path=str(self.i18n_file), sections=list(self._data))

    def get_block(self, path: str) -> dict[str, Any]:
        """Return the subtree at a dot path, or {} if it is missing or a leaf."""
        node: Any = self._data
        for part in path.split("."):
            if not isinstance(node, dict):
                return {}
            node = node.get(part)
        return node if isinstance(node, dict) else {}

    def translate(self, path: str, /, lang: str = "en", default: str | None = None, **params: object) -> str:
        """
        Translate a dot path.

        Args:
            path: Dot path to a language-keyed leaf (e.g., "launch.path_missing")
            lang: Language code
            default: Returned (formatted) when the path has no translation
            **params: Values substituted into {placeholders}

        Returns:
            Localized text, English fallback, default, or the path itself
        """
        leaf = self.get_block(path)
        text = leaf.get(lang) or leaf.get("en") or default or path

        if not params:
            return str(text)
        try:
            return str(text).format(**params)
        except (KeyError, IndexError, ValueError):
            logger.warning(f"Failed to format translation {path}", params=list(params))
            return str(text)

    def reload(self) -> None:
        """Reload i18n data from file."""
        self._load()

"""JSON-backed settings store."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from ferry.core.reporter import DEFAULT_INTERVAL
from ferry.core.transfer import DEFAULT_CHUNK_SIZE
from ferry.utils import xdg_config_home

log = logging.getLogger(__name__)

_SETTINGS_DIR = "ferry"
_SETTINGS_FILE = "settings.json"

CHUNK_SIZE_KEY = "transfer.chunk_size"
INTERVAL_KEY = "progress.interval_ms"


class Settings:
    """Persistent settings backed by a JSON file.

    Uses dot-notation keys for nested access:
        settings.get("transfer.chunk_size")  # reads data["transfer"]["chunk_size"]
        settings.set("progress.interval_ms", 250)  # writes + saves
    """

    _instance: Settings | None = None

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or (xdg_config_home() / _SETTINGS_DIR / _SETTINGS_FILE)
        self._data: dict[str, Any] = {}
        self._load()

    @classmethod
    def instance(cls) -> Settings:
        """Return the singleton settings instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str, default: Any = None) -> Any:
        """Get a value by dot-notation key."""
        parts = key.split(".")
        node: Any = self._data
        for part in parts:
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def set(self, key: str, value: Any) -> None:
        """Set a value by dot-notation key and persist to disk."""
        parts = key.split(".")
        node = self._data
        for part in parts[:-1]:
            if part not in node or not isinstance(node[part], dict):
                node[part] = {}
            node = node[part]
        node[parts[-1]] = value
        self._save()

    @property
    def chunk_size(self) -> int:
        """Bytes per stream read when copying files."""
        return self._positive_int(CHUNK_SIZE_KEY, DEFAULT_CHUNK_SIZE)

    @property
    def progress_interval(self) -> float:
        """Minimum seconds between forwarded progress snapshots."""
        default_ms = int(DEFAULT_INTERVAL * 1000)
        return self._positive_int(INTERVAL_KEY, default_ms) / 1000

    def _positive_int(self, key: str, default: int) -> int:
        value = self.get(key, default)
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            log.warning("Ignoring invalid %s=%r, using %d", key, value, default)
            return default
        return value

    def _load(self) -> None:
        """Load settings from disk, gracefully handling errors."""
        if not self._path.exists():
            return
        try:
            self._data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            log.warning("Could not load settings from %s: %s", self._path, e)
            self._data = {}

    def _save(self) -> None:
        """Persist settings to disk."""
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(
                json.dumps(self._data, indent=2, ensure_ascii=False) + "\n",
                encoding="utf-8",
            )
        except OSError as e:
            log.warning("Could not save settings to %s: %s", self._path, e)

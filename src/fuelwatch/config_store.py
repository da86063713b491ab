"""Configuration persistence."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

_logger = logging.getLogger(__name__)


class MemoryConfigStore:
    """Keeps the configuration blob in memory."""

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        self._data: dict[str, Any] | None = dict(data) if data is not None else None

    def load(self) -> Mapping[str, Any] | None:
        return dict(self._data) if self._data is not None else None

    def save(self, data: Mapping[str, Any]) -> None:
        self._data = dict(data)


class JsonConfigStore:
    """Stores the configuration blob as a JSON object in a file.

    A missing, unreadable or malformed file loads as ``None`` so the
    caller falls back to defaults.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Mapping[str, Any] | None:
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            _logger.error("Failed to load config from %s: %s", self._path, exc)
            return None
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            _logger.error("Failed to load config from %s: %s", self._path, exc)
            return None
        if not isinstance(data, dict):
            _logger.error("Config file %s does not contain a JSON object", self._path)
            return None
        return data

    def save(self, data: Mapping[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(dict(data), indent=2, sort_keys=True), encoding="utf-8")

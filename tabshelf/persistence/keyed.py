"""File-backed storage port: one JSON object keyed by storage key."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from ._base import JsonStore


class KeyedJsonStore(JsonStore):
    """Storage keys mapped to JSON payloads in a single file."""

    def __init__(self, path: Path) -> None:
        super().__init__(path)

    def _default(self) -> dict:
        return {}

    def get(self, key: str) -> Any:
        """Stored payload for *key*, or None."""
        data = self.load_raw()
        if not isinstance(data, dict):
            return None
        return data.get(key)

    def set(self, key: str, value: Any) -> None:
        """Store *value* under *key*, keeping the other keys."""
        data = self.load_raw()
        if not isinstance(data, dict):
            data = {}
        data[key] = value
        self.save_raw(data)

    def keys(self) -> list[str]:
        data = self.load_raw()
        return sorted(data) if isinstance(data, dict) else []

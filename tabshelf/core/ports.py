"""Interfaces the container consumes and produces.

The engine never touches files, settings or UI directly: it talks to a
storage port, reads one preference through a settings port, and reports
every successful sync to a change callback.
"""

from __future__ import annotations

from typing import Any, Protocol


class StoragePort(Protocol):
    """Key/value store for JSON payloads."""

    def get(self, key: str) -> Any: ...

    def set(self, key: str, value: Any) -> None:
        """Persist *value* under *key*; raise (typically OSError) on failure."""
        ...


class SettingsPort(Protocol):
    """Read/write access to user settings keyed by setting id."""

    def get(self, setting_id: str) -> dict[str, Any] | None: ...

    def set(self, setting_id: str, value: dict[str, Any]) -> None: ...


class TabsChangedFn(Protocol):
    """Called with the container document after every successful sync."""

    def __call__(self, document: dict[str, Any]) -> None: ...

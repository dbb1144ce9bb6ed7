"""Shared test fixtures for the tabshelf test suite."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from tabshelf.core.container import TabContainer
from tabshelf.persistence import MemoryStore


class DictSettings:
    """Settings port backed by a plain dict."""

    def __init__(self, values: dict[str, dict[str, Any]] | None = None) -> None:
        self.values = dict(values or {})

    def get(self, setting_id: str) -> dict[str, Any] | None:
        value = self.values.get(setting_id)
        return dict(value) if value is not None else None

    def set(self, setting_id: str, value: dict[str, Any]) -> None:
        self.values[setting_id] = dict(value)


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for file-based tests."""
    return tmp_path


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def settings() -> DictSettings:
    return DictSettings()


@pytest.fixture
def container(store: MemoryStore, settings: DictSettings) -> TabContainer:
    """An empty container wired to the in-memory store."""
    return TabContainer(store, settings)


@pytest.fixture
def abc_container(container: TabContainer) -> TabContainer:
    """Generic tabs A, B, C (urls a, b, c), nothing pinned."""
    container.add_tabs(
        [
            {"label": "A", "url": "a"},
            {"label": "B", "url": "b"},
            {"label": "C", "url": "c"},
        ]
    )
    return container


@pytest.fixture
def org_container(container: TabContainer) -> TabContainer:
    """Generic A, then B and C for org o1, then D for org o2."""
    container.add_tabs(
        [
            {"label": "A", "url": "a"},
            {"label": "B", "url": "b", "org": "o1"},
            {"label": "C", "url": "c", "org": "o1"},
            {"label": "D", "url": "d", "org": "o2"},
        ]
    )
    return container

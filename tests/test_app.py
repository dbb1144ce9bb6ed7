"""Tests for tabshelf.app -- the TabShelf composition root."""

from __future__ import annotations

import pytest

from tabshelf.app import TabShelf
from tabshelf.constants import STORAGE_KEY
from tabshelf.errors import NotInitializedError
from tabshelf.persistence import KeyedJsonStore, MemoryStore


class TestLifecycle:
    def test_container_before_initialize(self):
        shelf = TabShelf(MemoryStore())
        assert not shelf.is_initialized
        with pytest.raises(NotInitializedError):
            shelf.container

    def test_initialize_seeds_defaults(self):
        store = MemoryStore()
        container = TabShelf(store).initialize()
        assert [t.label for t in container] == ["⚡", "Flows", "Users"]
        assert len(store.get(STORAGE_KEY)["tabs"]) == 3

    def test_initialize_loads_saved_tabs(self):
        store = MemoryStore({STORAGE_KEY: {"tabs": [{"label": "A", "url": "a"}], "pinned": 1}})
        container = TabShelf(store).initialize()
        assert [t.label for t in container] == ["A"]
        assert container.pinned == 1
        assert store.writes == 0

    def test_empty_saved_document_is_kept(self):
        store = MemoryStore({STORAGE_KEY: {"tabs": [], "pinned": 0}})
        assert len(TabShelf(store).initialize()) == 0

    def test_get_or_create(self):
        shelf = TabShelf(MemoryStore())
        container = shelf.get_or_create()
        assert shelf.get_or_create() is container
        assert shelf.container is container


class TestListeners:
    def test_subscribe(self):
        shelf = TabShelf(MemoryStore())
        seen = []
        shelf.subscribe(seen.append)
        shelf.subscribe(seen.append)
        shelf.initialize().add_tab({"label": "A", "url": "a"})
        # one document for the defaults, one for the new tab
        assert len(seen) == 2
        assert seen[-1]["tabs"][-1] == {"label": "A", "url": "a"}

    def test_unsubscribe(self):
        shelf = TabShelf(MemoryStore())
        seen = []
        shelf.subscribe(seen.append)
        container = shelf.initialize()
        shelf.unsubscribe(seen.append)
        container.add_tab({"label": "A", "url": "a"})
        assert len(seen) == 1


class TestFromPaths:
    def test_explicit_paths(self, tmp_path):
        data = tmp_path / "tabs.json"
        shelf = TabShelf.from_paths(data, tmp_path / "prefs.yaml")
        shelf.initialize()
        assert KeyedJsonStore(data).get(STORAGE_KEY)["pinned"] == 0
        assert (tmp_path / "prefs.yaml").exists()

    def test_data_path_from_preferences(self, tmp_path):
        prefs = tmp_path / "prefs.yaml"
        custom = tmp_path / "custom.json"
        prefs.write_text(f'storage:\n  path: "{custom}"\n')
        TabShelf.from_paths(prefs_path=prefs).initialize()
        assert custom.exists()

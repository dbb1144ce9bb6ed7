"""Composition root: wires storage, settings and listeners to one container."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from .constants import STORAGE_KEY
from .core.container import TabContainer
from .core.ports import SettingsPort, StoragePort, TabsChangedFn
from .errors import NotInitializedError
from .log import logger
from .persistence import KeyedJsonStore
from .preferences import PREFS_PATH, PreferenceSettings, load_preferences


class TabShelf:
    """Owns the single :class:`TabContainer` of a store.

    Listeners registered with :meth:`subscribe` receive the saved document
    after every successful sync.
    """

    def __init__(
        self,
        storage: StoragePort,
        settings: SettingsPort | None = None,
        *,
        storage_key: str = STORAGE_KEY,
    ) -> None:
        self.storage = storage
        self.settings = settings
        self.storage_key = storage_key
        self._container: TabContainer | None = None
        self._listeners: list[TabsChangedFn] = []

    @classmethod
    def from_paths(cls, data_path: Path | None = None, prefs_path: Path | None = None) -> TabShelf:
        """Shelf backed by the tabs file and the YAML preferences."""
        prefs_path = prefs_path or PREFS_PATH
        prefs = load_preferences(prefs_path)
        data_path = data_path or prefs.storage.data_path
        logger.debug("tabs file %s, preferences %s", data_path, prefs_path)
        return cls(KeyedJsonStore(data_path), PreferenceSettings(prefs_path))

    @property
    def container(self) -> TabContainer:
        if self._container is None:
            raise NotInitializedError("Call initialize() before using the shelf")
        return self._container

    @property
    def is_initialized(self) -> bool:
        return self._container is not None

    def initialize(self) -> TabContainer:
        """Build the container and load the stored tabs (or the defaults)."""
        container = TabContainer(
            self.storage,
            self.settings,
            storage_key=self.storage_key,
            on_change=self._notify,
        )
        if not container.load_saved_tabs():
            container.set_default_tabs()
        self._container = container
        logger.debug("shelf ready with %d tabs", len(container))
        return container

    def get_or_create(self) -> TabContainer:
        if self._container is None:
            return self.initialize()
        return self._container

    # -- change listeners -----------------------------------------------------

    def subscribe(self, fn: TabsChangedFn) -> None:
        if fn not in self._listeners:
            self._listeners.append(fn)

    def unsubscribe(self, fn: TabsChangedFn) -> None:
        if fn in self._listeners:
            self._listeners.remove(fn)

    def _notify(self, document: dict[str, Any]) -> None:
        for fn in list(self._listeners):
            fn(document)

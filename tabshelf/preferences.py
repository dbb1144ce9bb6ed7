"""User preferences for tabshelf.

Loads sorting and storage settings from ~/.tabshelf/preferences.yaml.
Falls back to sensible defaults if the file doesn't exist or is invalid.
Creates a default file on first run so users can discover and edit it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .constants import DEFAULT_DATA_PATH, DEFAULT_PREFS_PATH, KEEP_SORTED
from .core.sorting import SortKey
from .errors import InvalidSortKeyError
from .log import logger

PREFS_PATH = DEFAULT_PREFS_PATH

_DEFAULT_YAML = """\
# tabshelf preferences
# Delete this file to reset to defaults.

sorting:
  keep_sorted: false             # false, or label / url / org / click-count / click-date
  ascending: true                # direction used when keep_sorted is on

storage:
  path: ""                       # tabs file (empty = ~/.tabshelf/tabs.json)
"""


@dataclass
class SortingPreferences:
    """Automatic sorting of the unpinned tabs."""

    keep_sorted: str | bool = False  # sort key, or False when disabled
    ascending: bool = True


@dataclass
class StoragePreferences:
    """Where the tabs document is stored."""

    path: str = ""  # Empty means DEFAULT_DATA_PATH

    @property
    def data_path(self) -> Path:
        return Path(self.path).expanduser() if self.path else DEFAULT_DATA_PATH


@dataclass
class Preferences:
    """Top-level tabshelf preferences."""

    sorting: SortingPreferences = field(default_factory=SortingPreferences)
    storage: StoragePreferences = field(default_factory=StoragePreferences)


def _parse_keep_sorted(value: Any) -> str | bool:
    if value is None or value is False:
        return False
    try:
        return SortKey.parse(str(value)).value
    except InvalidSortKeyError:
        logger.warning("ignoring unknown keep_sorted value %r", value)
        return False


def load_preferences(path: Path | None = None) -> Preferences:
    """Load preferences from YAML file.

    Falls back to sensible defaults if the file doesn't exist or is invalid.
    Creates a default preferences file on first run.
    """
    path = path or PREFS_PATH
    prefs = Preferences()

    if path.exists():
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
            if isinstance(data.get("sorting"), dict):
                sdata = data["sorting"]
                if "keep_sorted" in sdata:
                    prefs.sorting.keep_sorted = _parse_keep_sorted(sdata["keep_sorted"])
                if "ascending" in sdata:
                    prefs.sorting.ascending = bool(sdata["ascending"])
            if isinstance(data.get("storage"), dict):
                stdata = data["storage"]
                if "path" in stdata:
                    prefs.storage.path = str(stdata["path"] or "")
        except (OSError, yaml.YAMLError, AttributeError):
            logger.warning("invalid preferences file %s, using defaults", path, exc_info=True)
    else:
        # Create default file for user to customize
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(_DEFAULT_YAML, encoding="utf-8")
        except OSError:
            logger.debug("could not create preferences file %s", path, exc_info=True)

    return prefs


def _set_value(text: str, section: str, key: str, value: str) -> str:
    """Replace ``key`` inside ``section``, adding either when missing."""
    if re.search(rf"^\s+{key}:", text, re.MULTILINE):
        # Replace existing key line, preserving trailing comments
        return re.sub(
            rf"^(\s+{key}:)\s*(?:\"[^\"]*\"|\S+)(.*?)$",
            rf"\g<1> {value}\g<2>",
            text,
            count=1,
            flags=re.MULTILINE,
        )
    if re.search(rf"^{section}:", text, re.MULTILINE):
        return re.sub(
            rf"^({section}:.*)$",
            rf"\g<1>\n  {key}: {value}",
            text,
            count=1,
            flags=re.MULTILINE,
        )
    return text.rstrip() + f"\n\n{section}:\n  {key}: {value}\n"


def save_keep_sorted(
    keep_sorted: str | bool, ascending: bool | None = None, path: Path | None = None
) -> None:
    """Persist the keep-sorted preference to the preferences file.

    Surgically updates only the sorting values, preserving the rest of the
    file (including user comments) as-is.
    """
    path = path or PREFS_PATH
    try:
        if path.exists():
            text = path.read_text(encoding="utf-8")
        else:
            path.parent.mkdir(parents=True, exist_ok=True)
            text = _DEFAULT_YAML

        value = _parse_keep_sorted(keep_sorted)
        text = _set_value(text, "sorting", "keep_sorted", value if value else "false")
        if ascending is not None:
            text = _set_value(text, "sorting", "ascending", "true" if ascending else "false")

        path.write_text(text, encoding="utf-8")
    except OSError:
        logger.warning("could not save preferences to %s", path, exc_info=True)


class PreferenceSettings:
    """Settings port backed by the preferences file.

    Only the ``keep_sorted`` setting is known; other ids read as None.
    """

    def __init__(self, path: Path | None = None) -> None:
        self.path = path or PREFS_PATH

    def get(self, setting_id: str) -> dict[str, Any] | None:
        if setting_id != KEEP_SORTED:
            return None
        sorting = load_preferences(self.path).sorting
        return {"enabled": sorting.keep_sorted, "ascending": sorting.ascending}

    def set(self, setting_id: str, value: dict[str, Any]) -> None:
        if setting_id != KEEP_SORTED:
            raise KeyError(f"Unknown setting: {setting_id}")
        save_keep_sorted(value.get("enabled", False), value.get("ascending"), self.path)

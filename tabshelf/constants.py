"""Constants shared across the tabshelf package."""

from __future__ import annotations

from pathlib import Path

# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------

#: Key under which the container document is stored.
STORAGE_KEY = "againWhySalesforce"

TABSHELF_HOME = Path.home() / ".tabshelf"
DEFAULT_DATA_PATH = TABSHELF_HOME / "tabs.json"
DEFAULT_PREFS_PATH = TABSHELF_HOME / "preferences.yaml"

# ---------------------------------------------------------------------------
# Document keys
# ---------------------------------------------------------------------------

KEY_LABEL = "label"
KEY_URL = "url"
KEY_ORG = "org"
KEY_CLICK_COUNT = "click-count"
KEY_CLICK_DATE = "click-date"

#: Usage metadata carried by a single tab.
TAB_METADATA_KEYS = frozenset({KEY_CLICK_COUNT, KEY_CLICK_DATE})
#: Every key a serialized tab may contain.
TAB_ALLOWED_KEYS = frozenset({KEY_LABEL, KEY_URL, KEY_ORG}) | TAB_METADATA_KEYS

KEY_TABS = "tabs"
KEY_PINNED = "pinned"

# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

#: Settings id of the "always keep the tabs sorted" preference.
KEEP_SORTED = "keep_sorted"

# ---------------------------------------------------------------------------
# Hosts
# ---------------------------------------------------------------------------

HTTPS = "https://"
SETUP_LIGHTNING = "/lightning/setup/"
LIGHTNING_FORCE_COM = ".lightning.force.com"
MY_SALESFORCE_SETUP_COM = ".my.salesforce-setup.com"
MY_SALESFORCE_COM = ".my.salesforce.com"
SUPPORTED_HOST_SUFFIXES = (
    LIGHTNING_FORCE_COM,
    MY_SALESFORCE_SETUP_COM,
    MY_SALESFORCE_COM,
)

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

#: Shortcuts seeded when the store holds no document yet.
DEFAULT_TABS: tuple[dict[str, str], ...] = (
    {KEY_LABEL: "⚡", KEY_URL: "/lightning"},
    {KEY_LABEL: "Flows", KEY_URL: "/lightning/app/standard__FlowsApp"},
    {KEY_LABEL: "Users", KEY_URL: "ManageUsers/home"},
)

"""Reading and writing container documents.

Two schemas are accepted on read::

    {"tabs": [ {tab}, ... ], "pinned": 2}    # current
    [ {tab}, ... ]                           # legacy, pinned = 0

Writes always use the current schema.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from ..constants import KEY_PINNED, KEY_TABS, TAB_METADATA_KEYS
from ..errors import MalformedImportError
from .tab import Tab


@dataclass
class ParsedDocument:
    """A container document split into its parts."""

    tabs: list[Any] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)
    is_legacy: bool = False

    @property
    def pinned(self) -> int:
        return coerce_pinned(self.metadata.get(KEY_PINNED))


def coerce_pinned(value: Any) -> int:
    """Non-negative int from a stored pinned count; anything else is 0."""
    if isinstance(value, int) and not isinstance(value, bool):
        return max(0, value)
    return 0


def parse_document(document: Any) -> ParsedDocument:
    """Parse a JSON string or an already-decoded document.

    Raises:
        MalformedImportError: If *document* is not valid JSON, or is neither
            a list nor an object holding a ``tabs`` list.
    """
    if isinstance(document, (str, bytes, bytearray)):
        try:
            document = json.loads(document)
        except json.JSONDecodeError as exc:
            raise MalformedImportError(f"Not a valid JSON document: {exc}") from exc
    if isinstance(document, list):
        return ParsedDocument(tabs=list(document), is_legacy=True)
    if isinstance(document, Mapping):
        tabs = document.get(KEY_TABS, [])
        if not isinstance(tabs, list):
            raise MalformedImportError(f"'{KEY_TABS}' must be a list")
        metadata = {k: v for k, v in document.items() if k != KEY_TABS}
        return ParsedDocument(tabs=list(tabs), metadata=metadata)
    raise MalformedImportError(f"Unsupported document type: {type(document).__name__}")


def strip_metadata(records: Iterable[Any]) -> list[Any]:
    """Drop usage metadata from every record mapping (other items pass through)."""
    return [
        {k: v for k, v in rec.items() if k not in TAB_METADATA_KEYS}
        if isinstance(rec, Mapping)
        else rec
        for rec in records
    ]


def build_document(tabs: Iterable[Tab], pinned: int) -> dict[str, Any]:
    return {KEY_TABS: [tab.to_json() for tab in tabs], KEY_PINNED: pinned}

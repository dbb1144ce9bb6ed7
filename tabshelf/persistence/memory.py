"""In-memory storage port."""

from __future__ import annotations

import json
from typing import Any


class MemoryStore:
    """Dict-backed storage port.

    Payloads round-trip through JSON on the way in and out, so callers never
    share state with the store and non-JSON values fail the same way the
    file store does.  Set ``fail_writes`` to make every ``set`` raise.
    """

    def __init__(self, initial: dict[str, Any] | None = None, *, fail_writes: bool = False) -> None:
        self._data: dict[str, str] = {}
        self.fail_writes = fail_writes
        self.writes = 0
        for key, value in (initial or {}).items():
            self._data[key] = json.dumps(value)

    def get(self, key: str) -> Any:
        raw = self._data.get(key)
        return None if raw is None else json.loads(raw)

    def set(self, key: str, value: Any) -> None:
        if self.fail_writes:
            raise OSError(f"write to {key!r} refused")
        self._data[key] = json.dumps(value)
        self.writes += 1

    def __contains__(self, key: object) -> bool:
        return key in self._data

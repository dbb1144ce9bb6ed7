"""Sort keys, their comparators, and the cached sort state."""

from __future__ import annotations

import unicodedata
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..constants import KEY_CLICK_COUNT, KEY_CLICK_DATE, KEY_LABEL, KEY_ORG, KEY_URL
from ..errors import InvalidSortKeyError
from .tab import Tab


class SortKey(str, Enum):
    """Fields a container can be sorted by, in detection order."""

    LABEL = KEY_LABEL
    URL = KEY_URL
    ORG = KEY_ORG
    CLICK_COUNT = KEY_CLICK_COUNT
    CLICK_DATE = KEY_CLICK_DATE

    @property
    def attr(self) -> str:
        """Name of the Tab attribute holding this field."""
        return self.value.replace("-", "_")

    @classmethod
    def parse(cls, value: Any) -> SortKey:
        """Return the SortKey for *value*, raising InvalidSortKeyError if none."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidSortKeyError(f"Cannot sort by {value!r}") from None


def collation_key(value: Any) -> str:
    """Case- and accent-insensitive text key; None sorts as the empty string."""
    if value is None:
        return ""
    decomposed = unicodedata.normalize("NFKD", str(value))
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold()


def _compare_text(a: Any, b: Any) -> int:
    ka, kb = collation_key(a), collation_key(b)
    return (ka > kb) - (ka < kb)


def _compare_number(a: Any, b: Any) -> int:
    # missing values sort before any number
    ka = (a is not None, a or 0)
    kb = (b is not None, b or 0)
    return (ka > kb) - (ka < kb)


def _number_sort_key(value: Any) -> Any:
    return (value is not None, value or 0)


_COMPARATORS: dict[SortKey, tuple[Callable[[Any, Any], int], Callable[[Any], Any]]] = {
    SortKey.LABEL: (_compare_text, collation_key),
    SortKey.URL: (_compare_text, collation_key),
    SortKey.ORG: (_compare_text, collation_key),
    SortKey.CLICK_COUNT: (_compare_number, _number_sort_key),
    SortKey.CLICK_DATE: (_compare_number, _number_sort_key),
}


def compare_tabs(key: SortKey, a: Tab, b: Tab) -> int:
    """Negative, zero or positive as *a* sorts before, with, or after *b*."""
    compare, _ = _COMPARATORS[key]
    return compare(getattr(a, key.attr), getattr(b, key.attr))


def sorted_tabs(tabs: Sequence[Tab], key: SortKey, ascending: bool = True) -> list[Tab]:
    """Stable sort of *tabs* by *key*; equal tabs keep their relative order."""
    _, sort_key = _COMPARATORS[key]
    return sorted(tabs, key=lambda tab: sort_key(getattr(tab, key.attr)), reverse=not ascending)


def detect_order(tabs: Sequence[Tab], key: SortKey) -> tuple[bool, bool]:
    """Return ``(is_sorted, ascending)`` for *tabs* under *key*.

    A run of equal (or fewer than two) tabs counts as ascending.
    """
    asc = desc = True
    for prev, cur in zip(tabs, tabs[1:]):
        cmp = compare_tabs(key, prev, cur)
        if cmp > 0:
            asc = False
        elif cmp < 0:
            desc = False
        if not (asc or desc):
            break
    return asc or desc, asc


@dataclass(frozen=True)
class SortState:
    """Whether, and how, the unpinned tabs are currently ordered."""

    is_sorted: bool = False
    sorted_by: SortKey | None = None
    ascending: bool = False

    @property
    def descending(self) -> bool:
        return self.is_sorted and not self.ascending

    @classmethod
    def by(cls, key: SortKey, ascending: bool) -> SortState:
        return cls(is_sorted=True, sorted_by=key, ascending=ascending)

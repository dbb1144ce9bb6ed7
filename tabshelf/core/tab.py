"""The Tab record: one saved shortcut.

Tabs are only built through the validating factories (:meth:`Tab.create`,
:meth:`Tab.from_fields`, :meth:`Tab.from_record`), which minify the url and
reduce the org to its identifier.  Constructing the dataclass directly still
validates field types, but performs no normalization.
"""

from __future__ import annotations

import json
import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ..constants import (
    KEY_CLICK_COUNT,
    KEY_CLICK_DATE,
    KEY_LABEL,
    KEY_ORG,
    KEY_URL,
    TAB_ALLOWED_KEYS,
)
from ..errors import (
    InvalidClickCountError,
    InvalidClickDateError,
    InvalidLabelError,
    InvalidOrgError,
    InvalidTabError,
    InvalidUrlError,
    UnexpectedKeyError,
)
from ..log import logger
from .urls import extract_org_name, minify_url


def now_ms() -> int:
    """Current time as epoch milliseconds (the unit of ``click-date``)."""
    return int(time.time() * 1000)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _check_label(label: Any) -> None:
    if not isinstance(label, str) or not label.strip():
        raise InvalidLabelError(f"Invalid label: {label!r}")


def _check_url(url: Any) -> None:
    if not isinstance(url, str) or not url.strip():
        raise InvalidUrlError(f"Invalid url: {url!r}")


def _check_org(org: Any) -> None:
    if org is not None and not isinstance(org, str):
        raise InvalidOrgError(f"Invalid org: {org!r}")


def _check_click_count(value: Any) -> None:
    if value is not None and (not _is_number(value) or value < 0):
        raise InvalidClickCountError(f"Invalid click count: {value!r}")


def _check_click_date(value: Any) -> None:
    if value is not None and (not _is_number(value) or value > now_ms()):
        raise InvalidClickDateError(f"Invalid click date: {value!r}")


def query_fields(query: Any) -> tuple[str | None, str | None, str | None]:
    """Return ``(label, url, org)`` from a Tab, a mapping, or None."""
    if query is None:
        return None, None, None
    if isinstance(query, Tab):
        return query.label, query.url, query.org
    if isinstance(query, Mapping):
        return query.get(KEY_LABEL), query.get(KEY_URL), query.get(KEY_ORG)
    raise TypeError(f"Cannot query tabs with {type(query).__name__}")


@dataclass(eq=False)
class Tab:
    """A saved shortcut: label, minified url, optional org scope and usage data."""

    label: str
    url: str
    org: str | None = None
    click_count: int | float | None = None
    click_date: int | float | None = None

    def __post_init__(self) -> None:
        _check_label(self.label)
        _check_url(self.url)
        _check_org(self.org)
        _check_click_count(self.click_count)
        _check_click_date(self.click_date)

    # -- factories ------------------------------------------------------------

    @classmethod
    def from_fields(
        cls,
        label: Any,
        url: Any,
        org: Any = None,
        click_count: Any = None,
        click_date: Any = None,
    ) -> Tab:
        """Validate and normalize the given fields into a new Tab.

        Raises:
            InvalidTabError: One of its subclasses, naming the bad field.
        """
        _check_label(label)
        _check_url(url)
        _check_org(org)
        _check_click_count(click_count)
        _check_click_date(click_date)
        return cls(
            label=label,
            url=minify_url(url),
            org=extract_org_name(org) if org is not None else None,
            click_count=click_count,
            click_date=click_date,
        )

    @classmethod
    def from_record(cls, record: Any) -> Tab:
        """Build a Tab from its serialized mapping form.

        Raises:
            UnexpectedKeyError: If *record* has keys outside the allowed set.
            InvalidTabError: If *record* is not a mapping or a field is invalid.
        """
        if not isinstance(record, Mapping):
            raise InvalidTabError(f"Not a tab record: {record!r}")
        unexpected = set(record) - TAB_ALLOWED_KEYS
        if unexpected:
            raise UnexpectedKeyError(f"Unexpected keys: {', '.join(sorted(unexpected))}")
        return cls.from_fields(
            record.get(KEY_LABEL),
            record.get(KEY_URL),
            record.get(KEY_ORG),
            record.get(KEY_CLICK_COUNT),
            record.get(KEY_CLICK_DATE),
        )

    @classmethod
    def create(
        cls,
        value: Any,
        url: Any = None,
        org: Any = None,
        click_count: Any = None,
        click_date: Any = None,
    ) -> Tab:
        """Return *value* if it is already a Tab, else build one.

        *value* is either a record mapping (then no other argument may be
        given) or the label, followed by the remaining fields.
        """
        if isinstance(value, Tab):
            return value
        if isinstance(value, Mapping):
            if any(v is not None for v in (url, org, click_count, click_date)):
                raise InvalidTabError("A tab record cannot be combined with positional fields")
            return cls.from_record(value)
        return cls.from_fields(value, url, org, click_count, click_date)

    @classmethod
    def is_valid(cls, candidate: Any) -> bool:
        """True if :meth:`create` would accept *candidate*."""
        try:
            cls.create(candidate)
        except InvalidTabError as exc:
            logger.debug("invalid tab %r: %s", candidate, exc)
            return False
        return True

    # -- comparison -----------------------------------------------------------

    def equals(self, query: Any = None, strict: bool = True) -> bool:
        """Match this tab against the non-None fields of *query*.

        In strict mode a missing org only matches generic tabs; otherwise a
        missing org matches any org.  A query with no fields never matches.
        """
        label, url, org = query_fields(query)
        if label is None and url is None and org is None:
            return False
        if label is not None and label != self.label:
            return False
        if url is not None and url != self.url:
            return False
        if strict:
            return org == self.org
        return org is None or org == self.org

    def is_duplicate(self, other: Any) -> bool:
        """True if *other* has the same url and the same org (or both none)."""
        _, url, org = query_fields(other)
        return url is not None and url == self.url and org == self.org

    def hash_code(self) -> str:
        return f"{self.url}@{self.org}"

    # -- mutation -------------------------------------------------------------

    def update(self, changes: Mapping[str, Any] | None = None) -> Tab:
        """Apply *changes* in place and return self.

        ``None`` leaves a field alone; an empty string clears org and the
        usage metadata.  Nothing is persisted: the owning container must sync.
        """
        if not changes:
            return self
        unexpected = set(changes) - TAB_ALLOWED_KEYS
        if unexpected:
            raise UnexpectedKeyError(f"Unexpected keys: {', '.join(sorted(unexpected))}")

        new = {
            "label": self.label,
            "url": self.url,
            "org": self.org,
            "click_count": self.click_count,
            "click_date": self.click_date,
        }
        label = changes.get(KEY_LABEL)
        if label is not None and label != "":
            _check_label(label)
            new["label"] = label
        url = changes.get(KEY_URL)
        if url is not None and url != "":
            _check_url(url)
            new["url"] = minify_url(url)
        org = changes.get(KEY_ORG)
        if org is not None:
            _check_org(org)
            new["org"] = None if org == "" else extract_org_name(org)
        click_count = changes.get(KEY_CLICK_COUNT)
        if click_count is not None:
            click_count = None if click_count == "" else click_count
            _check_click_count(click_count)
            new["click_count"] = click_count
        click_date = changes.get(KEY_CLICK_DATE)
        if click_date is not None:
            click_date = None if click_date == "" else click_date
            _check_click_date(click_date)
            new["click_date"] = click_date

        for name, value in new.items():
            setattr(self, name, value)
        return self

    def handle_click(self) -> None:
        """Count a click and stamp the click date."""
        self.click_count = 1 if self.click_count is None else self.click_count + 1
        self.click_date = now_ms()

    # -- serialization --------------------------------------------------------

    def to_json(self) -> dict[str, Any]:
        res: dict[str, Any] = {KEY_LABEL: self.label, KEY_URL: self.url}
        if self.org:
            res[KEY_ORG] = self.org
        if self.click_count:
            res[KEY_CLICK_COUNT] = self.click_count
        if self.click_date:
            res[KEY_CLICK_DATE] = self.click_date
        return res

    def __str__(self) -> str:
        return json.dumps(self.to_json(), indent=4, ensure_ascii=False)

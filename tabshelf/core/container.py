"""The TabContainer: ordered, duplicate-free shortcuts with a pinned prefix.

Every structural method works in two phases: validate and mutate in
memory (synchronous, may raise before anything changes), then persist the
whole document through the storage port.  A failed write leaves the
in-memory change applied; only :meth:`TabContainer.import_tabs` rolls back.

There is no locking.  Two processes sharing one store can overwrite each
other's writes; the storage port would need a revision token to detect it.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any, overload

from ..constants import DEFAULT_TABS, KEEP_SORTED, KEY_ORG, KEY_URL, STORAGE_KEY
from ..errors import (
    AlreadyPinnedError,
    AlreadyUnpinnedError,
    AmbiguousTabError,
    CannotMoveError,
    DuplicateTabError,
    EmptyPartitionError,
    InvalidSortKeyError,
    InvalidTabError,
    NoQueryDataError,
    PersistenceError,
    TabNotFoundError,
)
from ..log import logger
from .ports import SettingsPort, StoragePort, TabsChangedFn
from .sorting import SortKey, SortState, detect_order, sorted_tabs
from .tab import Tab, query_fields
from .transfer import build_document, parse_document, strip_metadata
from .urls import extract_org_name, minify_url


@dataclass(frozen=True)
class ContainerSnapshot:
    """Point-in-time copy of a container's order, pinned count and sort state."""

    tabs: tuple[Tab, ...]
    pinned: int
    sort_state: SortState


def _survives_replace(
    tab: Tab,
    *,
    reset_tabs: bool,
    remove_org_tabs: bool,
    keep_tabs_not_this_org: str | None,
    remove_this_org_tabs: str | None,
) -> bool:
    """Keep/drop rule applied to existing tabs by :meth:`TabContainer.replace_tabs`."""
    if tab.org is None:
        return not reset_tabs
    if not remove_org_tabs:
        return True
    # remove_this_org_tabs takes precedence when both exceptions are given
    if remove_this_org_tabs is not None:
        return tab.org != remove_this_org_tabs
    if keep_tabs_not_this_org is not None:
        return tab.org != keep_tabs_not_this_org
    return False


class TabContainer:
    """Ordered collection of :class:`Tab` owning the persisted document.

    The first :attr:`pinned` tabs form the pinned prefix: they are never
    reordered by :meth:`sort` and moves never carry a tab across the
    boundary unless they are explicit pin/unpin moves.
    """

    def __init__(
        self,
        storage: StoragePort | None = None,
        settings: SettingsPort | None = None,
        *,
        storage_key: str = STORAGE_KEY,
        on_change: TabsChangedFn | None = None,
    ) -> None:
        self.storage = storage
        self.settings = settings
        self.storage_key = storage_key
        self.on_change = on_change
        self._tabs: list[Tab] = []
        self._pinned = 0
        self._sort_state = SortState()

    # -- sequence protocol ----------------------------------------------------

    def __len__(self) -> int:
        return len(self._tabs)

    def __iter__(self) -> Iterator[Tab]:
        return iter(list(self._tabs))

    @overload
    def __getitem__(self, index: int) -> Tab: ...

    @overload
    def __getitem__(self, index: slice) -> list[Tab]: ...

    def __getitem__(self, index: int | slice) -> Tab | list[Tab]:
        return self._tabs[index]

    def __contains__(self, item: object) -> bool:
        if isinstance(item, Tab):
            return any(t is item or t.is_duplicate(item) for t in self._tabs)
        return False

    def __repr__(self) -> str:
        return f"TabContainer({len(self._tabs)} tabs, pinned={self._pinned})"

    def __str__(self) -> str:
        return "[\n" + ",\n".join(str(tab) for tab in self._tabs) + "\n]"

    # -- state ----------------------------------------------------------------

    @property
    def tabs(self) -> tuple[Tab, ...]:
        return tuple(self._tabs)

    @property
    def pinned(self) -> int:
        """Number of tabs in the pinned prefix."""
        return self._pinned

    @pinned.setter
    def pinned(self, value: int) -> None:
        if not isinstance(value, int) or isinstance(value, bool):
            raise TypeError(f"pinned must be an int, not {type(value).__name__}")
        self._pinned = max(0, min(value, len(self._tabs)))

    @property
    def pinned_tabs(self) -> list[Tab]:
        return self._tabs[: self._pinned]

    @property
    def unpinned_tabs(self) -> list[Tab]:
        return self._tabs[self._pinned :]

    @property
    def sort_state(self) -> SortState:
        return self._sort_state

    @property
    def is_sorted(self) -> bool:
        return self._sort_state.is_sorted

    @property
    def is_sorted_by(self) -> SortKey | None:
        return self._sort_state.sorted_by

    @property
    def is_sorted_asc(self) -> bool:
        return self._sort_state.is_sorted and self._sort_state.ascending

    @property
    def is_sorted_desc(self) -> bool:
        return self._sort_state.descending

    def snapshot(self) -> ContainerSnapshot:
        return ContainerSnapshot(tuple(self._tabs), self._pinned, self._sort_state)

    def restore(self, snapshot: ContainerSnapshot) -> None:
        """Put back the order, pinned count and sort state of *snapshot*."""
        self._tabs = list(snapshot.tabs)
        self._pinned = snapshot.pinned
        self._sort_state = snapshot.sort_state

    def _clamp_pinned(self) -> None:
        self._pinned = max(0, min(self._pinned, len(self._tabs)))

    # -- validation -----------------------------------------------------------

    def _validate_item(self, item: Any, pending: Iterable[Tab] = ()) -> Tab:
        """Return *item* as a Tab that may be inserted.

        Raises:
            InvalidTabError: If *item* cannot be turned into a Tab.
            DuplicateTabError: If the container (or *pending*) already has it.
        """
        tab = Tab.create(item)
        for other in (*self._tabs, *pending):
            if other is tab or other.is_duplicate(tab):
                raise DuplicateTabError(f"Tab already saved: {tab.hash_code()}")
        return tab

    def _validate_items(self, items: Iterable[Any]) -> list[Tab]:
        """Tabs from *items*, silently skipping invalid and duplicate ones."""
        accepted: list[Tab] = []
        for item in items:
            try:
                accepted.append(self._validate_item(item, accepted))
            except (InvalidTabError, DuplicateTabError) as exc:
                logger.debug("skipping tab %r: %s", item, exc)
        return accepted

    @staticmethod
    def _ensure_valid(items: Iterable[Any]) -> None:
        """Raise the validation error of the first invalid item, naming it."""
        for item in items:
            try:
                Tab.create(item)
            except InvalidTabError as exc:
                raise type(exc)(f"{exc}: {item!r}") from exc

    @staticmethod
    def _flatten(items: tuple[Any, ...]) -> tuple[Any, ...]:
        # allow a single list to be passed instead of spread items
        if len(items) == 1 and isinstance(items[0], (list, tuple, TabContainer)):
            return tuple(items[0])
        return items

    # -- insertion primitives -------------------------------------------------

    def push(self, *items: Any) -> int:
        """Append the valid, non-duplicate *items*; return the new length."""
        self._tabs.extend(self._validate_items(self._flatten(items)))
        return len(self._tabs)

    def unshift(self, *items: Any) -> int:
        """Insert the valid, non-duplicate *items* at index 0; return the new length.

        The pinned count is not adjusted.
        """
        self._tabs[0:0] = self._validate_items(self._flatten(items))
        return len(self._tabs)

    def splice(self, start: int, delete_count: int | None = None, *items: Any) -> list[Tab]:
        """Remove *delete_count* tabs at *start* and insert *items* there.

        Indices follow list semantics (negative counts from the end).  The
        inserted items are validated against the tabs that remain.  Returns
        the removed tabs.
        """
        size = len(self._tabs)
        start = max(size + start, 0) if start < 0 else min(start, size)
        if delete_count is None:
            delete_count = size - start
        delete_count = max(0, min(delete_count, size - start))
        removed = self._tabs[start : start + delete_count]
        del self._tabs[start : start + delete_count]
        self._tabs[start:start] = self._validate_items(items)
        self._clamp_pinned()
        return removed

    def add_tab(self, tab: Any, *, sync: bool = True, add_in_front: bool = False) -> bool:
        """Add a single tab at the end, or right after the pinned tabs.

        Raises:
            DuplicateTabError: If the tab is already saved.
            InvalidTabError: If the tab does not validate.
        """
        try:
            new_tab = self._validate_item(tab)
        except (InvalidTabError, DuplicateTabError) as exc:
            raise type(exc)(f"{exc}: {tab!r}") from exc
        index = self._pinned if add_in_front else len(self._tabs)
        self._tabs.insert(index, new_tab)
        return self._after_change(sync)

    def add_tabs(self, tabs: Iterable[Any] | None, sync: bool = True) -> bool:
        """Add every tab in *tabs*, skipping the ones already saved.

        Raises:
            InvalidTabError: If any tab does not validate (nothing is added).
        """
        if tabs is None:
            return True
        tabs = list(tabs)
        if not tabs and not sync:
            return True
        self._ensure_valid(tabs)
        self._tabs.extend(self._validate_items(tabs))
        return self._after_change(sync)

    def _after_change(self, sync: bool) -> bool:
        if sync:
            return self.sync_tabs()
        self.check_set_sorted()
        return True

    # -- queries --------------------------------------------------------------

    @staticmethod
    def _query(query: Any) -> tuple[str | None, str | None, str | None]:
        """Normalized ``(label, url, org)`` of *query*; empty strings count as absent."""
        label, url, org = query_fields(query)
        return (
            label or None,
            minify_url(url) if url else None,
            extract_org_name(org) if org else None,
        )

    def _index_of(self, tab: Tab) -> int:
        for index, candidate in enumerate(self._tabs):
            if candidate is tab:
                return index
        raise TabNotFoundError(f"Tab not in container: {tab.hash_code()}")

    def get_tabs_with_org(self, with_org: bool = True) -> list[Tab]:
        """Org-specific tabs, or generic ones when *with_org* is False."""
        return [tab for tab in self._tabs if (tab.org is not None) == with_org]

    def get_tabs_by_org(self, org: str | None, match: bool = True) -> list[Tab]:
        """Org-specific tabs of *org* (or of every other org when *match* is False)."""
        if not org:
            raise NoQueryDataError("An org is required")
        org = extract_org_name(org)
        return [tab for tab in self._tabs if tab.org is not None and (tab.org == org) == match]

    def get_tabs_by_data(self, query: Any, match: bool = True, strict: bool = False) -> list[Tab]:
        """Tabs matching (or, with *match* False, not matching) *query*."""
        label, url, org = self._query(query)
        if label is None and url is None:
            if org is None:
                raise NoQueryDataError("Query has no label, url or org")
            return self.get_tabs_by_org(org, match)
        fields = {"label": label, "url": url, "org": org}
        return [tab for tab in self._tabs if tab.equals(fields, strict) == match]

    def get_single_tab_by_data(self, query: Any, match: bool = True, _is_retry: bool = False) -> Tab:
        """Resolve *query* to exactly one tab.

        An exact match is tried first, then a generic tab with the same label
        or url.  Among several candidates the one for the query's org wins,
        then the generic one.

        Raises:
            TabNotFoundError: If nothing matches.
            AmbiguousTabError: If more than one tab remains.
        """
        label, url, org = self._query(query)
        if _is_retry and label is None and url is None:
            raise TabNotFoundError(f"No tab for org {org!r}")
        matching = self.get_tabs_by_data(
            {"label": label, "url": url, "org": org}, match, strict=_is_retry
        )
        if not matching:
            if _is_retry:
                raise TabNotFoundError(f"No tab matches label={label!r} url={url!r}")
            return self.get_single_tab_by_data(
                {"label": label, "url": url, "org": None}, match, _is_retry=True
            )
        if len(matching) == 1:
            return matching[0]
        if not match or url is None:
            raise AmbiguousTabError(f"{len(matching)} tabs match label={label!r} org={org!r}")

        candidates = [tab for tab in matching if tab.org is None or tab.org == org]
        if not candidates:
            raise TabNotFoundError(f"No tab matches url={url!r} for org {org!r}")
        if len(candidates) == 1:
            return candidates[0]
        if org is not None:
            same_org = [tab for tab in candidates if tab.org == org]
            if len(same_org) == 1:
                return same_org[0]
        generic = [tab for tab in candidates if tab.org is None]
        if len(generic) == 1:
            return generic[0]
        raise AmbiguousTabError(f"{len(candidates)} tabs match url={url!r}")

    def get_tab_index(self, query: Any) -> int:
        """Index of the first tab strictly equal to *query*."""
        label, url, org = self._query(query)
        if label is None and url is None and org is None:
            raise NoQueryDataError("Query has no label, url or org")
        fields = {"label": label, "url": url, "org": org}
        for index, tab in enumerate(self._tabs):
            if tab.equals(fields):
                return index
        raise TabNotFoundError(f"No tab matches label={label!r} url={url!r} org={org!r}")

    def exists(self, query: Any, check_duplicate: bool = False) -> bool:
        """True if a tab equals *query* (or duplicates it, with *check_duplicate*)."""
        if not self._tabs:
            return False
        _, url, org = self._query(query)
        fields = {KEY_URL: url, KEY_ORG: org}
        if check_duplicate:
            return any(tab.is_duplicate(fields) for tab in self._tabs)
        return any(tab.equals(fields) for tab in self._tabs)

    def exists_with_or_without_org(self, query: Any) -> bool:
        """True if the url is saved for the query's org or as a generic tab."""
        _, url, org = self._query(query)
        return self.exists({KEY_URL: url, KEY_ORG: org}) or self.exists({KEY_URL: url})

    # -- bulk replace ---------------------------------------------------------

    def replace_tabs(
        self,
        new_tabs: Iterable[Any] | None = None,
        *,
        reset_tabs: bool = True,
        remove_org_tabs: bool = False,
        sync: bool = True,
        keep_tabs_not_this_org: str | None = None,
        remove_this_org_tabs: str | None = None,
        update_pinned_tabs: bool = True,
    ) -> bool:
        """Drop existing tabs according to the flags, then add *new_tabs*.

        ``reset_tabs`` drops generic tabs.  ``remove_org_tabs`` also drops
        org-specific tabs, except those of orgs other than
        ``keep_tabs_not_this_org``, or only those of ``remove_this_org_tabs``
        (which wins when both are given).  Without either flag nothing is
        dropped.  The rule is applied to the pinned and unpinned tabs alike;
        ``update_pinned_tabs`` recounts the pinned prefix afterwards.

        Raises:
            InvalidTabError: If any of *new_tabs* does not validate.
        """
        if new_tabs is self:
            return True
        new_tabs = list(new_tabs) if new_tabs is not None else []
        self._ensure_valid(new_tabs)

        if reset_tabs or remove_org_tabs:
            keep_org = extract_org_name(keep_tabs_not_this_org) if keep_tabs_not_this_org else None
            remove_org = extract_org_name(remove_this_org_tabs) if remove_this_org_tabs else None

            def keep(tab: Tab) -> bool:
                return _survives_replace(
                    tab,
                    reset_tabs=reset_tabs,
                    remove_org_tabs=remove_org_tabs,
                    keep_tabs_not_this_org=keep_org,
                    remove_this_org_tabs=remove_org,
                )

            pinned = [tab for tab in self._tabs[: self._pinned] if keep(tab)]
            unpinned = [tab for tab in self._tabs[self._pinned :] if keep(tab)]
            self._tabs = pinned + unpinned
            if update_pinned_tabs:
                self._pinned = len(pinned)

        self._tabs.extend(self._validate_items(new_tabs))
        self._clamp_pinned()
        return self._after_change(sync)

    # -- reordering -----------------------------------------------------------

    def _move_index(
        self,
        *,
        current: int,
        lowest: int,
        highest: int,
        move_before: bool,
        full_movement: bool,
        org: str | None,
    ) -> int:
        """Target index for a move within ``[lowest, highest]``.

        Single steps slide past org-specific tabs of other orgs.
        """
        if full_movement:
            return lowest if move_before else highest
        step = -1 if move_before else 1
        boundary = lowest if move_before else highest
        clamp: Callable[[int, int], int] = max if move_before else min
        last = None
        for offset in range(1, highest + 1):
            candidate = clamp(boundary, current + step * offset)
            if candidate == last:
                break
            target = self._tabs[candidate]
            if org is None or target.org is None or target.org == org:
                return candidate
            last = candidate
        return boundary

    def move_tab(
        self,
        query: Any,
        *,
        move_before: bool = True,
        full_movement: bool = False,
        sync: bool = True,
        pin_movement: bool | None = None,
    ) -> int:
        """Move the tab matching *query* within its partition; return its new index.

        With *pin_movement* set the move must land exactly on the pinned
        boundary (True pins, False unpins) and the pinned count follows.

        Raises:
            AlreadyPinnedError: Pinning a tab that is pinned.
            AlreadyUnpinnedError: Unpinning a tab that is not pinned.
            CannotMoveError: A plain move that would not change anything, or a
                pin move that misses the boundary.
        """
        _, _, org = self._query(query)
        tab = self.get_single_tab_by_data(query)
        current = self._index_of(tab)
        is_pinned = current < self._pinned
        new_index = self._move_index(
            current=current,
            lowest=0 if is_pinned else self._pinned,
            highest=self._pinned - 1 if is_pinned else len(self._tabs) - 1,
            move_before=move_before,
            full_movement=full_movement,
            org=org if org is not None else tab.org,
        )
        if pin_movement is not None:
            if pin_movement and new_index < self._pinned:
                raise AlreadyPinnedError(f"Tab is already pinned: {tab.label}")
            if not pin_movement and new_index >= self._pinned:
                raise AlreadyUnpinnedError(f"Tab is not pinned: {tab.label}")
            boundary = self._pinned if pin_movement else self._pinned - 1
            if new_index != boundary:
                action = "pin" if pin_movement else "unpin"
                raise CannotMoveError(f"Cannot {action} {tab.label} without a full move")
        elif new_index == current:
            direction = "up" if move_before else "down"
            raise CannotMoveError(f"Cannot move {tab.label} {direction}")

        del self._tabs[current]
        self._tabs.insert(new_index, tab)
        if pin_movement is not None:
            self._pinned += 1 if pin_movement else -1
        if sync:
            self.sync_tabs(invalidate_sort=pin_movement is not True)
        return new_index

    def pin_or_unpin(self, query: Any, is_pin: bool | None) -> bool:
        """Pin the tab (as the last pinned one) or unpin it (as the first unpinned one)."""
        if is_pin is None:
            raise NoQueryDataError("Choose whether to pin or unpin")
        self.move_tab(
            query,
            move_before=is_pin,
            full_movement=True,
            sync=False,
            pin_movement=is_pin,
        )
        return self.sync_tabs(invalidate_sort=not is_pin)

    # -- removal --------------------------------------------------------------

    def remove(self, query: Any) -> bool:
        """Remove the single tab matching *query*."""
        label, url, org = query_fields(query)
        if label is None and url is None and org is None:
            raise NoQueryDataError("Query has no label, url or org")
        tab = self.get_single_tab_by_data(query)
        index = self._index_of(tab)
        if index < self._pinned:
            self._pinned -= 1
        del self._tabs[index]
        return self.sync_tabs()

    def remove_other_tabs(self, query: Any, *, remove_before: bool | None = None) -> bool:
        """Remove the tabs around the one matching *query*.

        ``remove_before`` None keeps only the match, True removes the tabs
        before it, False the tabs after it.  Org-specific tabs of other orgs
        are never removed.
        """
        match = self.get_single_tab_by_data(query)
        index = self._index_of(match)
        _, _, org = self._query(query)
        scope = org if org is not None else match.org

        def survives(i: int, tab: Tab) -> bool:
            if i == index or (tab.org is not None and tab.org != scope):
                return True
            if remove_before is None:
                return False
            return i > index if remove_before else i < index

        kept = [(i, tab) for i, tab in enumerate(self._tabs) if survives(i, tab)]
        self._pinned = sum(1 for i, _ in kept if i < self._pinned)
        self._tabs = [tab for _, tab in kept]
        return self.sync_tabs()

    def remove_pinned(self, rm_pinned: bool | None) -> bool:
        """Remove every pinned tab (True) or every unpinned tab (False).

        Raises:
            EmptyPartitionError: If that partition holds no tabs.
        """
        if rm_pinned is None:
            raise NoQueryDataError("Choose pinned or unpinned tabs")
        if rm_pinned:
            if self._pinned < 1:
                raise EmptyPartitionError("There are no pinned tabs")
            del self._tabs[: self._pinned]
            self._pinned = 0
        else:
            if self._pinned >= len(self._tabs):
                raise EmptyPartitionError("There are no unpinned tabs")
            del self._tabs[self._pinned :]
        return self.sync_tabs()

    # -- updates --------------------------------------------------------------

    def update_tab(self, query: Any, changes: Mapping[str, Any]) -> bool:
        """Update the tab matching *query* with *changes* and sync.

        Raises:
            DuplicateTabError: If the change would collide with another tab.
        """
        tab = self.get_single_tab_by_data(query)
        candidate = dataclasses.replace(tab).update(changes)
        for other in self._tabs:
            if other is not tab and other.is_duplicate(candidate):
                raise DuplicateTabError(f"Tab already saved: {candidate.hash_code()}")
        tab.update(changes)
        return self.sync_tabs()

    def handle_click_tab_by_data(self, query: Any) -> bool:
        """Record a click on the tab matching *query* and sync."""
        self.get_single_tab_by_data(query).handle_click()
        return self.sync_tabs()

    # -- sorting --------------------------------------------------------------

    def sort(self, sort_by: SortKey | str = SortKey.LABEL, sort_asc: bool = True, sync: bool = True) -> bool:
        """Sort the unpinned tabs by *sort_by*; pinned tabs keep their order.

        Raises:
            InvalidSortKeyError: If *sort_by* is not a sort key.
        """
        key = SortKey.parse(sort_by)
        self._tabs = self._tabs[: self._pinned] + sorted_tabs(
            self._tabs[self._pinned :], key, sort_asc
        )
        self._sort_state = SortState.by(key, sort_asc)
        if sync:
            return self.sync_tabs(from_sort=True)
        return True

    def check_set_sorted(self, from_sort: bool = False, invalidate_sort: bool = False) -> bool:
        """Refresh the cached sort state and return whether the tabs are sorted.

        If the keep-sorted preference is on, the tabs are re-sorted by it
        instead.  *invalidate_sort* (a manual reorder) turns that preference
        off first.
        """
        if from_sort:
            return True
        if invalidate_sort:
            self._disable_keep_sorted()
        if self._apply_keep_sorted():
            return True
        self._sort_state = SortState()
        unpinned = self._tabs[self._pinned :]
        for key in SortKey:
            is_sorted, ascending = detect_order(unpinned, key)
            if is_sorted:
                self._sort_state = SortState.by(key, ascending)
                break
        return self._sort_state.is_sorted

    def _keep_sorted_setting(self) -> dict[str, Any] | None:
        if self.settings is None:
            return None
        setting = self.settings.get(KEEP_SORTED)
        if not setting or not setting.get("enabled"):
            return None
        return setting

    def _apply_keep_sorted(self) -> bool:
        setting = self._keep_sorted_setting()
        if setting is None:
            return False
        try:
            key = SortKey.parse(setting["enabled"])
        except InvalidSortKeyError:
            logger.warning("ignoring keep-sorted setting with unknown key %r", setting["enabled"])
            return False
        ascending = setting.get("ascending")
        return self.sort(key, True if ascending is None else bool(ascending), sync=False)

    def _disable_keep_sorted(self) -> None:
        if self._keep_sorted_setting() is None:
            return
        logger.debug("manual reorder: disabling %s", KEEP_SORTED)
        self.settings.set(KEEP_SORTED, {"enabled": False})  # type: ignore[union-attr]

    # -- persistence ----------------------------------------------------------

    def to_json(self) -> dict[str, Any]:
        return build_document(self._tabs, self._pinned)

    @classmethod
    def from_json(cls, document: Any, **kwargs: Any) -> TabContainer:
        """Build a container from a document (current or legacy schema).

        Keyword arguments are passed to the constructor.  Nothing is synced.
        """
        parsed = parse_document(document)
        cls._ensure_valid(parsed.tabs)
        container = cls(**kwargs)
        container._tabs = container._validate_items(parsed.tabs)
        container._pinned = min(parsed.pinned, len(container._tabs))
        container.check_set_sorted()
        return container

    def sync_tabs(self, from_sort: bool = False, invalidate_sort: bool = False) -> bool:
        """Refresh the sort state, write the document, and notify :attr:`on_change`.

        A listener that raises is logged; the write already happened.

        Raises:
            PersistenceError: If no storage is attached or the write fails.
        """
        self.check_set_sorted(from_sort, invalidate_sort)
        if self.storage is None:
            raise PersistenceError("No storage attached to this container")
        document = self.to_json()
        try:
            self.storage.set(self.storage_key, document)
        except (OSError, TypeError, ValueError) as exc:
            raise PersistenceError(f"Failed to save tabs: {exc}", exc) from exc
        if self.on_change is not None:
            try:
                self.on_change(document)
            except Exception:
                # the document is already stored; a listener cannot undo that
                logger.exception("tabs-changed listener failed")
        return True

    def load_saved_tabs(self) -> bool:
        """Replace the contents with the stored document.

        Returns False (leaving the container alone) when nothing is stored.
        """
        if self.storage is None:
            raise PersistenceError("No storage attached to this container")
        stored = self.storage.get(self.storage_key)
        if stored is None:
            return False
        parsed = parse_document(stored)
        self._ensure_valid(parsed.tabs)
        self._pinned = parsed.pinned
        self.replace_tabs(
            parsed.tabs,
            reset_tabs=True,
            remove_org_tabs=True,
            sync=False,
            update_pinned_tabs=False,
        )
        return True

    def set_default_tabs(self) -> bool:
        """Replace everything with the built-in default shortcuts and sync."""
        self._tabs = []
        self._pinned = 0
        logger.info("seeding %d default tabs", len(DEFAULT_TABS))
        return self.add_tabs([dict(tab) for tab in DEFAULT_TABS])

    # -- import / export ------------------------------------------------------

    def import_tabs(
        self,
        document: Any,
        *,
        reset_tabs: bool = False,
        preserve_other_org: bool = True,
        import_metadata: bool = False,
    ) -> int:
        """Merge the tabs of an exported document; return how many are new.

        The import is all-or-nothing: on any error the previous state is
        restored and the error re-raised.

        Raises:
            MalformedImportError: If *document* cannot be parsed.
            InvalidTabError: If any imported tab does not validate.
            PersistenceError: If the final write fails.
        """
        parsed = parse_document(document)
        if parsed.is_legacy:
            logger.warning("importing a legacy backup (bare list); export again to upgrade it")
        snapshot = self.snapshot()
        try:
            records = parsed.tabs if import_metadata else strip_metadata(parsed.tabs)
            self._ensure_valid(records)
            pinned_count = min(parsed.pinned, len(records)) if import_metadata else 0
            pinned_records, records = records[:pinned_count], records[pinned_count:]

            self.replace_tabs(
                None,
                reset_tabs=reset_tabs,
                remove_org_tabs=not preserve_other_org,
                sync=False,
            )
            imported = self._merge_pinned(pinned_records)
            before = len(self._tabs)
            self._tabs.extend(self._validate_items(records))
            imported += len(self._tabs) - before
            self.sync_tabs()
        except Exception:
            self.restore(snapshot)
            raise
        logger.info("imported %d new tab(s)", imported)
        return imported

    def _merge_pinned(self, records: list[Any]) -> int:
        """Append the new tabs of *records* to the pinned prefix; return the count."""
        if not records:
            return 0
        accepted = self._validate_items(records)
        self._tabs[self._pinned : self._pinned] = accepted
        self._pinned += len(accepted)
        return len(accepted)

    def export_tabs(self, selection: Iterable[Any] | None = None) -> dict[str, Any]:
        """Document for the whole container, or for the tabs in *selection*.

        Selected tabs keep container order; the pinned count covers the
        selected tabs that are pinned.
        """
        if selection is None:
            return self.to_json()
        wanted = [self._query(item) for item in selection]
        chosen: list[Tab] = []
        pinned = 0
        for index, tab in enumerate(self._tabs):
            if any(tab.is_duplicate({KEY_URL: url, KEY_ORG: org}) for _, url, org in wanted):
                chosen.append(tab)
                if index < self._pinned:
                    pinned += 1
        return build_document(chosen, pinned)

"""Tests for importing and exporting container documents."""

from __future__ import annotations

import json
import logging

import pytest

from tabshelf.constants import STORAGE_KEY
from tabshelf.core.container import TabContainer
from tabshelf.core.transfer import build_document, coerce_pinned, parse_document, strip_metadata
from tabshelf.errors import (
    InvalidLabelError,
    MalformedImportError,
    PersistenceError,
    UnexpectedKeyError,
)
from tabshelf.persistence import MemoryStore


def labels(container) -> list[str]:
    return [tab.label for tab in container]


@pytest.fixture
def a_container(container):
    container.add_tab({"label": "A", "url": "a"})
    return container


# ---------------------------------------------------------------------------
# Document helpers
# ---------------------------------------------------------------------------


class TestParseDocument:
    def test_current_schema(self):
        parsed = parse_document({"tabs": [{"label": "A", "url": "a"}], "pinned": 1})
        assert parsed.pinned == 1
        assert not parsed.is_legacy

    def test_legacy_list(self):
        parsed = parse_document('[{"label": "A", "url": "a"}]')
        assert parsed.is_legacy
        assert parsed.pinned == 0

    def test_bytes(self):
        assert parse_document(b'{"tabs": []}').tabs == []

    @pytest.mark.parametrize("document", ["not json", '{"tabs": 3}', "42", 42])
    def test_malformed(self, document):
        with pytest.raises(MalformedImportError):
            parse_document(document)

    @pytest.mark.parametrize("value, expected", [(3, 3), (-2, 0), (True, 0), ("2", 0), (None, 0)])
    def test_coerce_pinned(self, value, expected):
        assert coerce_pinned(value) == expected

    def test_strip_metadata(self):
        records = [{"label": "A", "url": "a", "click-count": 3, "click-date": 1}, "junk"]
        assert strip_metadata(records) == [{"label": "A", "url": "a"}, "junk"]

    def test_build_document(self, abc_container):
        doc = build_document(abc_container, 1)
        assert doc["pinned"] == 1
        assert [t["url"] for t in doc["tabs"]] == ["a", "b", "c"]


# ---------------------------------------------------------------------------
# import_tabs
# ---------------------------------------------------------------------------


class TestImportTabs:
    def test_legacy_import_appends(self, a_container, caplog):
        caplog.set_level(logging.WARNING, logger="tabshelf")
        assert a_container.import_tabs('[{"label":"N","url":"n"}]') == 1
        assert labels(a_container) == ["A", "N"]
        assert "legacy" in caplog.text

    def test_duplicates_are_not_counted(self, a_container):
        doc = {"tabs": [{"label": "A again", "url": "a"}, {"label": "N", "url": "n"}]}
        assert a_container.import_tabs(doc) == 1
        assert labels(a_container) == ["A", "N"]

    def test_metadata_stripped_by_default(self, container):
        doc = {"tabs": [{"label": "N", "url": "n", "click-count": 4}], "pinned": 1}
        container.import_tabs(doc)
        assert container[0].click_count is None
        assert container.pinned == 0

    def test_metadata_import_merges_pinned(self, container):
        container.add_tabs([{"label": "A", "url": "a"}, {"label": "B", "url": "b"}])
        container.pinned = 1
        doc = {
            "tabs": [
                {"label": "P1", "url": "p1", "click-count": 2},
                {"label": "P2", "url": "p2"},
                {"label": "R", "url": "r"},
            ],
            "pinned": 2,
        }
        assert container.import_tabs(doc, import_metadata=True) == 3
        assert labels(container) == ["A", "P1", "P2", "B", "R"]
        assert container.pinned == 3
        assert container[1].click_count == 2

    def test_pinned_duplicate_is_skipped(self, abc_container):
        doc = {"tabs": [{"label": "B again", "url": "b"}, {"label": "N", "url": "n"}], "pinned": 1}
        assert abc_container.import_tabs(doc, import_metadata=True) == 1
        assert labels(abc_container) == ["A", "B", "C", "N"]
        assert abc_container.pinned == 0

    def test_metadata_import_with_reset(self, abc_container):
        doc = {"tabs": [{"label": "P", "url": "p"}, {"label": "R", "url": "r"}], "pinned": 1}
        abc_container.import_tabs(doc, reset_tabs=True, import_metadata=True)
        assert labels(abc_container) == ["P", "R"]
        assert abc_container.pinned == 1

    def test_reset_keeps_org_tabs(self, org_container):
        org_container.import_tabs([{"label": "N", "url": "n"}], reset_tabs=True)
        assert labels(org_container) == ["B", "C", "D", "N"]

    def test_drop_other_orgs(self, org_container):
        org_container.import_tabs([{"label": "N", "url": "n"}], preserve_other_org=False)
        assert labels(org_container) == ["A", "N"]

    def test_import_persists(self, a_container, store):
        a_container.import_tabs([{"label": "N", "url": "n"}])
        assert [t["label"] for t in store.get(STORAGE_KEY)["tabs"]] == ["A", "N"]


class TestImportFailures:
    def test_failing_listener_keeps_import(self, store):
        def broken(document):
            raise RuntimeError("listener down")

        container = TabContainer(store, on_change=broken)
        container.add_tab({"label": "A", "url": "a"})
        assert container.import_tabs('[{"label":"N","url":"n"}]') == 1
        assert labels(container) == ["A", "N"]
        assert [t["label"] for t in store.get(STORAGE_KEY)["tabs"]] == ["A", "N"]

    def test_malformed_changes_nothing(self, a_container):
        with pytest.raises(MalformedImportError):
            a_container.import_tabs("{oops", reset_tabs=True)
        assert labels(a_container) == ["A"]

    def test_invalid_tab_changes_nothing(self, org_container):
        with pytest.raises(InvalidLabelError):
            org_container.import_tabs([{"label": "", "url": "n"}], reset_tabs=True)
        assert labels(org_container) == ["A", "B", "C", "D"]

    def test_unexpected_key(self, a_container):
        with pytest.raises(UnexpectedKeyError):
            a_container.import_tabs([{"label": "N", "url": "n", "colour": "red"}])

    def test_failed_write_rolls_back(self):
        store = MemoryStore()
        container = TabContainer(store)
        container.add_tabs([{"label": "A", "url": "a"}, {"label": "B", "url": "b", "org": "o1"}])
        container.pinned = 1
        store.fail_writes = True
        with pytest.raises(PersistenceError):
            container.import_tabs([{"label": "N", "url": "n"}], reset_tabs=True, preserve_other_org=False)
        assert labels(container) == ["A", "B"]
        assert container.pinned == 1


# ---------------------------------------------------------------------------
# export_tabs
# ---------------------------------------------------------------------------


class TestExportTabs:
    def test_full_export(self, abc_container):
        assert abc_container.export_tabs() == abc_container.to_json()

    def test_subset_keeps_container_order(self, abc_container):
        abc_container.pinned = 1
        doc = abc_container.export_tabs([{"url": "c"}, {"url": "a"}])
        assert [t["label"] for t in doc["tabs"]] == ["A", "C"]
        assert doc["pinned"] == 1

    def test_subset_respects_org(self, org_container):
        doc = org_container.export_tabs([{"url": "b", "org": "o1"}, {"url": "d"}])
        assert [t["label"] for t in doc["tabs"]] == ["B"]
        assert doc["pinned"] == 0

    def test_export_then_import(self, org_container):
        org_container.pinned = 2
        text = json.dumps(org_container.export_tabs())
        fresh = TabContainer(MemoryStore())
        assert fresh.import_tabs(text, import_metadata=True) == 4
        assert fresh.to_json() == org_container.to_json()

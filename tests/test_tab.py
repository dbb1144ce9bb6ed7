"""Tests for tabshelf.core.tab -- validation, normalization, comparison, updates."""

from __future__ import annotations

import json

import pytest

from tabshelf.core.tab import Tab, now_ms
from tabshelf.errors import (
    InvalidClickCountError,
    InvalidClickDateError,
    InvalidLabelError,
    InvalidOrgError,
    InvalidTabError,
    InvalidUrlError,
    UnexpectedKeyError,
)


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


class TestFactories:
    def test_from_fields_normalizes(self):
        tab = Tab.from_fields(
            "Home",
            "https://acme.lightning.force.com/lightning/setup/SetupOneHome/home/",
            "acme.my.salesforce-setup.com",
        )
        assert tab.url == "SetupOneHome/home"
        assert tab.org == "acme"

    def test_from_record(self):
        tab = Tab.from_record({"label": "Users", "url": "ManageUsers/home", "click-count": 3})
        assert (tab.label, tab.url, tab.org, tab.click_count) == ("Users", "ManageUsers/home", None, 3)

    def test_from_record_unexpected_key(self):
        with pytest.raises(UnexpectedKeyError):
            Tab.from_record({"label": "x", "url": "y", "color": "red"})

    def test_from_record_not_a_mapping(self):
        with pytest.raises(InvalidTabError):
            Tab.from_record(["x", "y"])

    def test_create_is_idempotent(self):
        tab = Tab.create("A", "a")
        assert Tab.create(tab) is tab

    def test_create_from_mapping(self):
        assert Tab.create({"label": "A", "url": "a"}).url == "a"

    def test_create_mapping_with_fields_rejected(self):
        with pytest.raises(InvalidTabError):
            Tab.create({"label": "A", "url": "a"}, "b")

    def test_is_valid(self):
        assert Tab.is_valid({"label": "A", "url": "a"})
        assert not Tab.is_valid({"label": "A"})
        assert not Tab.is_valid(42)


class TestValidation:
    @pytest.mark.parametrize("label", ["", "   ", None, 3])
    def test_bad_label(self, label):
        with pytest.raises(InvalidLabelError):
            Tab.from_fields(label, "a")

    @pytest.mark.parametrize("url", ["", None, 3])
    def test_bad_url(self, url):
        with pytest.raises(InvalidUrlError):
            Tab.from_fields("A", url)

    def test_bad_org(self):
        with pytest.raises(InvalidOrgError):
            Tab.from_fields("A", "a", 12)

    @pytest.mark.parametrize("count", [-1, "3", True])
    def test_bad_click_count(self, count):
        with pytest.raises(InvalidClickCountError):
            Tab.from_fields("A", "a", click_count=count)

    def test_future_click_date(self):
        with pytest.raises(InvalidClickDateError):
            Tab.from_fields("A", "a", click_date=now_ms() + 60_000)

    def test_all_errors_are_value_errors(self):
        with pytest.raises(ValueError):
            Tab.from_fields("", "a")

    def test_direct_construction_validates(self):
        with pytest.raises(InvalidUrlError):
            Tab("A", "")


# ---------------------------------------------------------------------------
# Comparison
# ---------------------------------------------------------------------------


class TestEquals:
    def test_matches_given_fields(self):
        tab = Tab.create("Home", "home")
        assert tab.equals({"url": "home"})
        assert tab.equals({"label": "Home", "url": "home"})
        assert not tab.equals({"label": "Other", "url": "home"})

    def test_empty_query_never_matches(self):
        assert not Tab.create("Home", "home").equals({})
        assert not Tab.create("Home", "home").equals(None)

    def test_strict_org(self):
        tab = Tab.create("Home", "home", "acme")
        assert not tab.equals({"url": "home"})
        assert tab.equals({"url": "home", "org": "acme"})

    def test_loose_org(self):
        tab = Tab.create("Home", "home", "acme")
        assert tab.equals({"url": "home"}, strict=False)
        assert not tab.equals({"url": "home", "org": "beta"}, strict=False)

    def test_query_with_unsupported_type(self):
        with pytest.raises(TypeError):
            Tab.create("Home", "home").equals("home")


class TestDuplicate:
    def test_same_url_and_org(self):
        assert Tab.create("A", "a", "acme").is_duplicate(Tab.create("B", "a", "acme"))

    def test_generic_vs_org_is_not_duplicate(self):
        assert not Tab.create("A", "a").is_duplicate(Tab.create("A", "a", "acme"))

    def test_both_generic(self):
        assert Tab.create("A", "a").is_duplicate({"url": "a"})

    def test_hash_code(self):
        assert Tab.create("A", "a", "acme").hash_code() == "a@acme"
        assert Tab.create("A", "a").hash_code() == "a@None"


# ---------------------------------------------------------------------------
# Mutation
# ---------------------------------------------------------------------------


class TestUpdate:
    def test_update_returns_self(self):
        tab = Tab.create("A", "a")
        assert tab.update({"label": "B"}) is tab
        assert tab.label == "B"

    def test_empty_label_and_url_are_ignored(self):
        tab = Tab.create("A", "a")
        tab.update({"label": "", "url": None})
        assert (tab.label, tab.url) == ("A", "a")

    def test_url_is_minified(self):
        tab = Tab.create("A", "a")
        tab.update({"url": "/lightning/setup/Flows/home/"})
        assert tab.url == "Flows/home"

    def test_org_set_and_cleared(self):
        tab = Tab.create("A", "a")
        tab.update({"org": "acme.lightning.force.com"})
        assert tab.org == "acme"
        tab.update({"org": ""})
        assert tab.org is None

    def test_click_metadata_cleared(self):
        tab = Tab.create({"label": "A", "url": "a", "click-count": 2, "click-date": 1000})
        tab.update({"click-count": "", "click-date": ""})
        assert tab.click_count is None
        assert tab.click_date is None

    def test_unexpected_key(self):
        with pytest.raises(UnexpectedKeyError):
            Tab.create("A", "a").update({"colour": "red"})

    def test_invalid_change_leaves_tab_untouched(self):
        tab = Tab.create("A", "a")
        with pytest.raises(InvalidClickCountError):
            tab.update({"label": "B", "click-count": -5})
        assert tab.label == "A"

    def test_handle_click(self):
        tab = Tab.create("A", "a")
        before = now_ms()
        tab.handle_click()
        tab.handle_click()
        assert tab.click_count == 2
        assert before <= tab.click_date <= now_ms()


class TestSerialization:
    def test_to_json_omits_empty_fields(self):
        assert Tab.create("A", "a").to_json() == {"label": "A", "url": "a"}

    def test_to_json_full(self):
        tab = Tab.create({"label": "A", "url": "a", "org": "acme", "click-count": 1, "click-date": 5})
        assert tab.to_json() == {
            "label": "A",
            "url": "a",
            "org": "acme",
            "click-count": 1,
            "click-date": 5,
        }

    def test_str_is_pretty_json(self):
        text = str(Tab.create("⚡", "/lightning"))
        assert json.loads(text) == {"label": "⚡", "url": "/lightning"}
        assert "\n    " in text

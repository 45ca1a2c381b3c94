from __future__ import annotations

import pytest

from catalog_sync.locales.flatten import flatten_document, is_flat_document, merge_into_document, unflatten_catalog


def test_flatten_nested_objects_and_arrays():
    doc = {
        "home": {"title": "Welcome", "items": ["a", "b"]},
        "count": 3,
        "enabled": True,
        "missing": None,
    }
    flat = flatten_document(doc)
    assert flat == {
        "home.title": "Welcome",
        "home.items.0": "a",
        "home.items.1": "b",
        "count": "3",
        "enabled": "true",
    }


def test_flatten_preserves_insertion_order():
    doc = {"z": "1", "a": {"y": "2", "b": "3"}, "m": "4"}
    assert list(flatten_document(doc)) == ["z", "a.y", "a.b", "m"]


def test_flatten_top_level_primitive_is_ignored():
    assert flatten_document("just text") == {}
    assert flatten_document(None) == {}


def test_flatten_is_deterministic():
    doc = {"b": {"c": "1"}, "a": ["x", {"y": "z"}]}
    assert flatten_document(doc) == flatten_document(doc)
    assert list(flatten_document(doc)) == list(flatten_document(doc))


def test_round_trip_without_arrays():
    doc = {"home": {"title": "Welcome", "nav": {"back": "Back"}}, "footer": "Bye"}
    assert unflatten_catalog(flatten_document(doc)) == doc


def test_unflatten_restores_lists():
    flat = {"steps.0": "one", "steps.1": "two", "title": "t"}
    assert unflatten_catalog(flat) == {"steps": ["one", "two"], "title": "t"}


def test_unflatten_rejects_value_and_section_collision():
    with pytest.raises(ValueError):
        unflatten_catalog({"home": "Home", "home.title": "Welcome"})
    with pytest.raises(ValueError):
        unflatten_catalog({"home.title": "Welcome", "home": "Home"})


def test_is_flat_document():
    assert is_flat_document({"a.b": "x", "c": 1}) is True
    assert is_flat_document({"a": {"b": "x"}}) is False
    assert is_flat_document(["x"]) is False


def test_merge_keeps_unchanged_leaf_types():
    original = {"title": "T", "count": 5, "beta": True, "ratio": 1.5}
    updated = {"title": "T", "count": "5", "beta": "true", "ratio": "2"}
    merged = merge_into_document(original, updated)
    assert merged == {"title": "T", "count": 5, "beta": True, "ratio": "2"}


def test_merge_restores_null_leaves_and_empty_sections_in_place():
    original = {"title": "T", "note": None, "empty": {}, "list": [], "end": "E"}
    updated = {"title": "T", "title_new": "New", "end": "E"}
    merged = merge_into_document(original, updated)
    assert merged == {"title": "T", "title_new": "New", "note": None, "empty": {}, "list": [], "end": "E"}
    assert list(merged) == ["title", "title_new", "note", "empty", "list", "end"]


def test_merge_nested_sections_and_lists():
    original = {"home": {"title": "Hi", "flags": {"on": False}}, "steps": ["a", None, "c"]}
    flat = flatten_document(original)
    flat["home.title"] = "Hello"
    merged = merge_into_document(original, unflatten_catalog(flat))
    assert merged == {"home": {"title": "Hello", "flags": {"on": False}}, "steps": ["a", None, "c"]}


def test_merge_matches_non_string_keys():
    original = {1: "one", "two": "2"}
    merged = merge_into_document(original, {"1": "uno", "two": "2"})
    assert merged == {1: "uno", "two": "2"}

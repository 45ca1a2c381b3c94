from __future__ import annotations

import pytest

from catalog_sync.locales.store import build_locale_mapping
from catalog_sync.models import FallbackPolicy, OverrideDecisions, OverrideMode, RowMeta, TranslationRow
from catalog_sync.services.synchronizer import (
    MissingBaseCatalogError,
    apply_plan,
    build_ordered_catalog,
    build_override_candidates,
    deduplicate_rows,
    ensure_unique_key,
    leading_token,
    plan_sync,
)


def _row(key: str, en: str, **translations: str) -> TranslationRow:
    return TranslationRow(key=key, en=en, translations=translations)


def _catalogs() -> dict[str, dict[str, str]]:
    return {
        "en": {"home.title": "Welcome", "home.subtitle": "Hello", "settings.save": "Save"},
        "de": {"home.title": "Willkommen", "settings.save": "Speichern"},
    }


REJECT = OverrideDecisions(OverrideMode.REJECT_ALL)


def test_override_rejected_keeps_catalog_unchanged():
    catalogs = {"en": {"home.title": "Welcome"}}
    mapping = build_locale_mapping(catalogs, base_locale="en")
    plan = plan_sync([_row("home.title", "Welcome Back")], catalogs, mapping)
    assert len(plan.override_candidates) == 1
    candidate = plan.override_candidates[0]
    assert candidate.changed_locales == ["en"]
    assert candidate.before == {"en": "Welcome"}
    assert candidate.after == {"en": "Welcome Back"}

    result = apply_plan(plan, REJECT)
    assert result.catalogs["en"] == {"home.title": "Welcome"}
    assert result.changed_locales == []


def test_override_accepted_writes_every_mapped_locale():
    catalogs = _catalogs()
    mapping = build_locale_mapping(catalogs, base_locale="en")
    rows = [_row("home.title", "Welcome Back", de="Willkommen zurück")]
    plan = plan_sync(rows, catalogs, mapping)
    assert plan.override_candidates[0].changed_locales == ["de", "en"]

    result = apply_plan(plan, OverrideDecisions(OverrideMode.ACCEPT_ALL, frozenset({0})), dry_run=False)
    assert result.catalogs["en"]["home.title"] == "Welcome Back"
    assert result.catalogs["de"]["home.title"] == "Willkommen zurück"
    assert list(result.catalogs["en"]) == list(catalogs["en"])
    assert result.report.confirmed_overrides == [0]
    assert result.report.dry_run is False
    assert sorted(result.changed_locales) == ["de", "en"]


def test_equal_values_produce_no_candidate():
    catalogs = _catalogs()
    mapping = build_locale_mapping(catalogs, base_locale="en")
    rows = [_row("settings.save", "Save", de="Speichern")]
    assert build_override_candidates(rows, catalogs["en"], mapping, catalogs) == []


def test_blank_locale_value_is_not_a_change():
    catalogs = _catalogs()
    mapping = build_locale_mapping(catalogs, base_locale="en")
    rows = [_row("settings.save", "Save")]
    assert build_override_candidates(rows, catalogs["en"], mapping, catalogs) == []


def test_missing_locale_value_counts_as_empty_before():
    catalogs = _catalogs()
    mapping = build_locale_mapping(catalogs, base_locale="en")
    rows = [_row("home.subtitle", "Hello", de="Hallo")]
    [candidate] = build_override_candidates(rows, catalogs["en"], mapping, catalogs)
    assert candidate.before == {"de": ""}
    assert candidate.after == {"de": "Hallo"}


def test_changed_locale_iff_values_differ():
    catalogs = _catalogs()
    mapping = build_locale_mapping(catalogs, base_locale="en")
    rows = [_row("home.title", "Welcome", de="Hallo Welt")]
    [candidate] = build_override_candidates(rows, catalogs["en"], mapping, catalogs)
    for locale in candidate.changed_locales:
        assert candidate.before[locale] != candidate.after[locale]
    assert "en" not in candidate.changed_locales


def test_deduplicate_last_row_wins_first_position_kept():
    rows = [_row("a", "1"), _row("b", "2"), _row("a", "3")]
    unique = deduplicate_rows(rows)
    assert [(r.key, r.en) for r in unique] == [("a", "3"), ("b", "2")]


def test_new_entry_fills_locales_with_empty_fallback():
    catalogs = _catalogs()
    mapping = build_locale_mapping(catalogs, base_locale="en")
    plan = plan_sync([_row("home.banner", "Sale")], catalogs, mapping)
    assert plan.new_entries == ["home.banner"]
    assert plan.working["en"]["home.banner"] == "Sale"
    assert plan.working["de"]["home.banner"] == ""
    # snapshot untouched
    assert "home.banner" not in plan.snapshot["en"]
    assert "home.banner" not in catalogs["en"]


def test_new_entry_fills_locales_with_en_fallback():
    catalogs = _catalogs()
    mapping = build_locale_mapping(catalogs, base_locale="en")
    plan = plan_sync([_row("home.banner", "Sale")], catalogs, mapping, fallback="en")
    assert plan.fallback is FallbackPolicy.EN
    assert plan.working["de"]["home.banner"] == "Sale"


def test_new_entry_uses_direct_translation():
    catalogs = _catalogs()
    mapping = build_locale_mapping(catalogs, base_locale="en")
    plan = plan_sync([_row("home.banner", "Sale", de="Angebot")], catalogs, mapping, fallback="en")
    assert plan.working["de"]["home.banner"] == "Angebot"


def test_generated_keys_listed_for_new_entries():
    catalogs = _catalogs()
    mapping = build_locale_mapping(catalogs, base_locale="en")
    rows = [
        TranslationRow("checkout_pay_now", "Pay now", meta=RowMeta(True, "*checkout*")),
        TranslationRow("click_save", "Click save", meta=RowMeta(True, "")),
    ]
    plan = plan_sync(rows, catalogs, mapping)
    assert [(g.key, g.from_key) for g in plan.generated_keys] == [
        ("checkout_pay_now", "*checkout*"),
        ("click_save", None),
    ]


def test_missing_base_catalog():
    mapping = build_locale_mapping(["de"])
    with pytest.raises(MissingBaseCatalogError):
        plan_sync([_row("a", "b")], {"de": {}}, mapping)


def test_ensure_unique_key():
    assert ensure_unique_key("a", {"b": ""}) == "a"
    assert ensure_unique_key("a", {"a": "", "a_2": ""}) == "a_3"


def test_conflict_blocks_write():
    catalogs = {"en": {}, "pt": {}, "pt-br": {}}
    mapping = build_locale_mapping(catalogs, base_locale="en")
    plan = plan_sync([_row("a", "b", ptbr="c")], catalogs, mapping)
    assert plan.write_blocked is True
    result = apply_plan(plan, OverrideDecisions(OverrideMode.ACCEPT_ALL), dry_run=False)
    assert result.report.write_blocked is True
    assert result.report.counts["mapping_conflicts"] == 1


def test_leading_token():
    assert leading_token("home.title") == "home"
    assert leading_token("home_title") == "home"
    assert leading_token("plain") == "plain"
    assert leading_token(".hidden") == ".hidden"


def test_ordering_inserts_after_last_sibling():
    previous = {"home.title": "1", "home.subtitle": "2", "settings.save": "3"}
    next_data = dict(previous, **{"home.banner": "4", "about.text": "5"})
    ordered = build_ordered_catalog(previous, next_data, ["home.banner", "about.text"])
    assert list(ordered) == ["home.title", "home.subtitle", "home.banner", "settings.save", "about.text"]


def test_ordering_preserves_existing_relative_order():
    previous = {"b.x": "1", "a.y": "2", "b.z": "3", "c": "4"}
    next_data = dict(previous, **{"a.new": "5", "b.new": "6", "zzz": "7"})
    ordered = build_ordered_catalog(previous, next_data, ["a.new", "b.new", "zzz"])
    kept = [k for k in ordered if k in previous]
    assert kept == list(previous)
    assert list(ordered) == ["b.x", "a.y", "a.new", "b.z", "b.new", "c", "zzz"]


def test_ordering_appends_unplaced_keys():
    previous = {"a": "1"}
    ordered = build_ordered_catalog(previous, {"a": "1", "stray": "2"}, [])
    assert list(ordered) == ["a", "stray"]


def test_apply_does_not_mutate_plan():
    catalogs = _catalogs()
    mapping = build_locale_mapping(catalogs, base_locale="en")
    plan = plan_sync([_row("home.title", "New")], catalogs, mapping)
    apply_plan(plan, OverrideDecisions(OverrideMode.ACCEPT_ALL, frozenset({0})))
    assert plan.working["en"]["home.title"] == "Welcome"


def test_report_shape_is_mode_independent():
    catalogs = _catalogs()
    mapping = build_locale_mapping(catalogs, base_locale="en")
    plan = plan_sync([_row("home.title", "New"), _row("x.y", "z")], catalogs, mapping)
    preview = apply_plan(plan, REJECT, dry_run=True).report
    write = apply_plan(plan, REJECT, dry_run=False).report
    assert preview.counts == write.counts
    assert preview.dry_run is True and write.dry_run is False


def test_ordering_groups_new_sections_at_the_end():
    previous = {"home.title": "1"}
    added = ["faq.one", "legal.terms", "faq.two"]
    next_data = dict(previous, **{key: "x" for key in added})
    ordered = build_ordered_catalog(previous, next_data, added)
    assert list(ordered) == ["home.title", "faq.one", "faq.two", "legal.terms"]

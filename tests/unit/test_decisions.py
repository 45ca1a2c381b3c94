from __future__ import annotations

import pytest

from catalog_sync.locales.store import build_locale_mapping
from catalog_sync.models import OverrideMode, TranslationRow
from catalog_sync.services.decisions import (
    OverrideSelection,
    ScriptedConfirmer,
    parse_index_list,
    parse_override_mode,
    pending_decisions,
    prompt_confirm,
    prompt_override_selection,
    resolve_decisions,
)
from catalog_sync.services.synchronizer import plan_sync


def _plan(n: int = 3):
    catalogs = {"en": {f"k{i}": f"old{i}" for i in range(n)}}
    mapping = build_locale_mapping(catalogs, base_locale="en")
    rows = [TranslationRow(f"k{i}", f"new{i}") for i in range(n)]
    return plan_sync(rows, catalogs, mapping)


def test_parse_index_list_is_one_based():
    assert parse_index_list("1, 3,8") == frozenset({0, 2, 7})
    assert parse_index_list("x, 0, -2, 2") == frozenset({1})
    assert parse_index_list("") == frozenset()


@pytest.mark.parametrize(
    "text,mode",
    [
        ("a", OverrideMode.ACCEPT_ALL),
        ("N", OverrideMode.REJECT_ALL),
        (" y ", OverrideMode.CONFIRM_EACH),
        ("s:1,2", OverrideMode.SELECT),
        (None, OverrideMode.REJECT_ALL),
        ("bogus", OverrideMode.REJECT_ALL),
    ],
)
def test_parse_override_mode(text, mode):
    assert parse_override_mode(text).mode is mode


def test_parse_override_mode_select_indexes():
    assert parse_override_mode("s:2,3").indexes == frozenset({1, 2})


def test_accept_all_and_reject_all():
    plan = _plan()
    assert resolve_decisions(plan, OverrideSelection(OverrideMode.ACCEPT_ALL)).accepted == frozenset({0, 1, 2})
    assert resolve_decisions(plan, OverrideSelection(OverrideMode.REJECT_ALL)).accepted == frozenset()


def test_select_drops_out_of_range_indexes():
    plan = _plan()
    decisions = resolve_decisions(plan, parse_override_mode("s:1,3,8"))
    assert decisions.accepted == frozenset({0, 2})
    assert decisions.is_accepted(2)
    assert not decisions.is_accepted(1)


def test_confirm_each_asks_in_order():
    plan = _plan()
    confirmer = ScriptedConfirmer([True, False, True])
    decisions = resolve_decisions(plan, OverrideSelection(OverrideMode.CONFIRM_EACH), confirmer)
    assert decisions.accepted == frozenset({0, 2})
    assert [r.position for r in confirmer.asked] == [1, 2, 3]
    assert all(r.total == 3 for r in confirmer.asked)


def test_confirm_each_by_key_with_default():
    plan = _plan()
    confirmer = ScriptedConfirmer({"k1": True}, default=False)
    decisions = resolve_decisions(plan, OverrideSelection(OverrideMode.CONFIRM_EACH), confirmer)
    assert decisions.accepted == frozenset({1})


def test_confirm_each_requires_callback():
    with pytest.raises(ValueError):
        resolve_decisions(_plan(), OverrideSelection(OverrideMode.CONFIRM_EACH))


def test_confirm_each_without_candidates_needs_no_callback():
    decisions = resolve_decisions(_plan(0), OverrideSelection(OverrideMode.CONFIRM_EACH))
    assert decisions.accepted == frozenset()


def test_pending_decisions_follow_candidate_order():
    requests = pending_decisions(_plan())
    assert [r.candidate.key for r in requests] == ["k0", "k1", "k2"]


def test_prompt_confirm_reads_answer():
    request = pending_decisions(_plan(1))[0]
    prompts: list[str] = []

    def fake_input(text: str) -> str:
        prompts.append(text)
        return "Y"

    assert prompt_confirm(request, input_fn=fake_input) is True
    assert prompts[0].startswith("[1/1] override k0")
    assert prompt_confirm(request, input_fn=lambda _: "") is False


def test_prompt_override_selection_select_mode(capsys):
    answers = iter(["s", "2"])
    selection = prompt_override_selection(_plan().override_candidates, input_fn=lambda _: next(answers))
    assert selection.mode is OverrideMode.SELECT
    assert selection.indexes == frozenset({1})
    assert "1. k0" in capsys.readouterr().out


def test_prompt_override_selection_skips_without_candidates():
    def fail(_):
        raise AssertionError("should not prompt")

    assert prompt_override_selection([], input_fn=fail).mode is OverrideMode.REJECT_ALL

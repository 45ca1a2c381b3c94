from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass

from ..models.sync_plan import OverrideCandidate, OverrideDecisions, OverrideMode, SyncPlan

"""Override decision protocol.

The synchronizer never talks to a terminal. It exposes its override
candidates as an ordered list of DecisionRequest objects; a confirm
callback (interactive prompt or pre-scripted answers) resolves them one at
a time, strictly in list order. Every path ends in an OverrideDecisions
value consumed by apply_plan().
"""

__all__ = [
    "OverrideSelection",
    "DecisionRequest",
    "ConfirmCallback",
    "parse_index_list",
    "parse_override_mode",
    "pending_decisions",
    "resolve_decisions",
    "ScriptedConfirmer",
    "prompt_confirm",
    "prompt_override_selection",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OverrideSelection:
    """Requested resolution mode. ``indexes`` are 0-based (SELECT mode only)."""
    mode: OverrideMode
    indexes: frozenset[int] = frozenset()


@dataclass(frozen=True)
class DecisionRequest:
    index: int  # 0-based position in the candidate list
    total: int
    candidate: OverrideCandidate

    @property
    def position(self) -> int:
        return self.index + 1


ConfirmCallback = Callable[[DecisionRequest], bool]


def parse_index_list(text: str) -> frozenset[int]:
    """``"1, 3,8"`` -> {0, 2, 7}. Non-integers and values < 1 are ignored."""
    indexes: set[int] = set()
    for item in text.split(","):
        item = item.strip()
        try:
            value = int(item)
        except ValueError:
            continue
        if value > 0:
            indexes.add(value - 1)
    return frozenset(indexes)


def parse_override_mode(text: str | None) -> OverrideSelection:
    """Parse ``a`` | ``n`` | ``y`` | ``s:1,2``.

    None means "not given" and resolves to reject-all; unknown text also
    rejects all, with a warning.
    """
    if text is None:
        return OverrideSelection(OverrideMode.REJECT_ALL)
    value = text.strip().lower()
    if value in ("a", "n", "y"):
        return OverrideSelection(OverrideMode(value))
    if value.startswith("s:"):
        return OverrideSelection(OverrideMode.SELECT, parse_index_list(value[2:]))
    logger.warning(f"unknown override mode '{text}' -> all overrides skipped")
    return OverrideSelection(OverrideMode.REJECT_ALL)


def pending_decisions(plan: SyncPlan) -> list[DecisionRequest]:
    total = len(plan.override_candidates)
    return [
        DecisionRequest(index=i, total=total, candidate=candidate)
        for i, candidate in enumerate(plan.override_candidates)
    ]


def resolve_decisions(
    plan: SyncPlan,
    selection: OverrideSelection,
    confirm: ConfirmCallback | None = None,
) -> OverrideDecisions:
    """Turn a selection into accepted candidate indices.

    Raises:
        ValueError: confirm-each mode without a confirm callback
    """
    total = len(plan.override_candidates)
    if selection.mode is OverrideMode.ACCEPT_ALL:
        accepted = frozenset(range(total))
    elif selection.mode is OverrideMode.SELECT:
        dropped = sorted(i + 1 for i in selection.indexes if i >= total)
        if dropped:
            logger.warning(f"override indexes out of range ignored: {dropped}")
        accepted = frozenset(i for i in selection.indexes if i < total)
    elif selection.mode is OverrideMode.CONFIRM_EACH:
        if confirm is None and total:
            raise ValueError("confirm-each mode requires a confirm callback")
        chosen: set[int] = set()
        for request in pending_decisions(plan):
            if confirm(request):  # type: ignore[misc]
                chosen.add(request.index)
        accepted = frozenset(chosen)
    else:
        accepted = frozenset()
    return OverrideDecisions(mode=selection.mode, accepted=accepted)


class ScriptedConfirmer:
    """Pre-scripted answers for confirm-each mode.

    ``answers`` is either a sequence consumed in request order or a mapping
    of candidate key -> answer. Missing answers fall back to ``default``.
    """

    def __init__(self, answers: Iterable[bool] | Mapping[str, bool], default: bool = False) -> None:
        self.by_key: dict[str, bool] | None = None
        self.sequence: list[bool] = []
        if isinstance(answers, Mapping):
            self.by_key = dict(answers)
        else:
            self.sequence = list(answers)
        self.default = default
        self.asked: list[DecisionRequest] = []

    def __call__(self, request: DecisionRequest) -> bool:
        self.asked.append(request)
        if self.by_key is not None:
            return self.by_key.get(request.candidate.key, self.default)
        if request.index < len(self.sequence):
            return self.sequence[request.index]
        return self.default


def _describe(candidate: OverrideCandidate) -> str:
    changes = ", ".join(
        f"{loc}: {candidate.before.get(loc, '')!r} -> {candidate.after.get(loc, '')!r}"
        for loc in candidate.changed_locales
    )
    return f"{candidate.key} ({changes})"


def prompt_confirm(request: DecisionRequest, input_fn: Callable[[str], str] = input) -> bool:
    answer = input_fn(f"[{request.position}/{request.total}] override {_describe(request.candidate)}? [y/N] ")
    return answer.strip().lower() == "y"


def prompt_override_selection(
    candidates: list[OverrideCandidate], input_fn: Callable[[str], str] = input
) -> OverrideSelection:
    """Ask for the resolution mode. No candidates -> reject-all without asking."""
    if not candidates:
        return OverrideSelection(OverrideMode.REJECT_ALL)
    print("\nOverride candidates: a=accept all, n=skip all, y=confirm each, s=select by number")
    for i, candidate in enumerate(candidates, start=1):
        print(f"  {i}. {_describe(candidate)}")
    mode = input_fn("Choose [a/n/y/s]: ").strip().lower()
    if mode in ("a", "n", "y"):
        return OverrideSelection(OverrideMode(mode))
    if mode == "s":
        text = input_fn("Numbers, comma separated (e.g. 1,3,8): ")
        return OverrideSelection(OverrideMode.SELECT, parse_index_list(text))
    return OverrideSelection(OverrideMode.REJECT_ALL)

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .locale_mapping import LocaleMapping, MappingConflict
from .translation_row import TranslationRow

"""Synchronization plan / result models.

A SyncPlan is computed once per run from the spreadsheet rows and the
catalog snapshot. It is never mutated: apply_plan() copies the working
catalogs before applying accepted overrides.
"""

__all__ = [
    "FallbackPolicy",
    "OverrideMode",
    "OverrideCandidate",
    "GeneratedKey",
    "SyncPlan",
    "OverrideDecisions",
    "ChangeReport",
    "SyncResult",
]


class FallbackPolicy(Enum):
    """Value given to locales without a translation for a new entry."""
    EMPTY = "empty"
    EN = "en"


class OverrideMode(Enum):
    """How override candidates are resolved.

    - ACCEPT_ALL (a): overwrite every candidate
    - REJECT_ALL (n): keep every existing value
    - CONFIRM_EACH (y): ask once per candidate in list order
    - SELECT (s): accept an explicit 1-based index subset
    """
    ACCEPT_ALL = "a"
    REJECT_ALL = "n"
    CONFIRM_EACH = "y"
    SELECT = "s"


@dataclass(frozen=True)
class OverrideCandidate:
    """Existing key whose spreadsheet value differs in at least one locale."""
    key: str
    before: dict[str, str]
    after: dict[str, str]
    changed_locales: list[str]


@dataclass(frozen=True)
class GeneratedKey:
    key: str
    en: str
    from_key: str | None = None


@dataclass(frozen=True)
class SyncPlan:
    base_locale: str
    fallback: FallbackPolicy
    mapping: LocaleMapping
    rows: list[TranslationRow]  # deduplicated, final keys
    snapshot: dict[str, dict[str, str]]  # locale -> catalog as read
    working: dict[str, dict[str, str]]  # locale -> catalog with new entries
    override_candidates: list[OverrideCandidate] = field(default_factory=list)
    new_entries: list[str] = field(default_factory=list)
    generated_keys: list[GeneratedKey] = field(default_factory=list)

    @property
    def conflicts(self) -> list[MappingConflict]:
        return self.mapping.conflicts

    @property
    def write_blocked(self) -> bool:
        return self.mapping.has_conflicts


@dataclass(frozen=True)
class OverrideDecisions:
    """Resolved override decisions (0-based indices into the candidate list)."""
    mode: OverrideMode
    accepted: frozenset[int] = frozenset()

    def is_accepted(self, index: int) -> bool:
        return index in self.accepted


@dataclass(frozen=True)
class ChangeReport:
    """Structured change summary. Identical shape for preview and write runs."""
    dry_run: bool
    write_blocked: bool
    override_candidates: list[OverrideCandidate]
    confirmed_overrides: list[int]  # 0-based, ascending
    new_entries: list[str]
    generated_keys: list[GeneratedKey]
    conflicts: list[MappingConflict]

    @property
    def counts(self) -> dict[str, int]:
        return {
            "override_candidates": len(self.override_candidates),
            "confirmed_overrides": len(self.confirmed_overrides),
            "new_entries": len(self.new_entries),
            "generated_keys": len(self.generated_keys),
            "mapping_conflicts": len(self.conflicts),
        }


@dataclass(frozen=True)
class SyncResult:
    catalogs: dict[str, dict[str, str]]  # locale -> ordered flat catalog
    report: ChangeReport
    changed_locales: list[str]  # locales whose ordered catalog differs from the snapshot

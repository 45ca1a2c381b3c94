from __future__ import annotations

import dataclasses
import logging
import re
from collections.abc import Iterable, Mapping

from ..models.locale_mapping import LocaleMapping
from ..models.sync_plan import (
    ChangeReport,
    FallbackPolicy,
    GeneratedKey,
    OverrideCandidate,
    OverrideDecisions,
    SyncPlan,
    SyncResult,
)
from ..models.translation_row import RowMeta, TranslationRow
from .key_deriver import next_free_key

"""Catalog synchronizer: diff spreadsheet rows against locale catalogs.

plan_sync() computes, from an immutable catalog snapshot:
- override candidates (existing keys whose value differs in a mapped locale)
- new entries, seeded into a working copy of every locale catalog
- whether writing is blocked by a locale mapping conflict

apply_plan() applies the accepted overrides to a copy of the working
catalogs and rebuilds each catalog in file order, placing new keys next to
existing keys of the same section.
"""

__all__ = [
    "MissingBaseCatalogError",
    "deduplicate_rows",
    "build_override_candidates",
    "ensure_unique_key",
    "plan_sync",
    "leading_token",
    "build_ordered_catalog",
    "apply_plan",
]

logger = logging.getLogger(__name__)


class MissingBaseCatalogError(Exception):
    """Raised when the base (English) catalog is not among the catalogs."""


def deduplicate_rows(rows: Iterable[TranslationRow]) -> list[TranslationRow]:
    """Last row per key wins; the key keeps its first position."""
    by_key: dict[str, TranslationRow] = {}
    for row in rows:
        by_key[row.key] = row
    return list(by_key.values())


def build_override_candidates(
    rows: Iterable[TranslationRow],
    base_catalog: Mapping[str, str],
    mapping: LocaleMapping,
    catalogs: Mapping[str, Mapping[str, str]],
    base_locale: str = "en",
) -> list[OverrideCandidate]:
    """Rows with an existing key and at least one differing mapped-locale value.

    A locale is changed iff before != after. Blank row values are "no data"
    and never produce a change for non-base locales.
    """
    candidates: list[OverrideCandidate] = []
    for row in rows:
        if row.key not in base_catalog:
            continue
        before: dict[str, str] = {}
        after: dict[str, str] = {}

        base_before = base_catalog.get(row.key) or ""
        if base_before != row.en:
            before[base_locale] = base_before
            after[base_locale] = row.en

        for locale_code, column in mapping.locale_to_column.items():
            if locale_code == base_locale:
                continue
            next_value = row.value_for(column)
            if not next_value:
                continue
            catalog = catalogs.get(locale_code)
            if catalog is None:
                continue
            previous = catalog.get(row.key) or ""
            if previous != next_value:
                before[locale_code] = previous
                after[locale_code] = next_value

        if after:
            candidates.append(
                OverrideCandidate(
                    key=row.key,
                    before=before,
                    after=after,
                    changed_locales=sorted(after),
                )
            )
    return candidates


def ensure_unique_key(desired_key: str, catalog: Mapping[str, str]) -> str:
    return next_free_key(desired_key, catalog)


def plan_sync(
    rows: Iterable[TranslationRow],
    catalogs: Mapping[str, Mapping[str, str]],
    mapping: LocaleMapping,
    base_locale: str = "en",
    fallback: FallbackPolicy | str = FallbackPolicy.EMPTY,
) -> SyncPlan:
    """Compute override candidates and new entries for one run.

    Raises:
        MissingBaseCatalogError: ``base_locale`` has no catalog
    """
    if base_locale not in catalogs:
        raise MissingBaseCatalogError(
            f"base catalog '{base_locale}' is missing; every diff is keyed against it"
        )
    policy = FallbackPolicy(fallback)
    snapshot = {locale: dict(entries) for locale, entries in catalogs.items()}
    working = {locale: dict(entries) for locale, entries in catalogs.items()}
    base_snapshot = snapshot[base_locale]
    base_working = working[base_locale]

    unique_rows = deduplicate_rows(rows)
    candidates = build_override_candidates(unique_rows, base_snapshot, mapping, snapshot, base_locale)

    final_rows: list[TranslationRow] = []
    new_entries: list[str] = []
    generated: list[GeneratedKey] = []
    for row in unique_rows:
        if row.key in base_working:
            final_rows.append(row)
            continue

        final_key = ensure_unique_key(row.key, base_working)
        if final_key != row.key:
            original = row.meta.original_key if row.meta else row.key
            row = dataclasses.replace(row, key=final_key, meta=RowMeta(True, original))
        final_rows.append(row)
        base_working[final_key] = row.en
        new_entries.append(final_key)
        if row.is_generated_key:
            generated.append(GeneratedKey(key=final_key, en=row.en, from_key=row.meta.original_key or None))

        for locale_code, data in working.items():
            column = mapping.column_for(locale_code)
            if not column:
                continue
            direct = row.value_for(column)
            if direct:
                data[final_key] = direct
            elif locale_code == base_locale or policy is FallbackPolicy.EN:
                data[final_key] = row.en
            else:
                data[final_key] = ""

    if mapping.has_conflicts:
        for conflict in mapping.conflicts:
            logger.warning(
                f"mapping conflict: column '{conflict.column}' <- {', '.join(conflict.locales)}; writing blocked"
            )
    logger.info(
        f"plan: rows={len(final_rows)} overrides={len(candidates)} new={len(new_entries)} generated={len(generated)}"
    )
    return SyncPlan(
        base_locale=base_locale,
        fallback=policy,
        mapping=mapping,
        rows=final_rows,
        snapshot=snapshot,
        working=working,
        override_candidates=candidates,
        new_entries=new_entries,
        generated_keys=generated,
    )


def leading_token(key: str) -> str:
    """Text before the first '.' or '_' (the key's section)."""
    return re.split(r"[._]", key, maxsplit=1)[0] or key


def build_ordered_catalog(
    previous: Mapping[str, str],
    next_data: Mapping[str, str],
    added_keys: Iterable[str],
) -> dict[str, str]:
    """Order ``next_data`` like ``previous``.

    Each added key goes right after the last key sharing its leading token
    (or to the end). Keys placed by neither rule are appended, never dropped.
    """
    last_by_token: dict[str, str] = {}
    for key in previous:
        last_by_token[leading_token(key)] = key

    placed = set(previous)
    after_key: dict[str, list[str]] = {}
    tail: dict[str, list[str]] = {}
    for added in added_keys:
        if added not in next_data or added in placed:
            continue
        placed.add(added)
        token = leading_token(added)
        if token in last_by_token:
            after_key.setdefault(last_by_token[token], []).append(added)
        else:
            # keys of one unknown section stay together at the end
            tail.setdefault(token, []).append(added)

    ordered: list[str] = []
    for key in previous:
        ordered.append(key)
        ordered.extend(after_key.get(key, ()))
    for keys in tail.values():
        ordered.extend(keys)
    for key in next_data:
        if key not in placed:
            ordered.append(key)
            placed.add(key)

    return {key: next_data[key] for key in ordered if key in next_data}


def apply_plan(plan: SyncPlan, decisions: OverrideDecisions, dry_run: bool = True) -> SyncResult:
    """Apply accepted overrides and rebuild every catalog in file order.

    The plan is not modified. Writing is left to the caller; ``dry_run``
    only sets the report's mode flag.
    """
    candidates = plan.override_candidates
    accepted = sorted(i for i in decisions.accepted if 0 <= i < len(candidates))
    catalogs = {locale: dict(entries) for locale, entries in plan.working.items()}
    rows_by_key = {row.key: row for row in plan.rows}

    for index in accepted:
        candidate = candidates[index]
        row = rows_by_key.get(candidate.key)
        if row is None:
            continue
        for locale_code, data in catalogs.items():
            column = plan.mapping.column_for(locale_code)
            if not column:
                continue
            value = row.value_for(column)
            if value:
                data[candidate.key] = value

    ordered: dict[str, dict[str, str]] = {}
    changed: list[str] = []
    for locale_code, data in catalogs.items():
        previous = plan.snapshot.get(locale_code, {})
        ordered[locale_code] = build_ordered_catalog(previous, data, plan.new_entries)
        if list(ordered[locale_code].items()) != list(previous.items()):
            changed.append(locale_code)

    report = ChangeReport(
        dry_run=dry_run,
        write_blocked=plan.write_blocked,
        override_candidates=list(candidates),
        confirmed_overrides=accepted,
        new_entries=list(plan.new_entries),
        generated_keys=list(plan.generated_keys),
        conflicts=list(plan.conflicts),
    )
    return SyncResult(catalogs=ordered, report=report, changed_locales=changed)

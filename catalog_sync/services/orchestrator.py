from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path

from ..excel.reader import read_translation_sheet
from ..locales.resolver import LocaleResolution, resolve_base_locale
from ..locales.store import (
    LocaleCatalog,
    build_locale_mapping,
    cleanup_artifacts,
    read_catalogs,
    restore_backup,
    write_catalog_with_backup,
)
from ..logging.change_log import ChangeLogBuffer
from ..models.change_record import ACTION_ADD, ACTION_OVERRIDE, ChangeRecord
from ..models.sync_plan import FallbackPolicy, OverrideMode, SyncPlan, SyncResult
from ..models.translation_row import DEFAULT_LOCALE_COLUMNS
from .decisions import (
    ConfirmCallback,
    OverrideSelection,
    parse_override_mode,
    prompt_confirm,
    prompt_override_selection,
    resolve_decisions,
)
from .key_deriver import derive_rows
from .progress import ProgressTracker
from .synchronizer import MissingBaseCatalogError, apply_plan, plan_sync

"""Synchronization driver.

run_sync() composes the pipeline for one invocation:
1. Resolve the base locale under the locale root and read its sibling catalogs
2. Read the first spreadsheet sheet and derive row keys
3. Plan: override candidates, new entries, mapping conflicts
4. Resolve override decisions (pre-supplied mode or interactive prompts)
5. Apply decisions and, in write mode, back up and rewrite changed catalogs
6. Flush the change audit log and remove this run's artifacts

All state lives in local variables of one call; nothing is shared between runs.
"""

logger = logging.getLogger(__name__)


class SyncError(Exception):
    """Raised for invalid synchronization options."""


@dataclass(frozen=True)
class SyncOptions:
    excel_path: Path
    locale_dir: Path
    write: bool = False
    fallback: str = "empty"
    override_mode: str | None = None
    override_map: dict[str, str] = field(default_factory=dict)
    backup_dir: Path | None = None
    keep_backups: bool = False
    cleanup_temp_excel: bool = True
    base_locale: str | None = None
    locale_columns: tuple[str, ...] = DEFAULT_LOCALE_COLUMNS
    temp_excel_dirs: tuple[Path, ...] = ()
    audit_log_dir: Path | None = None
    interactive: bool = False


@dataclass(frozen=True)
class SyncOutcome:
    resolution: LocaleResolution
    plan: SyncPlan
    result: SyncResult
    written_files: list[Path] = field(default_factory=list)
    backups: list[Path] = field(default_factory=list)
    removed_artifacts: list[Path] = field(default_factory=list)
    audit_log: Path | None = None


def _select_overrides(
    plan: SyncPlan,
    options: SyncOptions,
    input_fn: Callable[[str], str],
) -> OverrideSelection:
    if options.override_mode is not None:
        return parse_override_mode(options.override_mode)
    if options.interactive:
        return prompt_override_selection(plan.override_candidates, input_fn)
    if plan.override_candidates:
        logger.warning(
            f"{len(plan.override_candidates)} override candidates left unconfirmed (no override mode given)"
        )
    return parse_override_mode(None)


def build_change_records(plan: SyncPlan, result: SyncResult) -> list[ChangeRecord]:
    """Audit records for every value that differs from the snapshot."""
    records: list[ChangeRecord] = []
    for locale_code in result.changed_locales:
        previous = plan.snapshot.get(locale_code, {})
        for key, value in result.catalogs[locale_code].items():
            if key not in previous:
                records.append(ChangeRecord.create(locale_code, key, ACTION_ADD, None, value))
            elif previous[key] != value:
                records.append(ChangeRecord.create(locale_code, key, ACTION_OVERRIDE, previous[key], value))
    return records


def write_catalogs(
    result: SyncResult,
    catalogs: dict[str, LocaleCatalog],
    backup_dir: Path | None = None,
    backups: list[Path] | None = None,
) -> tuple[list[Path], list[Path]]:
    """Back up and rewrite every changed catalog.

    On failure the catalogs already rewritten in this call are restored
    from their backups before the error propagates.

    Args:
        result: Applied sync result
        catalogs: Catalogs as read from disk, by locale code
        backup_dir: Directory for backups (next to each catalog when None)
        backups: Optional list that receives each backup path as soon as it
            is created, so callers can clean up even when a write fails

    Returns:
        tuple: (written file paths, backup paths)
    """
    written: list[tuple[Path, Path | None]] = []
    with ProgressTracker(len(result.changed_locales)) as progress:
        try:
            for locale_code in result.changed_locales:
                catalog = catalogs[locale_code]
                progress.start_file(catalog.path)
                backup = write_catalog_with_backup(catalog, result.catalogs[locale_code], backup_dir)
                written.append((catalog.path, backup))
                if backup is not None and backups is not None:
                    backups.append(backup)
                progress.finish_file()
        except Exception:
            for path, backup in reversed(written):
                if backup is not None:
                    restore_backup(backup, path)
            logger.error(f"catalog write failed; restored {len(written)} file(s) from backups")
            raise
    return [path for path, _ in written], [backup for _, backup in written if backup is not None]


def run_sync(
    options: SyncOptions,
    confirm: ConfirmCallback | None = None,
    input_fn: Callable[[str], str] = input,
) -> SyncOutcome:
    """Run one synchronization.

    Raises:
        LocaleResolveError family, EmptyWorkbookError, MissingBaseCatalogError,
        CatalogWriteError, SyncError; I/O and parse errors propagate unchanged.
    """
    if options.fallback not in {p.value for p in FallbackPolicy}:
        raise SyncError(f"fallback must be 'empty' or 'en', got '{options.fallback}'")

    resolution = resolve_base_locale(options.locale_dir, options.base_locale)
    if resolution.used_fallback:
        raise MissingBaseCatalogError(
            f"no English catalog under {resolution.root_dir}; "
            f"'{resolution.selected.relative_path}' cannot serve as the sync base"
        )
    base_path = resolution.selected.file_path
    stored = read_catalogs(base_path.parent)
    base_locale = base_path.stem
    if base_locale not in stored:
        raise MissingBaseCatalogError(f"base catalog missing: {base_path}")
    logger.info(f"catalogs: {', '.join(stored)} in {base_path.parent}")

    rows = derive_rows(read_translation_sheet(options.excel_path), options.locale_columns)
    logger.info(f"spreadsheet rows: {len(rows)} from {options.excel_path}")

    mapping = build_locale_mapping(stored.keys(), options.override_map, base_locale)
    plan = plan_sync(
        rows,
        {code: catalog.entries for code, catalog in stored.items()},
        mapping,
        base_locale=base_locale,
        fallback=options.fallback,
    )

    selection = _select_overrides(plan, options, input_fn)
    if selection.mode is OverrideMode.CONFIRM_EACH and confirm is None:
        confirm = partial(prompt_confirm, input_fn=input_fn)
    decisions = resolve_decisions(plan, selection, confirm)
    result = apply_plan(plan, decisions, dry_run=not options.write)

    written: list[Path] = []
    backups: list[Path] = []
    audit_path: Path | None = None
    removed: list[Path] = []
    try:
        if options.write and plan.write_blocked:
            logger.warning("writing blocked by locale mapping conflicts; no catalog was modified")
        elif options.write:
            written, _ = write_catalogs(result, stored, options.backup_dir, backups=backups)
            logger.info(f"wrote {len(written)} catalog(s)")
            if options.audit_log_dir is not None:
                buffer = ChangeLogBuffer(options.audit_log_dir)
                buffer.extend(build_change_records(plan, result))
                audit_path = buffer.flush()
    finally:
        # runs after a failed write too, once the rollback has restored the catalogs
        removed = cleanup_artifacts(
            backups,
            remove_backups=not options.keep_backups,
            excel_path=options.excel_path if options.cleanup_temp_excel else None,
            temp_dirs=options.temp_excel_dirs,
        )
    return SyncOutcome(
        resolution=resolution,
        plan=plan,
        result=result,
        written_files=written,
        backups=[b for b in backups if b not in removed],
        removed_artifacts=removed,
        audit_log=audit_path,
    )

from __future__ import annotations

import json
import logging
import os
import re
import shutil
import tempfile
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from ..models.locale_mapping import LocaleMapping, MappingConflict
from .flatten import flatten_document, is_flat_document, merge_into_document, unflatten_catalog
from .resolver import YAML_EXTENSIONS, is_locale_file, parse_locale_file

"""Catalog storage: per-locale documents, locale mapping and write-back.

Each catalog lives in ``<locale_code>.<ext>`` next to the base catalog. All
catalogs are flattened on read; catalogs that were nested on disk are
re-nested on write so the authored layout survives a round trip.

Writes are backup-then-replace per locale: the previous content is copied
to a backup artifact first (the write aborts when that fails) and the new
content replaces the file atomically via a temp file + os.replace.
"""

__all__ = [
    "DEFAULT_LOCALE_TO_COLUMN",
    "CatalogWriteError",
    "LocaleCatalog",
    "read_catalogs",
    "build_locale_mapping",
    "parse_override_map",
    "serialize_catalog",
    "backup_timestamp",
    "backup_file",
    "restore_backup",
    "write_catalog",
    "write_catalog_with_backup",
    "should_cleanup_temp_excel",
    "cleanup_artifacts",
]

logger = logging.getLogger(__name__)

DEFAULT_LOCALE_TO_COLUMN: dict[str, str] = {
    "en": "en",
    "de": "de",
    "es": "es",
    "fr": "fr",
    "ja": "ja",
    "ko": "ko",
    "ru": "ru",
    "pt": "ptbr",
    "pt-br": "ptbr",
    "zhcn": "zhcn",
    "zh-cn": "zhcn",
    "zhtw": "zhtw",
    "zh-tw": "zhtw",
    "zh-cht": "zhtw",
}

TEMP_EXCEL_EXTENSIONS = (".xlsx", ".xls")


class CatalogWriteError(Exception):
    """Raised when a catalog cannot be backed up or written."""


@dataclass(frozen=True)
class LocaleCatalog:
    locale_code: str  # file stem as authored (zh-CN stays zh-CN)
    path: Path
    entries: dict[str, str]  # flattened, on-disk order
    nested: bool = False
    document: Any = None  # parsed file content, reused on write-back


def read_catalogs(directory: Path) -> dict[str, LocaleCatalog]:
    """Read every locale file directly inside ``directory``, keyed by file stem.

    When two files share a stem (``en.json`` / ``en.yaml``) the first in
    sorted order wins and the others are skipped with a warning.
    """
    catalogs: dict[str, LocaleCatalog] = {}
    for path in sorted(p for p in directory.iterdir() if p.is_file() and is_locale_file(p.name)):
        code = path.stem
        if code in catalogs:
            logger.warning(f"duplicate catalog for locale '{code}': {path.name} ignored")
            continue
        document = parse_locale_file(path)
        if document is None:
            document = {}
        catalogs[code] = LocaleCatalog(
            locale_code=code,
            path=path,
            entries=flatten_document(document),
            nested=not is_flat_document(document),
            document=document,
        )
    return catalogs


def _normalize_code(value: Any) -> str:
    return str(value or "").strip().lower()


def parse_override_map(text: str | None) -> dict[str, str]:
    """Parse a ``{"locale": "column"}`` JSON object.

    Raises:
        ValueError: invalid JSON or not an object of strings
    """
    if not text:
        return {}
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"invalid override map JSON: {e}") from e
    if not isinstance(data, dict) or not all(isinstance(v, str) for v in data.values()):
        raise ValueError("override map must be a JSON object of locale -> column strings")
    return {str(k): v for k, v in data.items()}


def build_locale_mapping(
    locale_codes: Iterable[str],
    override_map: dict[str, str] | None = None,
    base_locale: str | None = None,
    default_map: dict[str, str] | None = None,
) -> LocaleMapping:
    """Map every catalog locale code to exactly one spreadsheet column.

    Lookup order: explicit override, ``en`` for the base locale, default
    table, else the normalized code with whitespace/underscores as '-'.
    A column receiving more than one locale is reported as a conflict.
    """
    merged = dict(DEFAULT_LOCALE_TO_COLUMN if default_map is None else default_map)
    overridden: set[str] = set()
    for local, column in (override_map or {}).items():
        merged[_normalize_code(local)] = _normalize_code(column)
        overridden.add(_normalize_code(local))

    locale_to_column: dict[str, str] = {}
    column_to_locales: dict[str, list[str]] = {}
    for code in locale_codes:
        normalized = _normalize_code(code)
        if code == base_locale and normalized not in overridden:
            column = "en"
        elif normalized in merged:
            column = merged[normalized]
        else:
            column = re.sub(r"[_\s]+", "-", normalized)
        locale_to_column[code] = column
        column_to_locales.setdefault(column, []).append(code)

    conflicts = [
        MappingConflict(column=column, locales=sorted(locales))
        for column, locales in column_to_locales.items()
        if len(locales) > 1
    ]
    return LocaleMapping(
        locale_to_column=locale_to_column,
        column_to_locales=column_to_locales,
        conflicts=conflicts,
    )


def serialize_catalog(
    entries: dict[str, str],
    path: Path,
    nested: bool = False,
    original: Any = None,
) -> str:
    """Render a flat catalog in the file's format.

    With ``original`` (the parsed file), values the run did not change keep
    their original type and entries that flattening drops (null leaves,
    empty sections) are written back unchanged.
    """
    document: Any = unflatten_catalog(entries) if nested else entries
    if original is not None:
        document = merge_into_document(original, document)
    if path.suffix.lower() in YAML_EXTENSIONS:
        import yaml

        return yaml.safe_dump(document, allow_unicode=True, sort_keys=False, default_flow_style=False)
    return json.dumps(document, ensure_ascii=False, indent=2) + "\n"


def backup_timestamp(now: datetime | None = None) -> str:
    """ISO8601 UTC with milliseconds, ':' and '.' replaced by '-'."""
    moment = now or datetime.now(UTC)
    iso = moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return iso.replace(":", "-").replace(".", "-")


def backup_file(path: Path, backup_dir: Path | None = None, now: datetime | None = None) -> Path:
    """Copy ``path`` to its backup artifact and return the artifact path.

    - with backup_dir: ``<backup_dir>/<stem>.<ts>.bak<ext>``
    - without: ``<path>.<ts>.bak`` next to the file
    """
    stamp = backup_timestamp(now)
    if backup_dir is not None:
        backup_dir.mkdir(parents=True, exist_ok=True)
        target = backup_dir / f"{path.stem}.{stamp}.bak{path.suffix}"
    else:
        target = path.with_name(f"{path.name}.{stamp}.bak")
    try:
        shutil.copy2(path, target)
    except OSError as e:
        raise CatalogWriteError(f"backup failed for {path}: {e}") from e
    return target


def restore_backup(backup: Path, path: Path) -> None:
    shutil.copy2(backup, path)


def write_catalog(path: Path, content: str) -> None:
    """Replace ``path`` atomically with ``content``."""
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def write_catalog_with_backup(
    catalog: LocaleCatalog,
    entries: dict[str, str],
    backup_dir: Path | None = None,
) -> Path | None:
    """Back up then rewrite one catalog. Returns the backup path (None for new files)."""
    content = serialize_catalog(entries, catalog.path, nested=catalog.nested, original=catalog.document)
    backup = backup_file(catalog.path, backup_dir) if catalog.path.exists() else None
    try:
        write_catalog(catalog.path, content)
    except BaseException:
        # the original is untouched, so its backup is not needed
        if backup is not None:
            backup.unlink(missing_ok=True)
        raise
    logger.debug(f"wrote {catalog.path} ({len(entries)} entries)")
    return backup


def should_cleanup_temp_excel(excel_path: Path, temp_dirs: Iterable[Path]) -> bool:
    """Only spreadsheets that look temporary and live in a temp directory are removed."""
    resolved = excel_path.resolve()
    if resolved.suffix.lower() not in TEMP_EXCEL_EXTENSIONS:
        return False
    name = resolved.name.lower()
    if not (name.startswith("tmp-") or "tmp" in name):
        return False
    for temp_dir in temp_dirs:
        try:
            resolved.relative_to(Path(temp_dir).resolve())
        except ValueError:
            continue
        return True
    return False


def cleanup_artifacts(
    backups: Iterable[Path],
    remove_backups: bool,
    excel_path: Path | None = None,
    temp_dirs: Iterable[Path] = (),
) -> list[Path]:
    """Remove this run's backup files and temporary spreadsheet. Failures only warn."""
    removed: list[Path] = []
    if remove_backups:
        for backup in backups:
            try:
                backup.unlink()
                removed.append(backup)
            except OSError as e:
                logger.warning(f"failed to remove backup {backup}: {e}")
    if excel_path is not None and should_cleanup_temp_excel(excel_path, temp_dirs):
        try:
            excel_path.unlink()
            removed.append(excel_path)
        except OSError as e:
            logger.warning(f"failed to remove temporary spreadsheet {excel_path}: {e}")
    return removed

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path

import yaml
from dotenv import load_dotenv

from catalog_sync.config.loader import ConfigError, SyncConfig, load_config
from catalog_sync.excel.reader import EmptyWorkbookError
from catalog_sync.locales.resolver import LocaleResolveError, resolve_base_locale
from catalog_sync.locales.store import CatalogWriteError, parse_override_map
from catalog_sync.logging.init import log_summary, set_debug, setup_logging
from catalog_sync.services.orchestrator import SyncError, SyncOptions, run_sync
from catalog_sync.services.summary import render_report, render_summary_line
from catalog_sync.services.synchronizer import MissingBaseCatalogError

"""CLI entrypoint.

    catalog-sync EXCEL_PATH LOCALE_DIR [--write] [--fallback=empty|en]
        [--override-mode=a|n|y|s:1,2] [--override-map='{"zh-cn":"zhcn"}']
        [--backup-dir=PATH] [--keep-backups] [--cleanup-temp-excel=true|false]
        [--base-locale=CODE] [--config=PATH] [--no-input] [--debug]
    catalog-sync --inspect-locales LOCALE_DIR [--base-locale=CODE]

Exit codes: 0 on success (blocked writes and unconfirmed overrides are
reported, not failures), 1 on any surfaced error.
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1

_TRUE_VALUES = {"1", "true", "yes", "y"}
_FALSE_VALUES = {"0", "false", "no", "n"}


class UsageError(Exception):
    pass


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str):  # type: ignore[override]
        raise UsageError(message)


def _parse_bool(value: str) -> bool:
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise argparse.ArgumentTypeError(f"expected true/false, got '{value}'")


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = _ArgumentParser(
        prog="catalog-sync",
        description="Synchronize a translation spreadsheet into per-locale JSON/YAML catalogs",
    )
    p.add_argument("excel_path", nargs="?", help="Translation workbook (first sheet is read)")
    p.add_argument("locale_dir", nargs="?", help="Locale root directory (searched recursively)")
    p.add_argument("--write", action="store_true", help="Write catalogs (default: preview only)")
    p.add_argument("--fallback", choices=["empty", "en"], default=None, help="Value for missing translations of new keys")
    p.add_argument("--override-mode", default=None, help="a=accept all, n=skip all, y=confirm each, s:1,3=select")
    p.add_argument("--override-map", default=None, help='JSON locale->column overrides, e.g. {"zh-cn":"zhcn"}')
    p.add_argument("--backup-dir", default=None, help="Directory for catalog backups (default: beside each file)")
    p.add_argument("--keep-backups", action="store_true", default=None, help="Keep backup files after writing")
    p.add_argument("--cleanup-temp-excel", type=_parse_bool, default=None, help="Remove a temporary workbook after the run")
    p.add_argument("--base-locale", default=None, help="Base locale code when no en* catalog exists")
    p.add_argument("--config", default=None, help="YAML config file (default: config/sync.yml)")
    p.add_argument("--no-input", action="store_true", help="Never prompt; unresolved overrides are skipped")
    p.add_argument("--inspect-locales", metavar="LOCALE_DIR", default=None, help="Print locale resolution then exit")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = p.parse_args(argv)
    if args.inspect_locales is None and (args.excel_path is None or args.locale_dir is None):
        p.error("EXCEL_PATH and LOCALE_DIR are required")
    return args


def _load_env_file(path: Path, override: bool = False) -> None:
    """Load .env (CATALOG_SYNC_CONFIG etc.) using python-dotenv."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _build_options(args: argparse.Namespace, cfg: SyncConfig) -> SyncOptions:
    override_map = dict(cfg.locale_map)
    override_map.update(parse_override_map(args.override_map))
    backup_dir = args.backup_dir or cfg.backup_dir
    return SyncOptions(
        excel_path=Path(args.excel_path),
        locale_dir=Path(args.locale_dir),
        write=args.write,
        fallback=args.fallback or cfg.fallback,
        override_mode=args.override_mode,
        override_map=override_map,
        backup_dir=Path(backup_dir) if backup_dir else None,
        keep_backups=cfg.keep_backups if args.keep_backups is None else args.keep_backups,
        cleanup_temp_excel=cfg.cleanup_temp_excel if args.cleanup_temp_excel is None else args.cleanup_temp_excel,
        base_locale=args.base_locale or cfg.base_locale,
        locale_columns=cfg.locale_columns,
        temp_excel_dirs=tuple(Path(d) for d in cfg.temp_excel_dirs),
        audit_log_dir=Path(cfg.audit_log_dir) if cfg.audit_log_dir else None,
        interactive=not args.no_input and sys.stdin.isatty(),
    )


def _inspect_locales(locale_dir: str, base_locale: str | None) -> int:
    resolution = resolve_base_locale(locale_dir, base_locale)
    output = {
        "localeDir": str(resolution.root_dir),
        "selected": {
            "localeCode": resolution.selected.locale_code,
            "filePath": str(resolution.selected.file_path),
            "relativePath": resolution.selected.relative_path,
            "reason": "picked-fallback" if resolution.used_fallback else "picked-en",
        },
        "candidates": [
            {"relativePath": c.relative_path, "localeCode": c.locale_code, "score": c.score}
            for c in resolution.candidates
        ],
        "entryCount": len(resolution.flat_catalog),
        "flatLocale": resolution.flat_catalog,
    }
    print(json.dumps(output, ensure_ascii=False, indent=2))
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # Only None reads sys.argv; tests pass [] explicitly
    if argv is None:
        argv = sys.argv[1:]
    try:
        args = _parse_args(argv)
    except UsageError as e:
        logger.error(f"usage: {e}")
        return EXIT_FATAL

    if args.debug:
        set_debug(True)
        logger.debug("debug mode enabled")

    _load_env_file(Path(".env"))

    try:
        if args.inspect_locales is not None:
            return _inspect_locales(args.inspect_locales, args.base_locale)

        cfg = load_config(Path(args.config) if args.config else None)
        options = _build_options(args, cfg)
        outcome = run_sync(options)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL
    except (
        LocaleResolveError,
        EmptyWorkbookError,
        MissingBaseCatalogError,
        CatalogWriteError,
        SyncError,
        yaml.YAMLError,
        ValueError,
        OSError,
    ) as e:
        logger.error(str(e) or e.__class__.__name__)
        if os.getenv("CATALOG_SYNC_TRACEBACK") == "1":
            raise
        return EXIT_FATAL

    print(render_report(outcome.result.report))
    summary_line = render_summary_line(outcome.result.report, len(outcome.written_files))
    # log_summary adds the "SUMMARY " label itself
    log_summary(summary_line[len("SUMMARY "):])
    return EXIT_SUCCESS


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())

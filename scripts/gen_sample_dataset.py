#!/usr/bin/env python3
"""Sample dataset generator for manual and performance runs.

Writes a synthetic translation workbook plus matching JSON locale catalogs:
- ``<output>/sheet.xlsx``: first sheet with ``key``, ``en`` and locale columns
- ``<output>/locales/<locale>.json``: flat catalogs holding part of the keys

The workbook mixes explicit keys, blank keys, module-prefixed keys
(``*module*``), ``ignore`` rows and changed values for existing keys, so a
run exercises key derivation, new entries and override candidates.
"""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

SECTIONS = ["home", "settings", "checkout", "profile", "search", "errors"]
WORDS = [
    "save", "cancel", "continue", "order", "account", "password", "search",
    "results", "payment", "address", "welcome", "back", "update", "delete",
]
LOCALE_COLUMNS = {"de": "de", "fr": "fr", "ja": "ja", "zh-cn": "zhcn"}


def _phrase(rng: np.random.Generator, words: int) -> str:
    picked = rng.choice(WORDS, size=words)
    return " ".join(picked).capitalize()


def generate_rows(rows: int, existing_ratio: float = 0.5, seed: int = 42) -> tuple[pd.DataFrame, dict[str, str]]:
    """Build the workbook frame and the English catalog it is synced against.

    Returns:
        tuple: (DataFrame with key/en/locale columns, existing English catalog)
    """
    rng = np.random.default_rng(seed)
    records: list[dict[str, Any]] = []
    existing: dict[str, str] = {}

    for i in range(rows):
        section = SECTIONS[i % len(SECTIONS)]
        en = _phrase(rng, int(rng.integers(1, 5)))
        kind = rng.random()
        if kind < 0.1:
            key = ""
        elif kind < 0.15:
            key = f"*{section}*"
        elif kind < 0.17:
            key = "ignore"
        else:
            key = f"{section}.item_{i}"
            if rng.random() < existing_ratio:
                # half of the existing keys carry a changed value
                existing[key] = en if rng.random() < 0.5 else f"{en} (old)"

        record: dict[str, Any] = {"key": key, "en": en}
        for column in LOCALE_COLUMNS.values():
            record[column] = f"[{column}] {en}" if rng.random() < 0.7 else ""
        records.append(record)

    return pd.DataFrame(records), existing


def create_dataset(output_dir: Path, rows: int, existing_ratio: float = 0.5, seed: int = 42) -> Path:
    """Write ``sheet.xlsx`` and ``locales/*.json`` under ``output_dir``."""
    df, existing = generate_rows(rows, existing_ratio, seed)
    output_dir.mkdir(parents=True, exist_ok=True)
    excel_path = output_dir / "sheet.xlsx"
    with pd.ExcelWriter(excel_path, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name="Translations", index=False)

    locale_dir = output_dir / "locales"
    locale_dir.mkdir(exist_ok=True)
    catalogs = {"en": existing}
    for locale in LOCALE_COLUMNS:
        catalogs[locale] = {key: f"[{locale}] {value}" for key, value in existing.items()}
    for locale, entries in catalogs.items():
        (locale_dir / f"{locale}.json").write_text(
            json.dumps(entries, ensure_ascii=False, indent=2) + "\n", encoding="utf-8"
        )

    print(f"Created workbook: {excel_path} ({len(df):,} rows)")
    print(f"Created catalogs: {locale_dir} ({len(catalogs)} locales, {len(existing):,} keys each)")
    return excel_path


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Generate a synthetic translation workbook and locale catalogs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # 5k rows into ./sample
  %(prog)s sample

  # larger run, fewer pre-existing keys
  %(prog)s big --rows 50000 --existing-ratio 0.2 --seed 7
        """,
    )
    parser.add_argument("output", type=Path, help="Output directory")
    parser.add_argument("--rows", type=int, default=5_000, help="Workbook rows (default: 5,000)")
    parser.add_argument(
        "--existing-ratio",
        type=float,
        default=0.5,
        help="Share of explicit keys already present in the catalogs (default: 0.5)",
    )
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    parser.add_argument("--dry-run", action="store_true", help="Show the plan without creating files")
    args = parser.parse_args()

    if args.rows <= 0:
        print("Error: --rows must be positive", file=sys.stderr)
        return 1
    if not 0.0 <= args.existing_ratio <= 1.0:
        print("Error: --existing-ratio must be between 0 and 1", file=sys.stderr)
        return 1

    print("Dataset generation plan:")
    print(f"  Output directory: {args.output}")
    print(f"  Rows: {args.rows:,}")
    print(f"  Locales: en, {', '.join(LOCALE_COLUMNS)}")
    print(f"  Existing ratio: {args.existing_ratio}")
    print(f"  Random seed: {args.seed}")

    if args.dry_run:
        print("\n[DRY RUN] Would generate files but not creating them.")
        return 0

    try:
        create_dataset(args.output, args.rows, args.existing_ratio, args.seed)
    except OSError as e:
        print(f"\nError generating dataset: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

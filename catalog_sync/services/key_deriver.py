from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from typing import Any

from ..models.translation_row import DEFAULT_LOCALE_COLUMNS, RowMeta, TranslationRow

"""Key derivation for spreadsheet rows.

Rows keep their key when it is present and unique within the sheet. Keys
of the form ``*module*`` are always regenerated with ``module`` as a
prefix, empty keys are generated from the English text, and repeated keys
receive a numeric suffix (``_2``, ``_3`` ...). The used-key set is local
to one derive_rows() call.
"""

__all__ = [
    "IGNORE_KEY",
    "MAX_KEY_WORDS",
    "FALLBACK_KEY",
    "normalize_column_name",
    "normalize_text",
    "to_key_base",
    "trim_key_words",
    "parse_module_prefix",
    "next_free_key",
    "generate_unique_key",
    "derive_rows",
]

logger = logging.getLogger(__name__)

IGNORE_KEY = "ignore"
MAX_KEY_WORDS = 5
FALLBACK_KEY = "generated_key"
MODULE_KEY_PATTERN = re.compile(r"^\*([^*]+)\*$")


def normalize_column_name(value: Any) -> str:
    """``PT-BR`` / ``pt_br`` / `` ptbr `` -> ``ptbr``."""
    return re.sub(r"[\s_-]+", "", str(value if value is not None else "").strip().lower())


def normalize_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value != value:  # NaN
        return ""
    return str(value).strip()


def to_key_base(text: str) -> str:
    normalized = text.lower()
    normalized = re.sub(r"['\"`]", "", normalized)
    normalized = re.sub(r"[^a-z0-9]+", "_", normalized)
    normalized = normalized.strip("_")
    return normalized or FALLBACK_KEY


def _words(key_base: str) -> list[str]:
    return [w for w in key_base.split("_") if w]


def trim_key_words(key_base: str, max_words: int) -> str:
    words = _words(key_base)
    if not words:
        return FALLBACK_KEY
    return "_".join(words[: max(1, max_words)])


def parse_module_prefix(raw_key: str) -> str | None:
    match = MODULE_KEY_PATTERN.match(raw_key)
    if not match:
        return None
    module_name = match.group(1).strip()
    if not module_name:
        return None
    return to_key_base(module_name)


def next_free_key(key: str, taken: Any) -> str:
    """Return ``key`` or the first ``key_N`` (N >= 2) not in ``taken``."""
    if key not in taken:
        return key
    index = 2
    while f"{key}_{index}" in taken:
        index += 1
    return f"{key}_{index}"


def generate_unique_key(en_text: str, used_keys: set[str], prefix: str | None = None) -> str:
    """Build a key from English text (at most MAX_KEY_WORDS words) and reserve it."""
    safe_prefix = trim_key_words(prefix, MAX_KEY_WORDS) if prefix else ""
    prefix_words = len(_words(safe_prefix)) if safe_prefix else 0
    base = trim_key_words(to_key_base(en_text), max(1, MAX_KEY_WORDS - prefix_words))
    key_base = f"{safe_prefix}_{base}" if safe_prefix else base
    key = next_free_key(key_base, used_keys)
    used_keys.add(key)
    return key


def derive_rows(
    raw_rows: Iterable[Mapping[str, Any]],
    locale_columns: Iterable[str] = DEFAULT_LOCALE_COLUMNS,
) -> list[TranslationRow]:
    """Normalize spreadsheet rows and assign every kept row a unique key.

    Rows whose key is ``ignore`` (any case) or whose English text is blank
    are skipped.
    """
    columns = tuple(
        c for c in (normalize_column_name(c) for c in locale_columns) if c not in ("key", "en")
    )
    used_keys: set[str] = set()
    results: list[TranslationRow] = []
    skipped = 0

    for raw in raw_rows:
        normalized: dict[str, str] = {}
        for column_name, value in raw.items():
            normalized[normalize_column_name(column_name)] = normalize_text(value)

        raw_key = normalized.get("key", "")
        en = normalized.get("en", "")
        if raw_key.lower() == IGNORE_KEY or not en:
            skipped += 1
            continue

        meta: RowMeta | None = None
        module_prefix = parse_module_prefix(raw_key)
        if not raw_key or module_prefix:
            key = generate_unique_key(en, used_keys, module_prefix)
            meta = RowMeta(is_generated_key=True, original_key=raw_key)
        elif raw_key in used_keys:
            key = next_free_key(raw_key, used_keys)
            used_keys.add(key)
            meta = RowMeta(is_generated_key=True, original_key=raw_key)
        else:
            key = raw_key
            used_keys.add(key)

        translations = {col: normalized[col] for col in columns if normalized.get(col)}
        results.append(
            TranslationRow(key=key, en=en, translations=translations, meta=meta, locale_columns=columns)
        )

    if skipped:
        logger.debug(f"skipped {skipped} rows (ignored or missing en)")
    return results

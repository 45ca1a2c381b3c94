from __future__ import annotations

from dataclasses import dataclass, field

"""TranslationRow model: one spreadsheet line after key derivation.

Rows carry the English source text plus an explicit set of optional
per-locale columns. Blank cells are never stored, so ``None`` from
``value_for`` always means "no data" rather than "explicitly empty".
"""

__all__ = [
    "DEFAULT_LOCALE_COLUMNS",
    "RowMeta",
    "TranslationRow",
]

# Spreadsheet columns (normalized) copied onto a row besides key/en
DEFAULT_LOCALE_COLUMNS: tuple[str, ...] = (
    "de",
    "es",
    "fr",
    "ja",
    "ko",
    "ptbr",
    "ru",
    "zhcn",
    "zhtw",
)


@dataclass(frozen=True)
class RowMeta:
    """Key provenance for rows whose key was synthesized or deduplicated."""
    is_generated_key: bool = True
    original_key: str = ""


@dataclass(frozen=True)
class TranslationRow:
    key: str
    en: str
    translations: dict[str, str] = field(default_factory=dict)
    meta: RowMeta | None = None
    locale_columns: tuple[str, ...] = field(default=DEFAULT_LOCALE_COLUMNS, repr=False, compare=False)

    def __post_init__(self) -> None:
        unknown = set(self.translations) - set(self.locale_columns)
        if unknown:
            raise ValueError(f"unrecognized locale columns: {sorted(unknown)}")
        blank = [col for col, value in self.translations.items() if not value or not value.strip()]
        if blank:
            raise ValueError(f"blank translation values for columns: {sorted(blank)}")

    @property
    def is_generated_key(self) -> bool:
        return self.meta is not None and self.meta.is_generated_key

    def value_for(self, column: str) -> str | None:
        """Return the cell for a spreadsheet column (``en`` included) or None."""
        if column == "en":
            return self.en
        return self.translations.get(column)

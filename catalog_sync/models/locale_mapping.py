from __future__ import annotations

from dataclasses import dataclass, field

"""Locale code <-> spreadsheet column mapping."""

__all__ = [
    "LocaleMapping",
    "MappingConflict",
]


@dataclass(frozen=True)
class MappingConflict:
    """Several locale codes read from the same spreadsheet column."""
    column: str
    locales: list[str]


@dataclass(frozen=True)
class LocaleMapping:
    locale_to_column: dict[str, str]
    column_to_locales: dict[str, list[str]] = field(default_factory=dict)
    conflicts: list[MappingConflict] = field(default_factory=list)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)

    def column_for(self, locale_code: str) -> str | None:
        return self.locale_to_column.get(locale_code)

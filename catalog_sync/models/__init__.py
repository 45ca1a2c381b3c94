"""Domain models for the translation catalog synchronizer.

Frozen dataclasses shared by the locale resolver, the key deriver and the
catalog synchronizer.
"""

from .change_record import ChangeRecord
from .locale_candidate import LocaleCandidate
from .locale_mapping import LocaleMapping, MappingConflict
from .sync_plan import (
    ChangeReport,
    FallbackPolicy,
    GeneratedKey,
    OverrideCandidate,
    OverrideDecisions,
    OverrideMode,
    SyncPlan,
    SyncResult,
)
from .translation_row import DEFAULT_LOCALE_COLUMNS, RowMeta, TranslationRow

__all__ = [
    # Locale discovery
    "LocaleCandidate",
    "LocaleMapping",
    "MappingConflict",
    # Spreadsheet rows
    "DEFAULT_LOCALE_COLUMNS",
    "RowMeta",
    "TranslationRow",
    # Synchronization
    "ChangeRecord",
    "ChangeReport",
    "FallbackPolicy",
    "GeneratedKey",
    "OverrideCandidate",
    "OverrideDecisions",
    "OverrideMode",
    "SyncPlan",
    "SyncResult",
]

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

"""LocaleCandidate model for the locale resolver.

A candidate is one discovered locale file under the locale root. The score
is derived from (locale_code, relative_path, sibling_locale_count) by
catalog_sync.locales.resolver.score_candidate and decides selection rank.
"""

__all__ = [
    "LocaleCandidate",
]


@dataclass(frozen=True)
class LocaleCandidate:
    """One discovered locale file.

    Attributes:
        locale_code: Normalized code derived from the file stem (``en-us``)
        file_path: Absolute path of the file
        relative_path: POSIX path relative to the resolver root
        depth: Number of segments in ``relative_path``
        sibling_locale_count: Locale files in the same directory (self included)
        score: Ranking score (higher wins)
    """
    locale_code: str
    file_path: Path
    relative_path: str
    depth: int
    sibling_locale_count: int
    score: int

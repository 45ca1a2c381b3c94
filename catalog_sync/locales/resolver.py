from __future__ import annotations

import json
import logging
import os
import re
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any

from ..models.locale_candidate import LocaleCandidate
from .flatten import flatten_document

"""Locale resolver: discover locale files and pick the canonical base locale.

Candidates are scored so that shallow, shared-directory, English-labeled
files win over deeply nested or isolated ones:

    score = base(locale_code) - 15 * depth - len(relative_path) + 6 * siblings

with base 1000 for ``en``, 700 for ``en-*`` and 100 otherwise. Ranking is
score desc, depth asc, relative path asc, so selection is deterministic for
a given file set.
"""

__all__ = [
    "LOCALE_EXTENSIONS",
    "LocaleResolution",
    "LocaleResolveError",
    "NoLocaleFilesFoundError",
    "NoCandidateFoundError",
    "UnsupportedFormatError",
    "MissingParserError",
    "normalize_locale_code",
    "is_english_locale",
    "is_locale_file",
    "score_candidate",
    "rank_candidates",
    "discover_locale_files",
    "build_candidates",
    "pick_candidate",
    "locale_yaml_loader",
    "parse_locale_file",
    "resolve_base_locale",
]

logger = logging.getLogger(__name__)

LOCALE_EXTENSIONS = (".json", ".yaml", ".yml")
YAML_EXTENSIONS = (".yaml", ".yml")
CANDIDATE_PREVIEW_LIMIT = 10

SCORE_EN = 1000
SCORE_EN_VARIANT = 700
SCORE_OTHER = 100
DEPTH_PENALTY = 15
SIBLING_BONUS = 6


class LocaleResolveError(Exception):
    """Base exception for locale resolution failures."""


class NoLocaleFilesFoundError(LocaleResolveError):
    """Raised when the locale root holds no locale file."""


class NoCandidateFoundError(LocaleResolveError):
    """Raised when neither an English nor the fallback locale is available."""

    def __init__(self, message: str, candidates: list[str]) -> None:
        super().__init__(message)
        self.candidates = candidates


class UnsupportedFormatError(LocaleResolveError):
    """Raised for a file extension without a registered parser."""


class MissingParserError(LocaleResolveError):
    """Raised when the parser library for a recognized extension is unavailable."""


@dataclass(frozen=True)
class LocaleResolution:
    root_dir: Path
    selected: LocaleCandidate
    candidates: list[LocaleCandidate]  # ranked
    flat_catalog: dict[str, str]
    used_fallback: bool


def normalize_locale_code(value: str | None) -> str:
    return str(value or "").strip().lower().replace("_", "-")


def is_english_locale(locale_code: str) -> bool:
    normalized = normalize_locale_code(locale_code)
    return normalized == "en" or normalized.startswith("en-")


def is_locale_file(name: str) -> bool:
    """Locale extension check. Backup artifacts (``*.bak*``) are not locale files."""
    lowered = name.lower()
    if ".bak" in lowered:
        return False
    return lowered.endswith(LOCALE_EXTENSIONS)


def _path_depth(relative_path: str) -> int:
    return len(relative_path.replace("\\", "/").split("/"))


def score_candidate(locale_code: str, relative_path: str, sibling_locale_count: int) -> int:
    normalized = normalize_locale_code(locale_code)
    if normalized == "en":
        base = SCORE_EN
    elif normalized.startswith("en-"):
        base = SCORE_EN_VARIANT
    else:
        base = SCORE_OTHER
    depth_penalty = _path_depth(relative_path) * DEPTH_PENALTY
    return base + sibling_locale_count * SIBLING_BONUS - depth_penalty - len(relative_path)


def _rank_key(candidate: LocaleCandidate) -> tuple[int, int, str]:
    return (-candidate.score, candidate.depth, candidate.relative_path)


def rank_candidates(candidates: list[LocaleCandidate]) -> list[LocaleCandidate]:
    return sorted(candidates, key=_rank_key)


def discover_locale_files(root_dir: Path) -> list[Path]:
    """Recursively list locale files under ``root_dir`` (sorted, hidden dirs skipped)."""
    files: list[Path] = []
    for current, dirnames, filenames in os.walk(root_dir):
        dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
        for name in sorted(filenames):
            if is_locale_file(name):
                files.append(Path(current) / name)
    return files


def build_candidates(root_dir: Path) -> list[LocaleCandidate]:
    files = discover_locale_files(root_dir)
    siblings = Counter(f.parent for f in files)
    candidates: list[LocaleCandidate] = []
    for file_path in files:
        locale_code = normalize_locale_code(file_path.stem)
        relative_path = file_path.relative_to(root_dir).as_posix()
        sibling_count = siblings[file_path.parent]
        candidates.append(
            LocaleCandidate(
                locale_code=locale_code,
                file_path=file_path,
                relative_path=relative_path,
                depth=_path_depth(relative_path),
                sibling_locale_count=sibling_count,
                score=score_candidate(locale_code, relative_path, sibling_count),
            )
        )
    return rank_candidates(candidates)


def pick_candidate(
    candidates: list[LocaleCandidate], fallback_locale: str | None = None
) -> tuple[LocaleCandidate | None, bool]:
    """Select the base candidate.

    Returns:
        tuple: (selected candidate or None, used_fallback)
    """
    english = [c for c in candidates if is_english_locale(c.locale_code)]
    if english:
        return rank_candidates(english)[0], False

    fallback = normalize_locale_code(fallback_locale)
    if not fallback:
        return None, False

    matches = [
        c
        for c in candidates
        if normalize_locale_code(c.locale_code) == fallback
        or normalize_locale_code(c.file_path.name) == fallback
    ]
    if not matches:
        return None, False
    return rank_candidates(matches)[0], True


def _parse_json(text: str) -> Any:
    return json.loads(text)


YAML_BOOL_TAG = "tag:yaml.org,2002:bool"
YAML_BOOL_PATTERN = re.compile(r"^(?:true|True|TRUE|false|False|FALSE)$")


@lru_cache(maxsize=1)
def locale_yaml_loader() -> type:
    """SafeLoader that only reads true/false as booleans.

    YAML 1.1 also resolves yes/no/on/off (keys included) to booleans, which
    would turn translation text such as ``no: No`` into ``False: false``.
    """
    import yaml

    class LocaleYamlLoader(yaml.SafeLoader):
        pass

    LocaleYamlLoader.yaml_implicit_resolvers = {
        first: [(tag, regexp) for tag, regexp in resolvers if tag != YAML_BOOL_TAG]
        for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
    }
    LocaleYamlLoader.add_implicit_resolver(YAML_BOOL_TAG, YAML_BOOL_PATTERN, list("tTfF"))
    return LocaleYamlLoader


def _parse_yaml(text: str) -> Any:
    try:
        import yaml
    except ImportError as e:
        raise MissingParserError(
            "YAML locale file found but the 'yaml' parser is unavailable; install PyYAML or use JSON"
        ) from e
    return yaml.load(text, Loader=locale_yaml_loader())


PARSERS: dict[str, Callable[[str], Any]] = {
    ".json": _parse_json,
    ".yaml": _parse_yaml,
    ".yml": _parse_yaml,
}


def parse_locale_file(path: Path) -> Any:
    """Parse a locale document, dispatching on the file extension.

    JSON / YAML syntax errors propagate unchanged.
    """
    parser = PARSERS.get(path.suffix.lower())
    if parser is None:
        raise UnsupportedFormatError(f"unsupported locale file type: {path}")
    try:
        return parser(path.read_text(encoding="utf-8"))
    except MissingParserError as e:
        raise MissingParserError(f"{e} ({path})") from e


def resolve_base_locale(root_dir: Path | str, fallback_locale: str | None = None) -> LocaleResolution:
    """Discover locale files under ``root_dir`` and flatten the base locale.

    Raises:
        NoLocaleFilesFoundError: directory missing or holding no locale file
        NoCandidateFoundError: no English candidate and no fallback match
        UnsupportedFormatError / MissingParserError: selected file not parseable
    """
    root = Path(root_dir).resolve()
    if not root.is_dir():
        raise NoLocaleFilesFoundError(f"locale directory not found: {root}")

    candidates = build_candidates(root)
    if not candidates:
        raise NoLocaleFilesFoundError(f"no locale files found under: {root}")
    logger.debug(
        "locale candidates: %s",
        ", ".join(f"{c.relative_path}={c.score}" for c in candidates[:CANDIDATE_PREVIEW_LIMIT]),
    )

    selected, used_fallback = pick_candidate(candidates, fallback_locale)
    if selected is None:
        preview = [c.relative_path for c in candidates[:CANDIDATE_PREVIEW_LIMIT]]
        raise NoCandidateFoundError(
            f"no en* locale found, specify a fallback locale. candidates: {', '.join(preview)}",
            preview,
        )

    document = parse_locale_file(selected.file_path)
    flat = flatten_document(document)
    logger.info(
        f"base locale: {selected.relative_path} ({'fallback' if used_fallback else 'english'}) entries={len(flat)}"
    )
    return LocaleResolution(
        root_dir=root,
        selected=selected,
        candidates=candidates,
        flat_catalog=flat,
        used_fallback=used_fallback,
    )

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from catalog_sync.models.change_record import ChangeRecord

"""Catalog change audit log (JSON Lines).

- Fixed record schema (ChangeRecord, no extra keys)
- One file per run: ``<log_dir>/changes-YYYYMMDD-HHMMSS.log`` (UTC)
- Records are buffered and written only after every catalog write succeeded
"""

__all__ = [
    "ChangeRecord",
    "ChangeLogBuffer",
]

TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class ChangeLogBuffer:
    """In-memory buffer of change records. flush() appends JSON Lines.

    The file path is fixed on first access. Single-threaded use only.
    """
    def __init__(self, log_dir: Path) -> None:
        self.log_dir = log_dir
        self._records: list[ChangeRecord] = []
        self._file_path: Path | None = None

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self.log_dir / f"changes-{stamp}.log"
        return self._file_path

    def append(self, record: ChangeRecord) -> None:
        self._records.append(record)

    def extend(self, records: list[ChangeRecord]) -> None:
        self._records.extend(records)

    def __len__(self) -> int:  # pragma: no cover (trivial)
        return len(self._records)

    def clear(self) -> None:
        self._records.clear()

    def flush(self) -> Path | None:
        """Write buffered records. Returns None (and creates nothing) when empty."""
        if not self._records:
            return None
        self.log_dir.mkdir(parents=True, exist_ok=True)
        fp = self.file_path
        with fp.open("a", encoding="utf-8") as f:
            for r in self._records:
                f.write(r.to_json_line() + "\n")
        self._records.clear()
        return fp

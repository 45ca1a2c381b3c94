from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ChangeRecord model for the catalog change audit log.

One record per (locale, key) value written to disk. Serialized as JSON
Lines with a fixed key set.
"""

__all__ = [
    "ChangeRecord",
]

ACTION_ADD = "ADD"
ACTION_OVERRIDE = "OVERRIDE"


@dataclass(frozen=True)
class ChangeRecord:
    """Structured audit record.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        locale: Catalog locale code (file stem)
        key: Flat catalog key
        action: ADD or OVERRIDE
        before: Previous value (None for added keys)
        after: Written value
    """
    timestamp: str
    locale: str
    key: str
    action: str
    before: str | None
    after: str

    @staticmethod
    def create(locale: str, key: str, action: str, before: str | None, after: str) -> ChangeRecord:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ChangeRecord(
            timestamp=ts,
            locale=locale,
            key=key,
            action=action,
            before=before,
            after=after,
        )

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)

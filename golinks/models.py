"""
Link record shared by every layer.

Stores hand out frozen `Link` values; nothing in the directory keeps them
between calls, so a stale copy can never be served.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping


@dataclass(frozen=True)
class Link:
    id: int
    short_code: str
    target_url: str
    click_count: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Link":
        """Build a Link from a dict-like DB row (extra columns are ignored)."""
        return cls(
            id=int(row["id"]),
            short_code=row["short_code"],
            target_url=row["target_url"],
            click_count=int(row["click_count"] or 0),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

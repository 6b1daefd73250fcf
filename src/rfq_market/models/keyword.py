"""Keyword trend rows maintained by the trend tracker."""

import sqlite3
from datetime import datetime

from pydantic import BaseModel


class KeywordTrend(BaseModel):
    """Search popularity of one keyword, global across RFQs."""

    keyword: str
    search_count: int = 0
    usage_count: int = 0
    trend_score: float = 0.0
    last_updated: datetime

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "KeywordTrend":
        return cls(
            keyword=row["keyword"],
            search_count=row["search_count"],
            usage_count=row["usage_count"],
            trend_score=row["trend_score"],
            last_updated=datetime.fromisoformat(row["last_updated"]),
        )

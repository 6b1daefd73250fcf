"""Search query log and per-keyword popularity counters."""

import logging
from datetime import datetime, timedelta
from typing import Optional

from rfq_market.logsafe import sanitize_for_log
from rfq_market.matching import clean_text, normalize_keyword, normalize_keywords, whitespace_tokens
from rfq_market.models.fields import clamp, utcnow
from rfq_market.models.keyword import KeywordTrend
from rfq_market.store.database import Database

logger = logging.getLogger(__name__)

MAX_QUERY_CHARS = 500
MIN_QUERY_CHARS = 2
MIN_TOKEN_CHARS = 3


def decayed_score(score: float, last_updated: datetime, now: datetime, half_life_days: float) -> float:
    """
    Exponential decay: a hit counts 1.0 when recorded and half as much after
    each half-life. More recent and more frequent hits give a higher score.
    """
    elapsed_days = max((now - last_updated).total_seconds(), 0.0) / 86400
    return score * 0.5 ** (elapsed_days / half_life_days)


class TrendTracker:
    """
    Records free-text searches and maintains keyword_trends. Trend rows are
    keyword-global; this class is the only writer of that table.
    """

    def __init__(self, db: Database, *, window_days: int = 7):
        self._db = db
        self._window_days = window_days

    def track(self, query_text: Optional[str]) -> bool:
        """
        Log a search and bump counters for each distinct token longer than
        2 characters. Returns False (and writes nothing) for queries shorter
        than 2 characters after trimming.
        """
        text = clean_text(query_text, MAX_QUERY_CHARS).lower()
        if len(text) < MIN_QUERY_CHARS:
            return False

        tokens = [normalize_keyword(t) for t in whitespace_tokens(text)]
        tokens = list(dict.fromkeys(t for t in tokens if len(t) >= MIN_TOKEN_CHARS))

        now = utcnow()
        with self._db.transaction() as conn:
            conn.execute(
                "INSERT INTO search_queries (query_text, created_at) VALUES (?, ?)",
                (text, now.isoformat()),
            )
            for token in tokens:
                row = conn.execute(
                    "SELECT trend_score, last_updated FROM keyword_trends WHERE keyword = ?",
                    (token,),
                ).fetchone()
                if row is None:
                    conn.execute(
                        """
                        INSERT INTO keyword_trends (keyword, search_count, usage_count, trend_score, last_updated)
                        VALUES (?, 1, 0, 1.0, ?)
                        """,
                        (token, now.isoformat()),
                    )
                    continue
                score = decayed_score(
                    row["trend_score"],
                    datetime.fromisoformat(row["last_updated"]),
                    now,
                    self._window_days,
                ) + 1.0
                conn.execute(
                    """
                    UPDATE keyword_trends SET
                        search_count = search_count + 1,
                        trend_score = ?,
                        last_updated = ?
                    WHERE keyword = ?
                    """,
                    (score, now.isoformat(), token),
                )
        logger.debug("Tracked search %s (%d tokens)", sanitize_for_log(text), len(tokens))
        return True

    def record_usage(self, keywords: list[str]) -> None:
        """Count keywords newly attached to an RFQ. Does not touch search counters or recency."""
        normalized = normalize_keywords(keywords)
        if not normalized:
            return
        now = utcnow().isoformat()
        with self._db.transaction() as conn:
            for kw in normalized:
                conn.execute(
                    """
                    INSERT INTO keyword_trends (keyword, search_count, usage_count, trend_score, last_updated)
                    VALUES (?, 0, 1, 0, ?)
                    ON CONFLICT (keyword) DO UPDATE SET usage_count = usage_count + 1
                    """,
                    (kw, now),
                )

    def trending(self, limit: Optional[int] = 10) -> list[KeywordTrend]:
        """
        Searched keywords updated within the recency window, hottest first.
        Stored scores are decayed to now before ranking, so a keyword that
        stopped being searched cools off even without new writes.
        """
        limit = clamp(limit, 10, 1, 50)
        now = utcnow()
        cutoff = (now - timedelta(days=self._window_days)).isoformat()
        with self._db.read() as conn:
            rows = conn.execute(
                "SELECT * FROM keyword_trends WHERE last_updated > ? AND search_count > 0",
                (cutoff,),
            ).fetchall()
        trends = []
        for row in rows:
            trend = KeywordTrend.from_row(row)
            trend.trend_score = decayed_score(
                trend.trend_score, trend.last_updated, now, self._window_days
            )
            trends.append(trend)
        trends.sort(key=lambda t: (-t.trend_score, -t.search_count, t.keyword))
        return trends[:limit]

    def most_searched(self, limit: Optional[int] = 20) -> list[KeywordTrend]:
        """All-time ordering by search_count, ignoring recency."""
        limit = clamp(limit, 20, 1, 50)
        with self._db.read() as conn:
            rows = conn.execute(
                """
                SELECT * FROM keyword_trends
                ORDER BY search_count DESC, keyword ASC
                LIMIT ?
                """,
                (limit,),
            ).fetchall()
        return [KeywordTrend.from_row(r) for r in rows]

    def recent_queries(self, limit: Optional[int] = 20) -> list[str]:
        """Most recent logged query texts, newest first."""
        limit = clamp(limit, 20, 1, 100)
        with self._db.read() as conn:
            rows = conn.execute(
                "SELECT query_text FROM search_queries ORDER BY id DESC LIMIT ?",
                (limit,),
            ).fetchall()
        return [r["query_text"] for r in rows]

"""Ranked RFQ search, keyword lookup and suggestions."""

import logging
from decimal import Decimal
from typing import Optional

from rfq_market.errors import ValidationError
from rfq_market.logsafe import sanitize_for_log
from rfq_market.matching import clean_text, normalize_keywords
from rfq_market.models.fields import clamp, to_db_number
from rfq_market.models.rfq import Rfq, RfqMatch, RfqPage
from rfq_market.search.ranking import query_terms, relevance
from rfq_market.search.trends import MAX_QUERY_CHARS, TrendTracker
from rfq_market.store.database import Database
from rfq_market.store.keyword_store import KeywordStore

logger = logging.getLogger(__name__)

# Newest matches ranked per text query; older ones are not considered
MAX_RANKED_CANDIDATES = 2000


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SearchEngine:
    """
    Discovery over the tables the lifecycle managers write. Collaborators are
    injected: the keyword store decorates results, the tracker (optional)
    receives every non-empty query.
    """

    def __init__(
        self,
        db: Database,
        keyword_store: KeywordStore,
        trend_tracker: Optional[TrendTracker] = None,
        *,
        max_offset: int = 1000,
    ):
        self._db = db
        self._keywords = keyword_store
        self._trends = trend_tracker
        self._max_offset = max_offset

    def search(
        self,
        query: Optional[str] = None,
        keywords: Optional[list] = None,
        category_id: Optional[int] = None,
        budget_min: Optional[Decimal] = None,
        budget_max: Optional[Decimal] = None,
        limit: Optional[int] = 20,
        offset: Optional[int] = 0,
        status: Optional[str] = None,
    ) -> RfqPage:
        """
        Ranked search. Every query term must appear in title or description;
        when keywords are given an RFQ must carry at least one of them.
        Ordered by relevance, then newest first, then id.
        """
        offset = clamp(offset, 0, 0, 2**31)
        if offset > self._max_offset:
            raise ValidationError("Pagination offset too large. Please use more specific filters.")
        limit = clamp(limit, 20, 1, 50)
        if budget_min is not None and budget_max is not None and budget_min > budget_max:
            raise ValidationError("budget_min cannot be greater than budget_max")

        text = clean_text(query, MAX_QUERY_CHARS)
        terms = query_terms(text)
        wanted = normalize_keywords(keywords or [])

        where = " WHERE 1=1"
        params: list = []
        for term in terms:
            # SQLite lower() and LIKE fold ASCII only; other terms are left to relevance()
            if not term.isascii():
                continue
            like = f"%{_escape_like(term)}%"
            where += " AND (lower(r.title) LIKE ? ESCAPE '\\' OR lower(r.description) LIKE ? ESCAPE '\\')"
            params.extend([like, like])
        if wanted:
            placeholders = ",".join("?" for _ in wanted)
            where += (
                " AND EXISTS (SELECT 1 FROM rfq_keywords k"
                f" WHERE k.rfq_id = r.id AND k.keyword IN ({placeholders}))"
            )
            params.extend(wanted)
        if category_id is not None:
            where += " AND r.category_id = ?"
            params.append(int(category_id))
        if budget_min is not None:
            where += " AND r.budget_min >= ?"
            params.append(to_db_number(Decimal(budget_min)))
        if budget_max is not None:
            where += " AND r.budget_max <= ?"
            params.append(to_db_number(Decimal(budget_max)))
        if status:
            where += " AND r.status = ?"
            params.append(status)

        newest_first = " ORDER BY r.created_at DESC, r.id DESC"
        with self._db.read() as conn:
            if terms:
                rows = conn.execute(
                    f"SELECT r.* FROM rfqs r{where}{newest_first} LIMIT ?",
                    [*params, MAX_RANKED_CANDIDATES],
                ).fetchall()
            else:
                total = conn.execute(f"SELECT COUNT(*) FROM rfqs r{where}", params).fetchone()[0]
                rows = conn.execute(
                    f"SELECT r.* FROM rfqs r{where}{newest_first} LIMIT ? OFFSET ?",
                    [*params, limit, offset],
                ).fetchall()

        if terms:
            scored: list[tuple[float, Rfq]] = []
            for row in rows:
                rfq = Rfq.from_row(row)
                score = relevance(terms, rfq.title, rfq.description)
                # LIKE is a substring prefilter; the term match is the real test
                if score > 0:
                    scored.append((score, rfq))
            scored.sort(key=lambda p: (-p[0], -p[1].created_at.timestamp(), -p[1].id))
            total = len(scored)
            page = scored[offset : offset + limit]
        else:
            page = [(0.0, Rfq.from_row(row)) for row in rows]

        kw_map = self._keywords.keywords_by_rfq([rfq.id for _, rfq in page])
        data = [
            RfqMatch(**rfq.model_dump(), keywords=kw_map.get(rfq.id, []), relevance=score)
            for score, rfq in page
        ]

        if text:
            self._track(text)

        return RfqPage(
            data=data,
            total=total,
            limit=limit,
            offset=offset,
            query=text,
            keywords=wanted,
        )

    def _track(self, text: str) -> None:
        """Forward a query to the tracker. Tracker failures never reach the caller."""
        if self._trends is None:
            return
        try:
            self._trends.track(text)
        except Exception as e:
            logger.warning(
                "Search tracking failed for %s: %s",
                sanitize_for_log(text),
                sanitize_for_log(e),
            )

    def suggest(self, partial: Optional[str], limit: Optional[int] = 10) -> list[str]:
        """Known keywords containing `partial`, most searched first. Empty for < 2 chars."""
        text = clean_text(partial, 50).lower()
        if len(text) < 2:
            return []
        limit = clamp(limit, 10, 1, 20)
        with self._db.read() as conn:
            rows = conn.execute(
                """
                SELECT DISTINCT keyword, search_count FROM keyword_trends
                WHERE keyword LIKE ? ESCAPE '\\'
                ORDER BY search_count DESC, keyword ASC
                LIMIT ?
                """,
                (f"%{_escape_like(text)}%", limit),
            ).fetchall()
        return [r["keyword"] for r in rows]

    def find_by_keywords(
        self,
        keywords: list,
        limit: Optional[int] = 20,
        offset: Optional[int] = 0,
    ) -> RfqPage:
        """RFQs carrying any of the keywords, newest first."""
        wanted = normalize_keywords(keywords or [])
        limit = clamp(limit, 20, 1, 100)
        offset = clamp(offset, 0, 0, 2**31)
        if not wanted:
            return RfqPage(data=[], total=0, limit=limit, offset=offset, keywords=[])

        placeholders = ",".join("?" for _ in wanted)
        where = f"WHERE r.id IN (SELECT k.rfq_id FROM rfq_keywords k WHERE k.keyword IN ({placeholders}))"
        with self._db.read() as conn:
            total = conn.execute(f"SELECT COUNT(*) FROM rfqs r {where}", wanted).fetchone()[0]
            rows = conn.execute(
                f"SELECT r.* FROM rfqs r {where} ORDER BY r.created_at DESC, r.id DESC LIMIT ? OFFSET ?",
                [*wanted, limit, offset],
            ).fetchall()
        rfqs = [Rfq.from_row(r) for r in rows]
        kw_map = self._keywords.keywords_by_rfq([r.id for r in rfqs])
        return RfqPage(
            data=[RfqMatch(**r.model_dump(), keywords=kw_map.get(r.id, [])) for r in rfqs],
            total=total,
            limit=limit,
            offset=offset,
            keywords=wanted,
        )

"""Many-to-many association between RFQs and normalized keywords."""

import logging
import sqlite3

from rfq_market.errors import NotFoundError, ValidationError
from rfq_market.logsafe import sanitize_for_log
from rfq_market.matching import normalize_keywords
from rfq_market.models.fields import utcnow
from rfq_market.store.database import Database

logger = logging.getLogger(__name__)


def _require_keywords(keywords: list) -> list[str]:
    if not isinstance(keywords, (list, tuple)) or not keywords:
        raise ValidationError("Keywords must be a non-empty array")
    normalized = normalize_keywords(list(keywords))
    if not normalized:
        raise ValidationError("Keywords must contain at least one non-blank value")
    return normalized


def _require_rfq(conn: sqlite3.Connection, rfq_id: int) -> None:
    if conn.execute("SELECT 1 FROM rfqs WHERE id = ?", (rfq_id,)).fetchone() is None:
        raise NotFoundError("RFQ not found")


class KeywordStore:
    """
    Keyword index over RFQs. Keywords are normalized (trimmed, lower-cased,
    at most 50 chars) before they touch the table; each batch is atomic.
    """

    def __init__(self, db: Database):
        self._db = db

    def add(self, rfq_id: int, keywords: list) -> list[str]:
        """
        Associate keywords with an RFQ. Already-associated keywords are left as is.
        Returns the keywords that were newly associated.
        """
        normalized = _require_keywords(keywords)
        now = utcnow().isoformat()
        added: list[str] = []
        with self._db.transaction() as conn:
            _require_rfq(conn, rfq_id)
            for kw in normalized:
                cursor = conn.execute(
                    """
                    INSERT INTO rfq_keywords (rfq_id, keyword, created_at) VALUES (?, ?, ?)
                    ON CONFLICT (rfq_id, keyword) DO NOTHING
                    """,
                    (rfq_id, kw, now),
                )
                if cursor.rowcount:
                    added.append(kw)
        logger.info("RFQ %s: added %d keyword(s) %s", rfq_id, len(added), sanitize_for_log(added))
        return added

    def remove(self, rfq_id: int, keywords: list) -> int:
        """Remove keywords from an RFQ; keywords not associated are ignored. Returns rows removed."""
        normalized = _require_keywords(keywords)
        with self._db.transaction() as conn:
            _require_rfq(conn, rfq_id)
            removed = 0
            for kw in normalized:
                cursor = conn.execute(
                    "DELETE FROM rfq_keywords WHERE rfq_id = ? AND keyword = ?",
                    (rfq_id, kw),
                )
                removed += cursor.rowcount
        logger.info("RFQ %s: removed %d keyword(s)", rfq_id, removed)
        return removed

    def list_keywords(self, rfq_id: int) -> list[str]:
        """Alphabetically sorted keywords of one RFQ. Raises NotFoundError for unknown RFQ."""
        with self._db.read() as conn:
            _require_rfq(conn, rfq_id)
            rows = conn.execute(
                "SELECT DISTINCT keyword FROM rfq_keywords WHERE rfq_id = ? ORDER BY keyword",
                (rfq_id,),
            ).fetchall()
        return [r["keyword"] for r in rows]

    def keywords_by_rfq(self, rfq_ids: list[int]) -> dict[int, list[str]]:
        """Sorted keywords for several RFQs at once (for decorating search results)."""
        if not rfq_ids:
            return {}
        placeholders = ",".join("?" for _ in rfq_ids)
        with self._db.read() as conn:
            rows = conn.execute(
                f"SELECT rfq_id, keyword FROM rfq_keywords WHERE rfq_id IN ({placeholders}) "
                "ORDER BY rfq_id, keyword",
                list(rfq_ids),
            ).fetchall()
        result: dict[int, list[str]] = {rid: [] for rid in rfq_ids}
        for r in rows:
            result[r["rfq_id"]].append(r["keyword"])
        return result

"""RFQ lifecycle: create, read, update and close, with ownership rules."""

import logging
import sqlite3
from typing import Any, Optional

from rfq_market.errors import NotFoundError, UnauthorizedError, ValidationError
from rfq_market.logsafe import sanitize_for_log
from rfq_market.models.fields import clamp, parse_model, to_db_number, utcnow
from rfq_market.models.rfq import RFQ_CLOSED, RFQ_OPEN, Rfq, RfqFields, RfqMatch, RfqPage, RfqPatch
from rfq_market.store.database import Database

logger = logging.getLogger(__name__)

RELATED_LIMIT = 10


def require_user_id(value: Any, name: str) -> int:
    """Positive integer id of the acting principal, else ValidationError."""
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{name} is required")
    try:
        user_id = int(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{name} must be a positive integer") from e
    if user_id < 1:
        raise ValidationError(f"{name} must be a positive integer")
    return user_id


def load_rfq(conn: sqlite3.Connection, rfq_id: int) -> Rfq:
    row = conn.execute("SELECT * FROM rfqs WHERE id = ?", (rfq_id,)).fetchone()
    if row is None:
        raise NotFoundError("RFQ not found")
    return Rfq.from_row(row)


def check_owner(rfq: Rfq, acting_user_id: Optional[int]) -> None:
    if acting_user_id is None or rfq.buyer_id != acting_user_id:
        raise UnauthorizedError("Only the RFQ owner can perform this action")


class RfqManager:
    """
    Owns writes to the rfqs table. An RFQ is created open, mutated only by
    its buyer, and closed explicitly here or implicitly by a bid award.
    """

    def __init__(self, db: Database):
        self._db = db

    def list_rfqs(
        self,
        limit: Optional[int] = 20,
        offset: Optional[int] = 0,
        category_id: Optional[int] = None,
        *,
        status: Optional[str] = None,
        buyer_id: Optional[int] = None,
    ) -> RfqPage:
        """One page of RFQs, newest first."""
        limit = clamp(limit, 20, 1, 100)
        offset = clamp(offset, 0, 0, 2**31)
        where = " WHERE 1=1"
        params: list = []
        if category_id is not None:
            where += " AND category_id = ?"
            params.append(int(category_id))
        if status:
            if status not in (RFQ_OPEN, RFQ_CLOSED):
                raise ValidationError(f"status must be '{RFQ_OPEN}' or '{RFQ_CLOSED}'")
            where += " AND status = ?"
            params.append(status)
        if buyer_id is not None:
            where += " AND buyer_id = ?"
            params.append(int(buyer_id))

        with self._db.read() as conn:
            total = conn.execute(f"SELECT COUNT(*) FROM rfqs{where}", params).fetchone()[0]
            rows = conn.execute(
                f"SELECT * FROM rfqs{where} ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?",
                [*params, limit, offset],
            ).fetchall()
        return RfqPage(
            data=[RfqMatch.from_row(r) for r in rows],
            total=total,
            limit=limit,
            offset=offset,
        )

    def get(self, rfq_id: int) -> Rfq:
        """Single RFQ by id. Raises NotFoundError."""
        with self._db.read() as conn:
            return load_rfq(conn, rfq_id)

    def require_owner(self, rfq_id: int, acting_user_id: Optional[int]) -> Rfq:
        """Return the RFQ if acting_user_id owns it; NotFoundError / UnauthorizedError otherwise."""
        rfq = self.get(rfq_id)
        check_owner(rfq, acting_user_id)
        return rfq

    def create(self, buyer_id: Optional[int], fields: dict | RfqFields) -> Rfq:
        """Validate and persist a new open RFQ owned by buyer_id."""
        buyer_id = require_user_id(buyer_id, "buyer_id")
        if isinstance(fields, RfqFields):
            values = fields
        else:
            values = parse_model(RfqFields, fields)
        now = utcnow().isoformat()
        with self._db.transaction() as conn:
            cursor = conn.execute(
                """
                INSERT INTO rfqs (buyer_id, title, description, category_id, subcategory_id,
                                  budget_min, budget_max, currency, status, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    buyer_id,
                    values.title,
                    values.description,
                    values.category_id,
                    values.subcategory_id,
                    to_db_number(values.budget_min),
                    to_db_number(values.budget_max),
                    values.currency,
                    RFQ_OPEN,
                    now,
                    now,
                ),
            )
            rfq = load_rfq(conn, cursor.lastrowid)
        logger.info("RFQ %s created by buyer %s: %s", rfq.id, buyer_id, sanitize_for_log(rfq.title))
        return rfq

    def update(self, rfq_id: int, fields: dict | RfqPatch, acting_user_id: Optional[int]) -> Rfq:
        """
        Apply a partial update. Ownership is checked before validation; the
        merged field set must pass the same rules as create.
        """
        with self._db.transaction() as conn:
            rfq = load_rfq(conn, rfq_id)
            check_owner(rfq, acting_user_id)
            patch = fields if isinstance(fields, RfqPatch) else parse_model(RfqPatch, fields or {})
            values = parse_model(RfqFields, patch.apply_to(rfq.editable_fields()))
            conn.execute(
                """
                UPDATE rfqs SET
                    title = ?, description = ?, category_id = ?, subcategory_id = ?,
                    budget_min = ?, budget_max = ?, currency = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    values.title,
                    values.description,
                    values.category_id,
                    values.subcategory_id,
                    to_db_number(values.budget_min),
                    to_db_number(values.budget_max),
                    values.currency,
                    utcnow().isoformat(),
                    rfq_id,
                ),
            )
            updated = load_rfq(conn, rfq_id)
        logger.info("RFQ %s updated by buyer %s", rfq_id, acting_user_id)
        return updated

    def close(self, rfq_id: int, acting_user_id: Optional[int]) -> Rfq:
        """Close an RFQ. Closing an already-closed RFQ returns it unchanged."""
        with self._db.transaction() as conn:
            rfq = load_rfq(conn, rfq_id)
            check_owner(rfq, acting_user_id)
            if rfq.status == RFQ_CLOSED:
                return rfq
            conn.execute(
                "UPDATE rfqs SET status = ?, updated_at = ? WHERE id = ?",
                (RFQ_CLOSED, utcnow().isoformat(), rfq_id),
            )
            closed = load_rfq(conn, rfq_id)
        logger.info("RFQ %s closed by buyer %s", rfq_id, acting_user_id)
        return closed

    def find_related(self, rfq_id: int) -> list[Rfq]:
        """Up to 10 other open RFQs in the same category, newest first."""
        with self._db.read() as conn:
            row = conn.execute("SELECT category_id FROM rfqs WHERE id = ?", (rfq_id,)).fetchone()
            if row is None or row["category_id"] is None:
                return []
            rows = conn.execute(
                """
                SELECT * FROM rfqs
                WHERE category_id = ? AND id != ? AND status = ?
                ORDER BY created_at DESC, id DESC
                LIMIT ?
                """,
                (row["category_id"], rfq_id, RFQ_OPEN, RELATED_LIMIT),
            ).fetchall()
        return [Rfq.from_row(r) for r in rows]

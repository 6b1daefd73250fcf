"""Bid lifecycle: submit, edit, award and retract against an RFQ."""

import logging
import sqlite3
from decimal import Decimal
from typing import Optional

from rfq_market.errors import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from rfq_market.lifecycle.rfqs import check_owner, load_rfq, require_user_id
from rfq_market.models.bid import (
    BID_AWARDED,
    BID_REJECTED,
    BID_RETRACTED,
    BID_SUBMITTED,
    Bid,
    BidFields,
    BidPatch,
)
from rfq_market.models.fields import parse_model, to_db_number, utcnow
from rfq_market.models.rfq import RFQ_CLOSED, RFQ_OPEN, Rfq
from rfq_market.store.database import Database

logger = logging.getLogger(__name__)


def _load_bid(conn: sqlite3.Connection, bid_id: int) -> Bid:
    row = conn.execute("SELECT * FROM bids WHERE id = ?", (bid_id,)).fetchone()
    if row is None:
        raise NotFoundError("Bid not found")
    return Bid.from_row(row)


def _check_bid_owner(bid: Bid, acting_vendor_id: Optional[int]) -> None:
    if acting_vendor_id is None or bid.vendor_id != acting_vendor_id:
        raise UnauthorizedError("Only the bidding vendor can perform this action")


class BidManager:
    """
    Owns writes to the bids table.

    State machine: submitted -> awarded | rejected | retracted, all terminal.
    A vendor holds at most one non-retracted bid per RFQ; the partial unique
    index on bids backs the check done here.
    """

    def __init__(self, db: Database, *, enforce_budget_bounds: bool = True):
        self._db = db
        self._enforce_budget_bounds = enforce_budget_bounds

    def _check_budget(self, rfq: Rfq, amount: Decimal) -> None:
        if not self._enforce_budget_bounds:
            return
        if rfq.budget_min is not None and amount < rfq.budget_min:
            raise ValidationError(f"amount must be at least {rfq.budget_min} {rfq.currency}")
        if rfq.budget_max is not None and amount > rfq.budget_max:
            raise ValidationError(f"amount must be at most {rfq.budget_max} {rfq.currency}")

    def get(self, bid_id: int) -> Bid:
        with self._db.read() as conn:
            return _load_bid(conn, bid_id)

    def list_for_rfq(self, rfq_id: int, acting_user_id: Optional[int] = None) -> list[Bid]:
        """
        Bids on an RFQ visible to the caller: the RFQ owner sees all of them,
        a vendor sees only their own, anonymous callers see none.
        """
        with self._db.read() as conn:
            rfq = load_rfq(conn, rfq_id)
            if acting_user_id is None:
                return []
            if acting_user_id == rfq.buyer_id:
                rows = conn.execute(
                    "SELECT * FROM bids WHERE rfq_id = ? ORDER BY created_at, id",
                    (rfq_id,),
                ).fetchall()
            else:
                rows = conn.execute(
                    "SELECT * FROM bids WHERE rfq_id = ? AND vendor_id = ? ORDER BY created_at, id",
                    (rfq_id, acting_user_id),
                ).fetchall()
        return [Bid.from_row(r) for r in rows]

    def create(
        self,
        rfq_id: int,
        vendor_id: Optional[int],
        amount,
        description: Optional[str] = None,
        delivery_time: Optional[int] = None,
    ) -> Bid:
        """Submit a bid on an open RFQ."""
        vendor_id = require_user_id(vendor_id, "vendor_id")
        now = utcnow().isoformat()
        with self._db.transaction() as conn:
            rfq = load_rfq(conn, rfq_id)
            if not rfq.is_open:
                raise ConflictError("RFQ is not open for bidding")
            if rfq.buyer_id == vendor_id:
                raise ConflictError("Buyers cannot bid on their own RFQ")
            fields = parse_model(
                BidFields,
                {"amount": amount, "description": description, "delivery_time": delivery_time},
            )
            self._check_budget(rfq, fields.amount)
            existing = conn.execute(
                "SELECT id FROM bids WHERE rfq_id = ? AND vendor_id = ? AND status != ?",
                (rfq_id, vendor_id, BID_RETRACTED),
            ).fetchone()
            if existing is not None:
                raise ConflictError("Vendor already has an active bid on this RFQ")
            cursor = conn.execute(
                """
                INSERT INTO bids (rfq_id, vendor_id, amount, description, delivery_time,
                                  status, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    rfq_id,
                    vendor_id,
                    to_db_number(fields.amount),
                    fields.description,
                    fields.delivery_time,
                    BID_SUBMITTED,
                    now,
                    now,
                ),
            )
            bid = _load_bid(conn, cursor.lastrowid)
        logger.info("Bid %s submitted on RFQ %s by vendor %s", bid.id, rfq_id, vendor_id)
        return bid

    def update(self, bid_id: int, fields: dict | BidPatch, acting_vendor_id: Optional[int]) -> Bid:
        """Edit a submitted bid. Awarded, rejected and retracted bids are frozen."""
        with self._db.transaction() as conn:
            bid = _load_bid(conn, bid_id)
            _check_bid_owner(bid, acting_vendor_id)
            if bid.is_terminal:
                raise ConflictError(f"Cannot edit a bid that is {bid.status}")
            patch = fields if isinstance(fields, BidPatch) else parse_model(BidPatch, fields or {})
            rfq = load_rfq(conn, bid.rfq_id)
            if not rfq.is_open:
                raise ConflictError("RFQ is not open for bidding")
            changes = patch.model_dump(exclude_unset=True, exclude_none=True)
            if "amount" in changes:
                self._check_budget(rfq, patch.amount)
            conn.execute(
                """
                UPDATE bids SET
                    amount = ?, description = ?, delivery_time = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    to_db_number(changes.get("amount", bid.amount)),
                    changes.get("description", bid.description),
                    changes.get("delivery_time", bid.delivery_time),
                    utcnow().isoformat(),
                    bid_id,
                ),
            )
            updated = _load_bid(conn, bid_id)
        logger.info("Bid %s updated by vendor %s", bid_id, acting_vendor_id)
        return updated

    def award(self, bid_id: int, acting_buyer_id: Optional[int]) -> Bid:
        """
        Award a bid: in one transaction the bid becomes awarded, every other
        submitted bid on the RFQ becomes rejected, and the RFQ closes.
        Concurrent awards on one RFQ queue on the write lock; once the first
        commits, the RFQ is closed and the rest fail with ConflictError.
        """
        now = utcnow().isoformat()
        with self._db.transaction() as conn:
            bid = _load_bid(conn, bid_id)
            rfq = load_rfq(conn, bid.rfq_id)
            check_owner(rfq, acting_buyer_id)
            if not rfq.is_open:
                raise ConflictError("RFQ is not open; a bid may already have been awarded")
            if bid.status != BID_SUBMITTED:
                raise ConflictError(f"Cannot award a bid that is {bid.status}")

            closed = conn.execute(
                "UPDATE rfqs SET status = ?, updated_at = ? WHERE id = ? AND status = ?",
                (RFQ_CLOSED, now, rfq.id, RFQ_OPEN),
            )
            if closed.rowcount != 1:
                raise ConflictError("RFQ is not open; a bid may already have been awarded")
            conn.execute(
                "UPDATE bids SET status = ?, updated_at = ? WHERE id = ? AND status = ?",
                (BID_AWARDED, now, bid_id, BID_SUBMITTED),
            )
            rejected = conn.execute(
                "UPDATE bids SET status = ?, updated_at = ? WHERE rfq_id = ? AND id != ? AND status = ?",
                (BID_REJECTED, now, rfq.id, bid_id, BID_SUBMITTED),
            )
            awarded = _load_bid(conn, bid_id)
        logger.info(
            "Bid %s awarded on RFQ %s by buyer %s; %d other bid(s) rejected",
            bid_id,
            rfq.id,
            acting_buyer_id,
            rejected.rowcount,
        )
        return awarded

    def retract(self, bid_id: int, acting_vendor_id: Optional[int]) -> Bid:
        """Withdraw a submitted bid, freeing the vendor to bid again."""
        with self._db.transaction() as conn:
            bid = _load_bid(conn, bid_id)
            _check_bid_owner(bid, acting_vendor_id)
            if bid.status == BID_AWARDED:
                raise ConflictError("Cannot retract an awarded bid")
            if bid.status != BID_SUBMITTED:
                raise ConflictError(f"Cannot retract a bid that is {bid.status}")
            conn.execute(
                "UPDATE bids SET status = ?, updated_at = ? WHERE id = ?",
                (BID_RETRACTED, utcnow().isoformat(), bid_id),
            )
            retracted = _load_bid(conn, bid_id)
        logger.info("Bid %s retracted by vendor %s", bid_id, acting_vendor_id)
        return retracted

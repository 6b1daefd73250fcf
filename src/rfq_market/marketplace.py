"""Composition root: build every component around one Database handle."""

import logging
from typing import Optional

from rfq_market.config import Settings
from rfq_market.lifecycle import BidManager, RfqManager
from rfq_market.logsafe import sanitize_for_log
from rfq_market.search import SearchEngine, TrendTracker
from rfq_market.store import Database, KeywordStore

logger = logging.getLogger(__name__)


class Marketplace:
    """Wires the components together; holds no state of its own beyond them."""

    def __init__(self, db: Database, settings: Optional[Settings] = None):
        self.settings = settings or Settings(db_path=db.path)
        self.db = db
        self.rfqs = RfqManager(db)
        self.bids = BidManager(db, enforce_budget_bounds=self.settings.enforce_budget_bounds)
        self.keywords = KeywordStore(db)
        self.trends = TrendTracker(db, window_days=self.settings.trend_window_days)
        self.search = SearchEngine(
            db,
            self.keywords,
            self.trends,
            max_offset=self.settings.max_search_offset,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Marketplace":
        return cls(Database(settings.db_path, timeout=settings.db_timeout), settings)

    def add_keywords(self, rfq_id: int, keywords: list, acting_user_id: Optional[int]) -> list[str]:
        """Owner-only keyword add; newly attached keywords count toward usage."""
        self.rfqs.require_owner(rfq_id, acting_user_id)
        added = self.keywords.add(rfq_id, keywords)
        if added:
            try:
                self.trends.record_usage(added)
            except Exception as e:
                logger.warning("Keyword usage update failed for RFQ %s: %s", rfq_id, sanitize_for_log(e))
        return added

    def remove_keywords(self, rfq_id: int, keywords: list, acting_user_id: Optional[int]) -> int:
        """Owner-only keyword removal."""
        self.rfqs.require_owner(rfq_id, acting_user_id)
        return self.keywords.remove(rfq_id, keywords)

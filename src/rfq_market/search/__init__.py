"""Ranked search, suggestions and keyword trends."""

from rfq_market.search.engine import SearchEngine
from rfq_market.search.trends import TrendTracker

__all__ = ["SearchEngine", "TrendTracker"]

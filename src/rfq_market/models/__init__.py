"""Data models for RFQs, bids, keyword trends and principals."""

from rfq_market.models.bid import Bid, BidFields, BidPatch
from rfq_market.models.keyword import KeywordTrend
from rfq_market.models.principal import Principal
from rfq_market.models.rfq import Rfq, RfqFields, RfqMatch, RfqPage, RfqPatch

__all__ = [
    "Bid",
    "BidFields",
    "BidPatch",
    "KeywordTrend",
    "Principal",
    "Rfq",
    "RfqFields",
    "RfqMatch",
    "RfqPage",
    "RfqPatch",
]

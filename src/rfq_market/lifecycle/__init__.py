"""RFQ and bid lifecycle managers."""

from rfq_market.lifecycle.bids import BidManager
from rfq_market.lifecycle.rfqs import RfqManager

__all__ = ["BidManager", "RfqManager"]

"""RFQ marketplace core: RFQ and bid lifecycle, keyword index, ranked search."""

__version__ = "0.1.0"

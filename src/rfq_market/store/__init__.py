"""Relational storage: database handle and keyword index."""

from rfq_market.store.database import Database
from rfq_market.store.keyword_store import KeywordStore

__all__ = ["Database", "KeywordStore"]

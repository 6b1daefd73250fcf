"""Pytest fixtures for rfq-market tests."""

import tempfile
from decimal import Decimal
from pathlib import Path

import pytest

from rfq_market.api import MarketplaceApi
from rfq_market.config import Settings
from rfq_market.marketplace import Marketplace
from rfq_market.models.principal import Principal
from rfq_market.models.rfq import Rfq
from rfq_market.store import Database

BUYER_ID = 1
OTHER_BUYER_ID = 2
VENDOR_A = 10
VENDOR_B = 11
VENDOR_C = 12


def rfq_fields(**kwargs) -> dict:
    """Valid RFQ create body; override any field via kwargs."""
    defaults = {
        "title": "Website redesign",
        "description": "Redesign of our corporate website with a modern look.",
        "category_id": 3,
        "budget_min": Decimal("100"),
        "budget_max": Decimal("500"),
    }
    defaults.update(kwargs)
    return defaults


@pytest.fixture
def temp_db() -> Path:
    """Temporary database path for isolated tests."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        path = Path(f.name)
    yield path
    for suffix in ("", "-wal", "-shm"):
        Path(f"{path}{suffix}").unlink(missing_ok=True)


@pytest.fixture
def db(temp_db: Path) -> Database:
    """Database handle on a temporary file."""
    return Database(temp_db, timeout=5.0)


@pytest.fixture
def market(db: Database) -> Marketplace:
    """Fully wired marketplace on a temporary database."""
    return Marketplace(db, Settings(db_path=db.path))


@pytest.fixture
def api(market: Marketplace) -> MarketplaceApi:
    return MarketplaceApi(market)


@pytest.fixture
def buyer() -> Principal:
    return Principal(id=BUYER_ID, role="buyer")


@pytest.fixture
def vendor() -> Principal:
    return Principal(id=VENDOR_A, role="vendor")


@pytest.fixture
def open_rfq(market: Marketplace) -> Rfq:
    """Open RFQ owned by BUYER_ID with budget [100, 500] in category 3."""
    return market.rfqs.create(BUYER_ID, rfq_fields())

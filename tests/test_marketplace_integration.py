"""End-to-end flows through the wired marketplace."""

from decimal import Decimal

import pytest

from rfq_market.errors import ConflictError, UnauthorizedError
from rfq_market.marketplace import Marketplace

from tests.conftest import BUYER_ID, OTHER_BUYER_ID, VENDOR_A, VENDOR_B, rfq_fields


class TestBidAwardScenario:
    def test_bid_conflict_award_and_second_award(self, market: Marketplace) -> None:
        """Budget [100, 500]: bid, duplicate bid, award, then a second award attempt."""
        rfq = market.rfqs.create(BUYER_ID, rfq_fields(budget_min=Decimal("100"), budget_max=Decimal("500")))

        bid_a = market.bids.create(rfq.id, VENDOR_A, 300)
        assert bid_a.status == "submitted"

        with pytest.raises(ConflictError):
            market.bids.create(rfq.id, VENDOR_A, 250)

        bid_b = market.bids.create(rfq.id, VENDOR_B, 350)

        awarded = market.bids.award(bid_a.id, BUYER_ID)
        assert awarded.status == "awarded"
        assert market.rfqs.get(rfq.id).status == "closed"

        with pytest.raises(ConflictError):
            market.bids.award(bid_b.id, BUYER_ID)
        assert market.bids.get(bid_b.id).status == "rejected"

    def test_retract_then_rebid(self, market: Marketplace) -> None:
        rfq = market.rfqs.create(BUYER_ID, rfq_fields())
        first = market.bids.create(rfq.id, VENDOR_A, 300)
        market.bids.retract(first.id, VENDOR_A)
        second = market.bids.create(rfq.id, VENDOR_A, 280)
        assert market.bids.award(second.id, BUYER_ID).status == "awarded"
        with pytest.raises(ConflictError):
            market.bids.retract(second.id, VENDOR_A)


class TestTrendScenario:
    def test_web_design_outranks_logo(self, market: Marketplace) -> None:
        for _ in range(3):
            market.search.search("web design")
        market.search.search("logo")

        trending = market.trends.trending()
        by_keyword = {t.keyword: t for t in trending}
        assert [t.keyword for t in trending][-1] == "logo"
        assert by_keyword["web"].search_count == 3
        assert by_keyword["design"].search_count == 3
        assert by_keyword["logo"].search_count == 1


class TestKeywordsThroughMarketplace:
    def test_owner_only(self, market: Marketplace) -> None:
        rfq = market.rfqs.create(BUYER_ID, rfq_fields())
        with pytest.raises(UnauthorizedError):
            market.add_keywords(rfq.id, ["logo"], OTHER_BUYER_ID)
        with pytest.raises(UnauthorizedError):
            market.remove_keywords(rfq.id, ["logo"], None)

    def test_usage_counted_once_per_attachment(self, market: Marketplace) -> None:
        a = market.rfqs.create(BUYER_ID, rfq_fields())
        b = market.rfqs.create(BUYER_ID, rfq_fields())
        market.add_keywords(a.id, ["logo"], BUYER_ID)
        market.add_keywords(a.id, ["logo"], BUYER_ID)
        market.add_keywords(b.id, ["Logo"], BUYER_ID)
        (trend,) = market.trends.most_searched()
        assert trend.usage_count == 2

    def test_usage_failure_does_not_undo_keywords(self, market: Marketplace, monkeypatch: pytest.MonkeyPatch) -> None:
        rfq = market.rfqs.create(BUYER_ID, rfq_fields())

        def broken(keywords):
            raise RuntimeError("trend table locked")

        monkeypatch.setattr(market.trends, "record_usage", broken)
        assert market.add_keywords(rfq.id, ["logo"], BUYER_ID) == ["logo"]
        assert market.keywords.list_keywords(rfq.id) == ["logo"]

    def test_search_by_keyword_after_tagging(self, market: Marketplace) -> None:
        rfq = market.rfqs.create(BUYER_ID, rfq_fields())
        market.rfqs.create(BUYER_ID, rfq_fields(title="Unrelated work"))
        market.add_keywords(rfq.id, ["Web Design"], BUYER_ID)
        page = market.search.search(keywords=["web design"])
        assert [r.id for r in page.data] == [rfq.id]
        assert page.data[0].keywords == ["web design"]

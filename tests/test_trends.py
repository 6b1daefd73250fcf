"""Tests for search tracking and keyword trends."""

from datetime import datetime, timedelta, timezone

import pytest

from rfq_market.search.trends import TrendTracker, decayed_score
from rfq_market.store import Database


@pytest.fixture
def tracker(db: Database) -> TrendTracker:
    return TrendTracker(db, window_days=7)


def _backdate(db: Database, keyword: str, days: int) -> None:
    stamp = (datetime.now(timezone.utc) - timedelta(days=days)).isoformat()
    with db.transaction() as conn:
        conn.execute("UPDATE keyword_trends SET last_updated = ? WHERE keyword = ?", (stamp, keyword))


class TestDecayedScore:
    def test_no_elapsed_time(self) -> None:
        now = datetime.now(timezone.utc)
        assert decayed_score(3.0, now, now, 7) == 3.0

    def test_half_life(self) -> None:
        now = datetime.now(timezone.utc)
        assert decayed_score(4.0, now - timedelta(days=7), now, 7) == pytest.approx(2.0)

    def test_future_timestamp_does_not_grow(self) -> None:
        now = datetime.now(timezone.utc)
        assert decayed_score(1.0, now + timedelta(days=1), now, 7) == 1.0


class TestTrack:
    def test_short_query_ignored(self, tracker: TrendTracker) -> None:
        """Queries under 2 characters are neither logged nor counted."""
        assert tracker.track(" a ") is False
        assert tracker.track(None) is False
        assert tracker.recent_queries() == []

    def test_query_logged_lowercase(self, tracker: TrendTracker) -> None:
        assert tracker.track("  Web Design ") is True
        assert tracker.recent_queries() == ["web design"]

    def test_short_tokens_not_counted(self, tracker: TrendTracker) -> None:
        """Tokens of 2 characters or fewer are logged with the query but get no counter."""
        tracker.track("ui logo")
        assert [t.keyword for t in tracker.most_searched()] == ["logo"]

    def test_repeated_token_counted_once_per_query(self, tracker: TrendTracker) -> None:
        tracker.track("logo logo logo")
        (trend,) = tracker.most_searched()
        assert trend.search_count == 1

    def test_counts_accumulate(self, tracker: TrendTracker) -> None:
        for _ in range(3):
            tracker.track("web design")
        tracker.track("logo")
        counts = {t.keyword: t.search_count for t in tracker.most_searched()}
        assert counts == {"web": 3, "design": 3, "logo": 1}


class TestTrending:
    def test_frequent_keywords_first(self, tracker: TrendTracker) -> None:
        """'web design' searched three times outranks 'logo' searched once."""
        for _ in range(3):
            tracker.track("web design")
        tracker.track("logo")
        trending = [t.keyword for t in tracker.trending(10)]
        assert trending.index("design") < trending.index("logo")
        assert trending.index("web") < trending.index("logo")
        assert set(trending) == {"web", "design", "logo"}

    def test_outside_window_excluded(self, db: Database, tracker: TrendTracker) -> None:
        tracker.track("logo")
        tracker.track("branding")
        _backdate(db, "logo", 8)
        assert [t.keyword for t in tracker.trending()] == ["branding"]
        # All-time ordering still includes it
        assert {t.keyword for t in tracker.most_searched()} == {"logo", "branding"}

    def test_recent_hit_outranks_old_burst(self, db: Database, tracker: TrendTracker) -> None:
        """Five hits three weeks ago decay below two hits today."""
        for _ in range(5):
            tracker.track("legacy")
        with db.transaction() as conn:
            stamp = (datetime.now(timezone.utc) - timedelta(days=21)).isoformat()
            conn.execute("UPDATE keyword_trends SET last_updated = ? WHERE keyword = 'legacy'", (stamp,))
        tracker.track("legacy")
        tracker.track("fresh")
        tracker.track("fresh")
        scores = {t.keyword: t.trend_score for t in tracker.trending()}
        assert scores["fresh"] > scores["legacy"]

    def test_scores_decay_without_new_searches(self, db: Database, tracker: TrendTracker) -> None:
        """A keyword nobody searched for six days cools below a fresh one."""
        for _ in range(3):
            tracker.track("alpha")
        _backdate(db, "alpha", 6)
        tracker.track("zulu")
        tracker.track("zulu")
        trending = tracker.trending()
        assert [t.keyword for t in trending] == ["zulu", "alpha"]
        scores = {t.keyword: t.trend_score for t in trending}
        assert scores["alpha"] == pytest.approx(3 * 0.5 ** (6 / 7), rel=1e-3)
        assert scores["zulu"] == pytest.approx(2.0, rel=1e-3)

    def test_limit_clamped(self, tracker: TrendTracker) -> None:
        for word in ("alpha", "bravo", "charlie"):
            tracker.track(word)
        assert len(tracker.trending(0)) == 1
        assert len(tracker.trending(500)) == 3

    def test_usage_only_keywords_not_trending(self, tracker: TrendTracker) -> None:
        """Attaching a keyword to an RFQ is not a search."""
        tracker.record_usage(["logo", "Logo"])
        assert tracker.trending() == []
        (trend,) = tracker.most_searched()
        assert trend.usage_count == 1
        assert trend.search_count == 0

    def test_usage_does_not_reset_search_counts(self, tracker: TrendTracker) -> None:
        tracker.track("logo")
        tracker.record_usage(["logo"])
        (trend,) = tracker.most_searched()
        assert (trend.search_count, trend.usage_count) == (1, 1)

"""Tests for settings loading."""

import tempfile
from pathlib import Path

import pytest

from rfq_market.config import Settings


@pytest.fixture
def yaml_path():
    with tempfile.NamedTemporaryFile(suffix=".yaml", delete=False, mode="w") as f:
        path = Path(f.name)
    yield path
    path.unlink(missing_ok=True)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "RFQ_MARKET_DB",
        "RFQ_MARKET_DB_TIMEOUT",
        "RFQ_MARKET_LOG_LEVEL",
        "RFQ_MARKET_ENFORCE_BUDGET",
    ):
        monkeypatch.delenv(name, raising=False)


class TestSettings:
    def test_defaults(self) -> None:
        s = Settings()
        assert s.db_path == Path("rfq_market.db")
        assert s.db_timeout == 5.0
        assert s.enforce_budget_bounds is True
        assert s.max_search_offset == 1000
        assert s.trend_window_days == 7
        assert s.log_level == "INFO"

    def test_nested_yaml(self, yaml_path: Path) -> None:
        """Nested sections map onto flat settings fields."""
        yaml_path.write_text(
            """
database:
  path: /tmp/market.db
  timeout: 2.5
bids:
  enforce_budget_bounds: false
search:
  max_offset: 200
trends:
  window_days: 14
logging:
  level: debug
"""
        )
        s = Settings.from_yaml(yaml_path)
        assert s.db_path == Path("/tmp/market.db")
        assert s.db_timeout == 2.5
        assert s.enforce_budget_bounds is False
        assert s.max_search_offset == 200
        assert s.trend_window_days == 14
        assert s.log_level == "DEBUG"

    def test_flat_yaml(self, yaml_path: Path) -> None:
        yaml_path.write_text("db_path: flat.db\nlog_level: warning\n")
        s = Settings.from_yaml(yaml_path)
        assert s.db_path == Path("flat.db")
        assert s.log_level == "WARNING"

    def test_zero_in_nested_section_is_kept(self, yaml_path: Path) -> None:
        """A nested 0 or false is a value, not a missing key."""
        yaml_path.write_text("search:\n  max_offset: 0\nbids:\n  enforce_budget_bounds: false\nmax_search_offset: 300\n")
        s = Settings.from_yaml(yaml_path)
        assert s.max_search_offset == 0
        assert s.enforce_budget_bounds is False

    def test_empty_yaml_gives_defaults(self, yaml_path: Path) -> None:
        yaml_path.write_text("")
        assert Settings.from_yaml(yaml_path) == Settings()

    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch, yaml_path: Path) -> None:
        """Environment variables win over YAML values."""
        yaml_path.write_text("database:\n  path: from_yaml.db\n")
        monkeypatch.setenv("RFQ_MARKET_DB", "from_env.db")
        monkeypatch.setenv("RFQ_MARKET_DB_TIMEOUT", "9")
        monkeypatch.setenv("RFQ_MARKET_ENFORCE_BUDGET", "no")
        s = Settings.load(yaml_path)
        assert s.db_path == Path("from_env.db")
        assert s.db_timeout == 9.0
        assert s.enforce_budget_bounds is False

    def test_load_without_file(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RFQ_MARKET_LOG_LEVEL", "error")
        assert Settings.load().log_level == "ERROR"

    def test_timeout_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            Settings(db_timeout=0)

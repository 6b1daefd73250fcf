"""Runtime settings loaded from YAML with RFQ_MARKET_* environment overrides."""

import os
from pathlib import Path
from typing import Optional

try:
    import yaml
except ModuleNotFoundError as e:
    raise ModuleNotFoundError(
        "PyYAML is required for settings loading. Run: poetry install"
    ) from e
from pydantic import BaseModel, Field, field_validator

_TRUE_VALUES = ("1", "true", "yes", "on")


class Settings(BaseModel):
    """Settings shared by every component built from one Database handle."""

    db_path: Path = Field(default=Path("rfq_market.db"), description="SQLite database file")
    db_timeout: float = Field(default=5.0, gt=0, description="Seconds to wait for the write lock")

    enforce_budget_bounds: bool = Field(
        default=True,
        description="Reject bid amounts outside the RFQ budget range",
    )

    max_search_offset: int = Field(default=1000, ge=0)
    trend_window_days: int = Field(default=7, ge=1)

    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def upper_level(cls, v: str) -> str:
        return v.upper()

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from YAML. Supports nested sections (database/bids/search/trends/logging) or flat keys."""
        data = yaml.safe_load(Path(path).read_text()) or {}
        database = data.get("database", {})
        bids = data.get("bids", {})
        search = data.get("search", {})
        trends = data.get("trends", {})
        logging_ = data.get("logging", {})

        def _get(nested: dict, key: str, flat_key: str):
            # None means absent; 0 and false are real values
            value = nested.get(key)
            return value if value is not None else data.get(flat_key)

        flat: dict = {}
        for key, value in (
            ("db_path", _get(database, "path", "db_path")),
            ("db_timeout", _get(database, "timeout", "db_timeout")),
            ("enforce_budget_bounds", _get(bids, "enforce_budget_bounds", "enforce_budget_bounds")),
            ("max_search_offset", _get(search, "max_offset", "max_search_offset")),
            ("trend_window_days", _get(trends, "window_days", "trend_window_days")),
            ("log_level", _get(logging_, "level", "log_level")),
        ):
            if value is not None:
                flat[key] = value
        return cls.model_validate(flat)

    @classmethod
    def load(cls, path: Optional[str | Path] = None) -> "Settings":
        """Load from optional YAML file, then apply environment overrides."""
        settings = cls.from_yaml(path) if path else cls()
        return settings.with_env()

    def with_env(self) -> "Settings":
        """Return a copy with RFQ_MARKET_* environment variables applied."""
        update: dict = {}
        if os.environ.get("RFQ_MARKET_DB"):
            update["db_path"] = os.environ["RFQ_MARKET_DB"]
        if os.environ.get("RFQ_MARKET_DB_TIMEOUT"):
            update["db_timeout"] = os.environ["RFQ_MARKET_DB_TIMEOUT"]
        if os.environ.get("RFQ_MARKET_LOG_LEVEL"):
            update["log_level"] = os.environ["RFQ_MARKET_LOG_LEVEL"]
        env_enforce = os.environ.get("RFQ_MARKET_ENFORCE_BUDGET")
        if env_enforce:
            update["enforce_budget_bounds"] = env_enforce.strip().lower() in _TRUE_VALUES
        if not update:
            return self
        # Re-validate so env strings are coerced like YAML values
        return type(self).model_validate({**self.model_dump(), **update})

"""RFQ record and the field models used to create and update it."""

import sqlite3
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from rfq_market.matching import clean_text
from rfq_market.models.fields import from_db_number

RFQ_OPEN = "open"
RFQ_CLOSED = "closed"

TITLE_MIN = 3
TITLE_MAX = 200
DESCRIPTION_MIN = 10
DESCRIPTION_MAX = 5000


class RfqFields(BaseModel):
    """Validated, normalized mutable fields of an RFQ."""

    title: str
    description: str
    category_id: Optional[int] = Field(default=None, ge=1)
    subcategory_id: Optional[int] = Field(default=None, ge=1)
    budget_min: Optional[Decimal] = Field(default=None, ge=0)
    budget_max: Optional[Decimal] = Field(default=None, ge=0)
    currency: str = "USD"

    @field_validator("title")
    @classmethod
    def check_title(cls, v: str) -> str:
        v = clean_text(v, TITLE_MAX)
        if len(v) < TITLE_MIN:
            raise ValueError(f"must be at least {TITLE_MIN} characters")
        return v

    @field_validator("description")
    @classmethod
    def check_description(cls, v: str) -> str:
        v = clean_text(v, DESCRIPTION_MAX)
        if len(v) < DESCRIPTION_MIN:
            raise ValueError(f"must be at least {DESCRIPTION_MIN} characters")
        return v

    @field_validator("currency", mode="before")
    @classmethod
    def check_currency(cls, v):
        if v is None:
            return "USD"
        code = str(v).strip().upper()
        if len(code) != 3 or not code.isalpha():
            raise ValueError("must be a 3-letter currency code")
        return code

    @model_validator(mode="after")
    def check_budget_range(self) -> "RfqFields":
        if (
            self.budget_min is not None
            and self.budget_max is not None
            and self.budget_min > self.budget_max
        ):
            raise ValueError("budget_min cannot be greater than budget_max")
        return self


class RfqPatch(BaseModel):
    """
    Partial update. Only fields explicitly set are applied; the merged
    result is re-validated as RfqFields.
    """

    title: Optional[str] = None
    description: Optional[str] = None
    category_id: Optional[int] = None
    subcategory_id: Optional[int] = None
    budget_min: Optional[Decimal] = None
    budget_max: Optional[Decimal] = None
    currency: Optional[str] = None

    def apply_to(self, current: dict) -> dict:
        """Merge set fields over current values. None never clears a required field."""
        merged = dict(current)
        for key, value in self.model_dump(exclude_unset=True).items():
            if value is None and key in ("title", "description", "currency"):
                continue
            merged[key] = value
        return merged


class Rfq(BaseModel):
    """Persisted RFQ."""

    id: int
    buyer_id: int
    title: str
    description: str
    category_id: Optional[int] = None
    subcategory_id: Optional[int] = None
    budget_min: Optional[Decimal] = None
    budget_max: Optional[Decimal] = None
    currency: str = "USD"
    status: str = RFQ_OPEN
    created_at: datetime
    updated_at: datetime

    @property
    def is_open(self) -> bool:
        return self.status == RFQ_OPEN

    def editable_fields(self) -> dict:
        """Current values of the fields an owner may change."""
        return self.model_dump(include=set(RfqFields.model_fields))

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Rfq":
        return cls(
            id=row["id"],
            buyer_id=row["buyer_id"],
            title=row["title"],
            description=row["description"],
            category_id=row["category_id"],
            subcategory_id=row["subcategory_id"],
            budget_min=from_db_number(row["budget_min"]),
            budget_max=from_db_number(row["budget_max"]),
            currency=row["currency"],
            status=row["status"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )


class RfqMatch(Rfq):
    """RFQ as returned by search, with its keywords and relevance score."""

    keywords: list[str] = Field(default_factory=list)
    relevance: float = 0.0


class RfqPage(BaseModel):
    """One page of RFQs plus the parameters that produced it."""

    data: list[RfqMatch] = Field(default_factory=list)
    total: int = 0
    limit: int
    offset: int
    query: Optional[str] = None
    keywords: list[str] = Field(default_factory=list)

    def meta(self) -> dict:
        return {
            "query": self.query,
            "keywords": self.keywords,
            "total": self.total,
            "limit": self.limit,
            "offset": self.offset,
        }

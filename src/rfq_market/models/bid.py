"""Bid record, status values and input field models."""

import sqlite3
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from rfq_market.matching import clean_text
from rfq_market.models.fields import from_db_number

BID_SUBMITTED = "submitted"
BID_AWARDED = "awarded"
BID_REJECTED = "rejected"
BID_RETRACTED = "retracted"

TERMINAL_STATUSES = frozenset({BID_AWARDED, BID_REJECTED, BID_RETRACTED})

BID_DESCRIPTION_MAX = 5000


def _clean_description(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    return clean_text(v, BID_DESCRIPTION_MAX) or None


class BidFields(BaseModel):
    """Validated fields of a new bid."""

    amount: Decimal = Field(..., gt=0, description="Bid price; must be positive")
    description: Optional[str] = None
    delivery_time: Optional[int] = Field(default=None, gt=0, description="Delivery time in days")

    @field_validator("description")
    @classmethod
    def check_description(cls, v: Optional[str]) -> Optional[str]:
        return _clean_description(v)


class BidPatch(BaseModel):
    """Partial bid update; at least one field must be given."""

    amount: Optional[Decimal] = Field(default=None, gt=0)
    description: Optional[str] = None
    delivery_time: Optional[int] = Field(default=None, gt=0)

    @field_validator("description")
    @classmethod
    def check_description(cls, v: Optional[str]) -> Optional[str]:
        return _clean_description(v)

    @model_validator(mode="after")
    def require_a_field(self) -> "BidPatch":
        if not self.model_dump(exclude_unset=True, exclude_none=True):
            raise ValueError("at least one of amount, description, delivery_time is required")
        return self


class Bid(BaseModel):
    """Persisted bid."""

    id: int
    rfq_id: int
    vendor_id: int
    amount: Decimal
    description: Optional[str] = None
    delivery_time: Optional[int] = None
    status: str = BID_SUBMITTED
    created_at: datetime
    updated_at: datetime

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Bid":
        return cls(
            id=row["id"],
            rfq_id=row["rfq_id"],
            vendor_id=row["vendor_id"],
            amount=from_db_number(row["amount"]),
            description=row["description"],
            delivery_time=row["delivery_time"],
            status=row["status"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

"""Helpers shared by the input field models."""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional, TypeVar

import pydantic

from rfq_market.errors import ValidationError

M = TypeVar("M", bound=pydantic.BaseModel)


def parse_model(model_cls: type[M], data: Any) -> M:
    """Validate data into model_cls, converting pydantic errors to ValidationError."""
    try:
        return model_cls.model_validate(data)
    except pydantic.ValidationError as e:
        raise ValidationError(format_errors(e)) from e


def format_errors(exc: pydantic.ValidationError) -> str:
    """One readable line per field error: 'title: must be at least 3 characters'."""
    parts: list[str] = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "__root__")
        msg = str(err.get("msg", "invalid value"))
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts) or "Invalid input"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_db_number(value: Optional[Decimal]) -> Optional[float]:
    """Money values are stored as REAL so range filters compare numerically."""
    return float(value) if value is not None else None


def from_db_number(value: Optional[float]) -> Optional[Decimal]:
    return Decimal(str(value)) if value is not None else None


def clamp(value: Optional[int], default: int, low: int, high: int) -> int:
    """Coerce a page-size style value into [low, high]; None means default."""
    if value is None:
        return default
    try:
        number = int(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Expected an integer, got {value!r}") from e
    return max(low, min(high, number))

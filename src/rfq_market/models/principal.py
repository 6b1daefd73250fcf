"""Authenticated caller identity handed in by the transport layer."""

from typing import Literal

from pydantic import BaseModel, Field

ROLE_BUYER = "buyer"
ROLE_VENDOR = "vendor"


class Principal(BaseModel):
    """Who is acting. Credentials are issued and checked outside the core."""

    id: int = Field(..., ge=1)
    role: Literal["buyer", "vendor"]

    @property
    def is_buyer(self) -> bool:
        return self.role == ROLE_BUYER

    @property
    def is_vendor(self) -> bool:
        return self.role == ROLE_VENDOR

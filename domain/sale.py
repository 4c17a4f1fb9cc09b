"""
Domain: Sale events.

Rules relevant here:
- A sale is created exactly once and never mutated or deleted (append-only ledger).
- The total is computed from the unit price at the moment of sale and stored;
  later price changes never touch it.
- The item reference is a plain identifier. It may stop resolving once the item
  is deleted; resolving it is the caller's job.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID

from .errors import ValidationError
from .time import require_utc_timestamp


class BuyerType(str, Enum):
    OWNER = "Owner"
    STAFF = "Staff"
    CUSTOMER = "Customer"

    @staticmethod
    def parse(value: Any) -> "BuyerType":
        """Resolve a buyer type; a missing value means Customer."""

        if value is None or value == "":
            return BuyerType.CUSTOMER
        if isinstance(value, BuyerType):
            return value
        try:
            return BuyerType(str(value))
        except ValueError:
            allowed = ", ".join(b.value for b in BuyerType)
            raise ValidationError(f"buyer_type must be one of {allowed}, got {value!r}") from None


@dataclass(frozen=True, slots=True)
class SaleRecord:
    """
    Immutable record of one sale against an item.

    Captures:
    - What was sold (item_id, quantity)
    - How much was charged (total)
    - How it was paid and by whom (payment_type, buyer_type)
    - When it happened (sold_at)
    """

    sale_id: UUID
    item_id: str
    quantity: int
    total: Decimal
    payment_type: str
    sold_at: datetime
    buyer_type: BuyerType = BuyerType.CUSTOMER
    request_id: Optional[str] = None  # client-supplied idempotency key

    def __post_init__(self) -> None:
        require_utc_timestamp("sold_at", self.sold_at)
        if isinstance(self.quantity, bool) or self.quantity <= 0:
            raise ValidationError("quantity must be a positive integer")
        if self.total < 0:
            raise ValidationError("total must not be negative")

"""
Domain: sellable items and their stock.

Invariants implemented here:
- name is non-empty text.
- price is a non-negative decimal unit price.
- stock is a non-negative integer at all times; any transition that would
  take it below zero is refused.

This module contains only pure domain entities/value objects: no I/O, no database, no frameworks.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

from .errors import InsufficientStockError, ValidationError
from .time import require_utc_timestamp

# Prices and totals are stored as numeric(12, 2).
CENTS = Decimal("0.01")
MAX_PRICE = Decimal("9999999999.99")


def parse_name(value: Any) -> str:
    if value is None or not isinstance(value, str) or not value.strip():
        raise ValidationError("name is required")
    return value.strip()


def parse_price(value: Any) -> Decimal:
    """
    Coerce a unit price into a Decimal.

    Accepts Decimal, int, float and numeric strings. Booleans, NaN, infinities,
    negative values and fractions of a cent are rejected. The result always
    carries two decimal places.
    """

    if value is None or value == "":
        raise ValidationError("price is required")
    if isinstance(value, bool):
        raise ValidationError("price must be a number")
    try:
        if isinstance(value, float):
            price = Decimal(str(value))
        else:
            price = Decimal(value) if isinstance(value, (Decimal, int)) else Decimal(str(value).strip())
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"price must be a number, got {value!r}") from None
    if not price.is_finite():
        raise ValidationError("price must be a finite number")
    if price < 0:
        raise ValidationError("price must not be negative")
    if price > MAX_PRICE:
        raise ValidationError(f"price must not exceed {MAX_PRICE}")
    if price != price.quantize(CENTS):
        raise ValidationError(f"price must be a whole number of cents, got {value!r}")
    return price.quantize(CENTS)


def parse_stock(value: Any) -> int:
    """Stock defaults to 0 and must be a non-negative whole number."""

    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise ValidationError("stock must be a whole number")
    if isinstance(value, int):
        stock = value
    elif isinstance(value, float) and value.is_integer():
        stock = int(value)
    elif isinstance(value, str) and value.strip().isdigit():
        stock = int(value.strip())
    else:
        raise ValidationError(f"stock must be a whole number, got {value!r}")
    if stock < 0:
        raise ValidationError("stock must not be negative")
    return stock


@dataclass(frozen=True, slots=True)
class Item:
    """
    A sellable product with a unit price and a stock count.

    Stock changes return a new instance; the original is never mutated.
    """

    item_id: str
    name: str
    price: Decimal
    stock: int = 0
    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if not self.item_id:
            raise ValidationError("item_id is required")
        if not self.name or not self.name.strip():
            raise ValidationError("name is required")
        if self.price < 0:
            raise ValidationError("price must not be negative")
        if self.stock < 0:
            raise ValidationError("stock must not be negative")
        if self.created_at is not None:
            require_utc_timestamp("created_at", self.created_at)

    def can_sell(self, quantity: int) -> bool:
        return 0 < quantity <= self.stock

    def price_for(self, quantity: int) -> Decimal:
        """Total charged for ``quantity`` units at the current unit price."""

        return (self.price * quantity).quantize(CENTS, rounding=ROUND_HALF_UP)

    def decremented(self, quantity: int) -> "Item":
        """
        Return a new Item with ``quantity`` units removed from stock.

        Raises InsufficientStockError rather than letting stock go negative.
        """

        if quantity <= 0:
            raise ValidationError("quantity must be a positive integer")
        if quantity > self.stock:
            raise InsufficientStockError(self.item_id, quantity, self.stock)
        return Item(
            item_id=self.item_id,
            name=self.name,
            price=self.price,
            stock=self.stock - quantity,
            created_at=self.created_at,
        )

"""
Tests for `domain/sale.py`.

Covers rules:
- SaleRecord.sold_at is required and must be a UTC timestamp.
- SaleRecord is immutable (frozen).
- Quantity is a positive integer and total is non-negative.
- Buyer type is one of Owner, Staff, Customer and defaults to Customer.
"""

from __future__ import annotations

from dataclasses import FrozenInstanceError
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import UUID

import pytest

from domain.errors import ValidationError
from domain.sale import BuyerType, SaleRecord

SALE_ID = UUID("00000000-0000-0000-0000-000000000020")


def _sale(**overrides) -> SaleRecord:
    values = dict(
        sale_id=SALE_ID,
        item_id="item-1",
        quantity=3,
        total=Decimal("4.50"),
        payment_type="cash",
        sold_at=datetime(2025, 1, 1, 0, 0, 0, tzinfo=timezone.utc),
    )
    values.update(overrides)
    return SaleRecord(**values)


def test_sale_record_sold_at_must_be_utc() -> None:
    """Verify sold_at enforces UTC timezone-aware timestamp."""

    with pytest.raises(ValueError):
        _sale(sold_at=datetime(2025, 1, 1, 0, 0, 0))

    with pytest.raises(ValueError):
        _sale(sold_at=datetime(2025, 1, 1, 0, 0, 0, tzinfo=timezone(timedelta(hours=2))))


def test_sale_record_is_immutable() -> None:
    """Verify SaleRecord cannot be mutated after creation (frozen entity)."""

    sale = _sale()

    with pytest.raises(FrozenInstanceError):
        sale.total = Decimal("0.00")  # type: ignore[misc]


def test_sale_record_defaults_to_customer_buyer() -> None:
    sale = _sale()

    assert sale.buyer_type is BuyerType.CUSTOMER
    assert sale.request_id is None


@pytest.mark.parametrize("quantity", [0, -1, True])
def test_sale_record_rejects_non_positive_quantity(quantity) -> None:
    """Verify quantity must be a positive integer."""

    with pytest.raises(ValidationError):
        _sale(quantity=quantity)


def test_sale_record_rejects_negative_total() -> None:
    with pytest.raises(ValidationError):
        _sale(total=Decimal("-0.01"))


def test_buyer_type_parse() -> None:
    """Verify missing buyer types default to Customer and unknown ones are rejected."""

    assert BuyerType.parse(None) is BuyerType.CUSTOMER
    assert BuyerType.parse("") is BuyerType.CUSTOMER
    assert BuyerType.parse("Owner") is BuyerType.OWNER
    assert BuyerType.parse("Staff") is BuyerType.STAFF
    assert BuyerType.parse(BuyerType.STAFF) is BuyerType.STAFF

    with pytest.raises(ValidationError):
        BuyerType.parse("Manager")

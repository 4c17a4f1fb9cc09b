"""
Tests for `domain/item.py`.

Covers rules:
- Stock is never negative; decrementing past zero raises InsufficientStockError.
- Stock transitions return new instances; the original Item is unchanged.
- Input parsing for name, price and stock; prices are whole cents.
"""

from __future__ import annotations

from dataclasses import FrozenInstanceError
from decimal import Decimal

import pytest

from domain.errors import InsufficientStockError, ValidationError
from domain.item import Item, parse_name, parse_price, parse_stock


def _item(stock: int = 10) -> Item:
    return Item(item_id="item-1", name="Soda", price=Decimal("1.50"), stock=stock)


def test_item_rejects_negative_stock() -> None:
    with pytest.raises(ValidationError):
        _item(stock=-1)


def test_item_rejects_empty_name_and_negative_price() -> None:
    with pytest.raises(ValidationError):
        Item(item_id="item-1", name="  ", price=Decimal("1.00"))

    with pytest.raises(ValidationError):
        Item(item_id="item-1", name="Soda", price=Decimal("-1.00"))


def test_decremented_returns_new_item_and_keeps_original_unchanged() -> None:
    """Verify decrementing returns a new instance and does not mutate the original."""

    item = _item(stock=10)
    after = item.decremented(3)

    assert after is not item
    assert after.stock == 7
    assert item.stock == 10
    assert after.item_id == item.item_id
    assert after.price == item.price


def test_decremented_to_zero_is_allowed() -> None:
    assert _item(stock=4).decremented(4).stock == 0


def test_decremented_past_zero_raises_insufficient_stock() -> None:
    """Verify the stock >= 0 invariant cannot be broken by a decrement."""

    item = _item(stock=7)

    with pytest.raises(InsufficientStockError) as excinfo:
        item.decremented(15)

    assert excinfo.value.requested == 15
    assert excinfo.value.available == 7
    assert item.stock == 7


def test_price_for_multiplies_unit_price() -> None:
    assert _item().price_for(3) == Decimal("4.50")


def test_price_for_is_rounded_to_cents() -> None:
    item = Item(item_id="item-1", name="Odd", price=Decimal("0.335"), stock=10)

    assert item.price_for(3) == Decimal("1.01")
    assert str(item.price_for(1)) == "0.34"


def test_item_is_immutable() -> None:
    with pytest.raises(FrozenInstanceError):
        _item().stock = 0  # type: ignore[misc]


class TestParsing:
    """Tests for raw input parsing."""

    def test_name_is_trimmed(self):
        assert parse_name("  Chips ") == "Chips"

    @pytest.mark.parametrize("value", [None, "", "   ", 42])
    def test_name_missing(self, value):
        with pytest.raises(ValidationError):
            parse_name(value)

    @pytest.mark.parametrize(
        "value, expected",
        [
            (1.5, Decimal("1.5")),
            ("1.50", Decimal("1.50")),
            (2, Decimal("2")),
            (Decimal("0.99"), Decimal("0.99")),
            (0, Decimal("0")),
        ],
    )
    def test_price_accepts_numbers(self, value, expected):
        assert parse_price(value) == expected

    @pytest.mark.parametrize(
        "value", [None, "", "abc", True, "-1", float("nan"), "Infinity", "0.333", "1.005", "10000000000"]
    )
    def test_price_rejects_missing_or_non_numeric(self, value):
        with pytest.raises(ValidationError):
            parse_price(value)

    def test_price_is_whole_cents(self):
        """Verify parsed prices carry exactly two decimal places, as stored."""

        assert str(parse_price("1.5")) == "1.50"
        assert str(parse_price("1.500")) == "1.50"
        assert str(parse_price(2)) == "2.00"
        assert str(parse_price(0.1)) == "0.10"

    def test_stock_defaults_to_zero(self):
        assert parse_stock(None) == 0
        assert parse_stock("") == 0

    @pytest.mark.parametrize("value, expected", [(5, 5), ("12", 12), (3.0, 3)])
    def test_stock_accepts_whole_numbers(self, value, expected):
        assert parse_stock(value) == expected

    @pytest.mark.parametrize("value", [-1, 2.5, "ten", False])
    def test_stock_rejects_others(self, value):
        with pytest.raises(ValidationError):
            parse_stock(value)

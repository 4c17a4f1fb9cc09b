"""
Item service: validated access to the item store.
"""

from __future__ import annotations

import logging
from typing import Any, List

from domain.errors import NotFoundError, ValidationError
from domain.item import Item, parse_name, parse_price, parse_stock
from repositories.item_repository import ItemRepository

logger = logging.getLogger(__name__)


class ItemService:
    def __init__(self, items: ItemRepository) -> None:
        self._items = items

    def list_items(self) -> List[Item]:
        return self._items.list_items()

    def create_item(self, name: Any, price: Any, stock: Any = 0) -> Item:
        """
        Add a sellable item.

        Raises:
            ValidationError: empty name, missing or non-numeric price, bad stock
        """

        item = self._items.create_item(
            name=parse_name(name),
            price=parse_price(price),
            stock=parse_stock(stock),
        )
        logger.info(
            "Item created",
            extra={"item_id": item.item_id, "item_name": item.name, "stock": item.stock},
        )
        return item

    def delete_item(self, item_id: str) -> None:
        """
        Remove an item. Past sales keep their (now dangling) reference.

        Raises:
            NotFoundError: if no item has that id
        """

        if not item_id:
            raise ValidationError("item_id is required")
        if not self._items.delete_item(item_id):
            raise NotFoundError(f"Item not found: {item_id}")
        logger.info("Item deleted", extra={"item_id": item_id})


__all__ = ["ItemService"]

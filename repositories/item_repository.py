"""
Item repository (persistence).

This module provides *only* persistence operations for the Item domain entity.
It contains no business rules about selling; it only enforces simple
persistence constraints (conditional stock updates).
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional
from uuid import UUID, uuid4

from domain.item import Item
from repositories.client import StorageHandle, execute, rows_of

# Supabase table name for items.
# Keep this aligned with db/schema.sql.
_ITEMS_TABLE: str = "items"

# PostgREST encodes `in` filters into the URL; keep batches modest.
_ID_BATCH_SIZE: int = 100


def _normalize_item_id(value: Any) -> Optional[str]:
    """
    Canonical form of an item id, or None if it cannot be one.

    item_id is a uuid column; filtering it with anything else is a Postgres
    error (22P02), not an empty result.
    """

    try:
        return str(UUID(str(value).strip()))
    except (TypeError, ValueError, AttributeError):
        return None


def _parse_utc_datetime(value: Any) -> datetime:
    """Parse a Supabase timestamp into a timezone-aware UTC datetime."""
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        text = value.replace("Z", "+00:00")
        dt = datetime.fromisoformat(text)
    else:
        raise TypeError(f"Unsupported timestamp type: {type(value)!r}")

    if dt.tzinfo is None or dt.utcoffset() is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def _row_to_item(row: Mapping[str, Any]) -> Item:
    """Convert a Supabase row into an Item."""

    return Item(
        item_id=str(row["item_id"]),
        name=str(row["name"]),
        price=Decimal(str(row["price"])),
        stock=int(row["stock"]),
        created_at=_parse_utc_datetime(row["created_at_utc"]) if row.get("created_at_utc") else None,
    )


class ItemRepository:
    """Durable collection of sellable items."""

    def __init__(self, storage: StorageHandle) -> None:
        self._storage = storage

    def _table(self) -> Any:
        return self._storage.table(_ITEMS_TABLE)

    def list_items(self) -> List[Item]:
        """
        Fetch all items in storage order.

        Returns:
            List[Item] (possibly empty)
        """

        query = self._table().select("*").order("created_at_utc").order("item_id")
        response = execute(query, "list items")
        return [_row_to_item(row) for row in rows_of(response)]

    def create_item(self, name: str, price: Decimal, stock: int = 0) -> Item:
        """
        Insert a new item with a freshly generated identifier.

        Values are expected to be validated already (see services.item_service).
        """

        item = Item(
            item_id=str(uuid4()),
            name=name,
            price=price,
            stock=stock,
            created_at=datetime.now(timezone.utc),
        )

        payload: dict[str, Any] = {
            "item_id": item.item_id,
            "name": item.name,
            "price": str(item.price),
            "stock": item.stock,
            "created_at_utc": item.created_at.isoformat() if item.created_at else None,
        }

        execute(self._table().insert(payload), "create item")
        return item

    def get_item(self, item_id: str) -> Optional[Item]:
        """
        Retrieve a single item by its ID.

        Returns:
            Item or None if not found (an id that is not a UUID is never found)
        """

        key = _normalize_item_id(item_id)
        if key is None:
            return None

        query = self._table().select("*").eq("item_id", key).limit(1)
        rows = rows_of(execute(query, "get item"))
        if not rows:
            return None
        return _row_to_item(rows[0])

    def get_items_by_ids(self, item_ids: Iterable[str]) -> Dict[str, Item]:
        """
        Resolve a set of item identifiers.

        Identifiers that no longer resolve (deleted items) are simply absent
        from the returned mapping.
        """

        wanted = sorted({key for key in map(_normalize_item_id, item_ids) if key is not None})
        resolved: Dict[str, Item] = {}
        for start in range(0, len(wanted), _ID_BATCH_SIZE):
            batch = wanted[start:start + _ID_BATCH_SIZE]
            query = self._table().select("*").in_("item_id", batch)
            for row in rows_of(execute(query, "resolve items")):
                item = _row_to_item(row)
                resolved[item.item_id] = item
        return resolved

    def delete_item(self, item_id: str) -> bool:
        """
        Delete an item. Sales referencing it are left untouched.

        Returns:
            True if a row was deleted, False if no item had that id
        """

        key = _normalize_item_id(item_id)
        if key is None:
            return False

        query = self._table().delete().eq("item_id", key)
        return bool(rows_of(execute(query, "delete item")))

    def compare_and_set_stock(self, item_id: str, expected: int, new: int) -> bool:
        """
        Set stock to `new` only if the stored stock still equals `expected`.

        Requirements:
        - Must only update if the row still holds the value the caller read.
        - `new` must not be negative.

        Returns:
            True if the row was updated, False if the item is gone or its stock
            changed since it was read
        """

        if new < 0:
            raise ValueError("stock must not be negative")

        key = _normalize_item_id(item_id)
        if key is None:
            return False

        query = (
            self._table()
            .update({"stock": new})
            .eq("item_id", key)
            .eq("stock", expected)
        )
        updated_rows = rows_of(execute(query, "update stock"))
        return bool(updated_rows)


__all__ = ["ItemRepository"]

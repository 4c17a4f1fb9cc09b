"""
Sale repository (persistence).

This module provides *only* persistence operations for the SaleRecord domain
entity. The ledger is append-only: records are inserted and fetched, never
updated or deleted. It does not enforce business rules (e.g., stock checks).
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Iterator, Mapping, Optional
from uuid import UUID

from domain.errors import DuplicateSaleError, StorageUnavailableError
from domain.sale import BuyerType, SaleRecord
from domain.time import require_utc_timestamp
from repositories.client import UNIQUE_VIOLATION, StorageHandle, execute, rows_of

# Supabase table name for sale records.
# Keep this aligned with db/schema.sql.
_SALES_TABLE: str = "sales"

DEFAULT_PAGE_SIZE: int = 500


def _to_iso_utc(dt: datetime, *, name: str) -> str:
    """Serialize a UTC datetime to ISO-8601 (timezone-aware, offset 0)."""

    require_utc_timestamp(name, dt)
    return dt.astimezone(timezone.utc).isoformat()


def _parse_utc_datetime(value: Any) -> datetime:
    """
    Parse a Supabase timestamp into a timezone-aware UTC datetime.

    Supabase commonly returns ISO-8601 strings, sometimes with a trailing 'Z'.
    """

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    else:
        raise TypeError(f"Unsupported timestamp type: {type(value)!r}")

    if dt.tzinfo is None or dt.utcoffset() is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _row_to_sale(row: Mapping[str, Any]) -> SaleRecord:
    """Convert a Supabase row into a SaleRecord."""

    return SaleRecord(
        sale_id=UUID(str(row["sale_id"])),
        item_id=str(row["item_id"]),
        quantity=int(row["quantity"]),
        total=Decimal(str(row["total"])),
        payment_type=str(row["payment_type"]),
        buyer_type=BuyerType.parse(row.get("buyer_type")),
        sold_at=_parse_utc_datetime(row["sold_at_utc"]),
        request_id=row.get("request_id"),
    )


class SaleRepository:
    """Append-only ledger of sale records."""

    def __init__(self, storage: StorageHandle, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        if page_size < 1:
            raise ValueError("page_size must be >= 1")
        self._storage = storage
        self._page_size = page_size

    def _table(self) -> Any:
        return self._storage.table(_SALES_TABLE)

    def append_sale(self, record: SaleRecord) -> SaleRecord:
        """
        Insert a new sale event.

        Raises:
            DuplicateSaleError: if record.request_id is already in the ledger
            StorageUnavailableError: on any other storage failure
        """

        payload: dict[str, Any] = {
            "sale_id": str(record.sale_id),
            "item_id": record.item_id,
            "quantity": record.quantity,
            "total": str(record.total),
            "payment_type": record.payment_type,
            "buyer_type": record.buyer_type.value,
            "sold_at_utc": _to_iso_utc(record.sold_at, name="sold_at"),
            "request_id": record.request_id,
        }

        try:
            execute(self._table().insert(payload), "record sale")
        except StorageUnavailableError as e:
            if e.code == UNIQUE_VIOLATION and record.request_id:
                raise DuplicateSaleError(record.request_id) from e
            raise

        return record

    def get_sale_by_request_id(self, request_id: str) -> Optional[SaleRecord]:
        """
        Retrieve the sale recorded for a client request id.

        Returns:
            SaleRecord or None if no sale carries that request id
        """

        query = self._table().select("*").eq("request_id", request_id).limit(1)
        rows = rows_of(execute(query, "get sale"))
        if not rows:
            return None
        return _row_to_sale(rows[0])

    def query_sales_in_range(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Iterator[SaleRecord]:
        """
        Lazily iterate sales whose sold_at lies within [start, end].

        Both bounds are inclusive and optional; with neither given every sale is
        returned. Results are ordered by sold_at, then sale_id, and fetched one
        page at a time.
        """

        start_iso = _to_iso_utc(start, name="start") if start is not None else None
        end_iso = _to_iso_utc(end, name="end") if end is not None else None

        offset = 0
        while True:
            query = self._table().select("*")
            if start_iso is not None:
                query = query.gte("sold_at_utc", start_iso)
            if end_iso is not None:
                query = query.lte("sold_at_utc", end_iso)
            query = (
                query.order("sold_at_utc")
                .order("sale_id")
                .range(offset, offset + self._page_size - 1)
            )

            rows = rows_of(execute(query, "list sales"))
            for row in rows:
                yield _row_to_sale(row)

            if len(rows) < self._page_size:
                return
            offset += self._page_size


__all__ = ["SaleRepository", "DEFAULT_PAGE_SIZE"]

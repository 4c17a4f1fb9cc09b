"""
Sales report aggregation.

Builds a date-range sales report from the ledger and hands it to a renderer.

Rules:
- The window is inclusive of both whole days: [start 00:00:00.000, end 23:59:59.999]
  in the report timezone. Either side may be left open.
- Sales whose item has been deleted are reported as "Deleted Item".
- An empty result is an error (EmptyResultError) for every output format.

The ledger is read page by page, but rows are materialized in memory before
rendering. Very large windows are bounded by available memory.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import tzinfo
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from domain.errors import EmptyResultError, ValidationError
from domain.sale import BuyerType, SaleRecord
from domain.time import DateLike, day_bounds, format_local, resolve_timezone
from repositories.item_repository import ItemRepository
from repositories.sale_repository import SaleRepository

logger = logging.getLogger(__name__)

DELETED_ITEM_LABEL = "Deleted Item"

REPORT_COLUMNS = ("Item", "Quantity", "Total ($)", "Payment Type", "Buyer Type", "Date")

_CENTS = Decimal("0.01")


class ReportFormat(str, Enum):
    EXCEL = "excel"
    PDF = "pdf"

    @staticmethod
    def parse(value: Any) -> "ReportFormat":
        if isinstance(value, ReportFormat):
            return value
        try:
            return ReportFormat(str(value).lower())
        except ValueError:
            raise ValidationError(f"format must be 'excel' or 'pdf', got {value!r}") from None


@dataclass(frozen=True, slots=True)
class ReportRow:
    """One sale, flattened for output."""
    item_name: str
    quantity: int
    total: str  # fixed two decimals, e.g. "4.50"
    payment_type: str
    buyer_type: str
    date: str  # human-readable local time

    def as_tuple(self) -> tuple:
        return (self.item_name, self.quantity, self.total, self.payment_type, self.buyer_type, self.date)


@dataclass(frozen=True, slots=True)
class ReportSummary:
    """Totals over a set of report rows."""
    row_count: int
    total_quantity: int
    revenue: Decimal
    revenue_by_buyer_type: Dict[str, Decimal] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ReportDocument:
    """A rendered report ready for download."""
    content: bytes
    media_type: str
    filename: str
    row_count: int


def format_money(value: Decimal) -> str:
    return str(value.quantize(_CENTS, rounding=ROUND_HALF_UP))


def project_sale(sale: SaleRecord, item_name: Optional[str], tz: tzinfo) -> ReportRow:
    """Flatten a sale into a report row; a missing item name means the item was deleted."""

    return ReportRow(
        item_name=item_name if item_name is not None else DELETED_ITEM_LABEL,
        quantity=sale.quantity,
        total=format_money(sale.total),
        payment_type=sale.payment_type,
        buyer_type=sale.buyer_type.value,
        date=format_local(sale.sold_at, tz),
    )


def summarize(rows: List[ReportRow]) -> ReportSummary:
    """Row count, units sold, revenue and revenue per buyer type."""

    by_buyer: Dict[str, Decimal] = {b.value: Decimal("0.00") for b in BuyerType}
    revenue = Decimal("0.00")
    quantity = 0
    for row in rows:
        amount = Decimal(row.total)
        revenue += amount
        quantity += row.quantity
        by_buyer[row.buyer_type] = by_buyer.get(row.buyer_type, Decimal("0.00")) + amount
    return ReportSummary(
        row_count=len(rows),
        total_quantity=quantity,
        revenue=revenue,
        revenue_by_buyer_type=by_buyer,
    )


class ReportService:
    """
    Example:
        service = ReportService(ItemRepository(storage), SaleRepository(storage))
        document = service.generate_report("excel", "2025-01-01", "2025-01-31")
        Path(document.filename).write_bytes(document.content)
    """

    def __init__(
        self,
        items: ItemRepository,
        sales: SaleRepository,
        *,
        timezone_name: str = "UTC",
    ) -> None:
        self._items = items
        self._sales = sales
        self._tz = resolve_timezone(timezone_name)

    def build_report_rows(self, start_date: DateLike = None, end_date: DateLike = None) -> List[ReportRow]:
        """
        Resolve the sales in the window and project them into rows.

        Raises:
            ValidationError: malformed dates or start after end
        """

        lower, upper = day_bounds(start_date, end_date, self._tz)
        sales = list(self._sales.query_sales_in_range(lower, upper))
        if not sales:
            return []

        items = self._items.get_items_by_ids(sale.item_id for sale in sales)
        rows = []
        for sale in sales:
            item = items.get(sale.item_id)
            rows.append(project_sale(sale, item.name if item is not None else None, self._tz))
        return rows

    def render(self, report_format: Any, rows: List[ReportRow]) -> ReportDocument:
        """
        Render already-built rows.

        Raises:
            ValidationError: unknown format
            EmptyResultError: no rows
        """

        # report_renderers imports this module.
        from services.report_renderers import render_excel, render_pdf

        fmt = ReportFormat.parse(report_format)
        if not rows:
            raise EmptyResultError("No sales found for selected range")
        if fmt is ReportFormat.EXCEL:
            return render_excel(rows, summarize(rows))
        return render_pdf(rows)

    def generate_report(
        self,
        report_format: Any,
        start_date: DateLike = None,
        end_date: DateLike = None,
    ) -> ReportDocument:
        """
        Render the sales report for the window.

        Raises:
            ValidationError: unknown format or bad dates
            EmptyResultError: no sales in the window
        """

        fmt = ReportFormat.parse(report_format)
        rows = self.build_report_rows(start_date, end_date)
        document = self.render(fmt, rows)

        logger.info(
            "Report generated",
            extra={
                "report_format": fmt.value,
                "start_date": str(start_date) if start_date else None,
                "end_date": str(end_date) if end_date else None,
                "row_count": len(rows),
            },
        )
        return document


__all__ = [
    "DELETED_ITEM_LABEL",
    "REPORT_COLUMNS",
    "ReportDocument",
    "ReportFormat",
    "ReportRow",
    "ReportService",
    "ReportSummary",
    "format_money",
    "project_sale",
    "summarize",
]

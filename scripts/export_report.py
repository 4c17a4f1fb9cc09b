#!/usr/bin/env python3
"""
Sales Report Export Script

Writes the sales report for a date range to a file, without going through the
HTTP API.

Usage:
    python export_report.py --format excel --output sales.xlsx
    python export_report.py --format pdf --start 2025-01-01 --end 2025-01-31 --output january.pdf
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import configure_logging, load_settings
from domain.errors import EmptyResultError, VendingError
from repositories.client import StorageHandle
from repositories.item_repository import ItemRepository
from repositories.sale_repository import SaleRepository
from services.report_service import ReportService, summarize


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Export the sales report to an Excel or PDF file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Every sale, as a spreadsheet
  python export_report.py --format excel --output all_sales.xlsx

  # One month, as a PDF
  python export_report.py --format pdf --start 2025-01-01 --end 2025-01-31 --output january.pdf
        """
    )

    parser.add_argument(
        "--format",
        "-f",
        choices=["excel", "pdf"],
        default="excel",
        help="Output format (default: excel)"
    )

    parser.add_argument(
        "--start",
        "-s",
        help="First day to include, YYYY-MM-DD"
    )

    parser.add_argument(
        "--end",
        "-e",
        help="Last day to include (whole day), YYYY-MM-DD"
    )

    parser.add_argument(
        "--output",
        "-o",
        help="Output path (default: sales_report.xlsx / sales_report.pdf)"
    )

    return parser


def main(argv: Optional[List[str]] = None, storage: Optional[StorageHandle] = None) -> int:
    """
    Main entry point for the CLI.

    A storage handle passed in stays open; one opened here is closed on exit.
    """
    args = build_parser().parse_args(argv)
    owned: Optional[StorageHandle] = None

    try:
        if storage is None:
            settings = load_settings()
            configure_logging(settings.log_level)
            owned = StorageHandle(settings.supabase_url, settings.supabase_key)
            storage = owned.connect()
            timezone_name = settings.report_timezone
            page_size = settings.ledger_page_size
        else:
            timezone_name = "UTC"
            page_size = 500

        items = ItemRepository(storage)
        sales = SaleRepository(storage, page_size=page_size)
        service = ReportService(items, sales, timezone_name=timezone_name)

        print("Building sales report...")
        print(f"  Start: {args.start or 'None (open)'}")
        print(f"  End:   {args.end or 'None (open)'}")
        print()

        rows = service.build_report_rows(args.start, args.end)
        if not rows:
            print("No sales found for selected range")
            return 1

        document = service.render(args.format, rows)
        output_path = Path(args.output or document.filename)
        output_path.write_bytes(document.content)

        summary = summarize(rows)
        print("=" * 60)
        print("REPORT SUMMARY")
        print("=" * 60)
        print(f"Sales exported: {summary.row_count}")
        print(f"Units sold:     {summary.total_quantity}")
        print(f"Revenue:        ${summary.revenue:.2f}")
        for buyer_type, amount in summary.revenue_by_buyer_type.items():
            print(f"  {buyer_type + ':':<10} ${amount:.2f}")
        print()
        print(f"Output file: {output_path}")
        print("=" * 60)

        return 0

    except EmptyResultError:
        print("No sales found for selected range")
        return 1

    except (VendingError, RuntimeError) as e:
        print(f"\nERROR: {e}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\n\nExport interrupted by user")
        return 130

    finally:
        if owned is not None:
            owned.close()


if __name__ == "__main__":
    sys.exit(main())

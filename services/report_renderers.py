"""
Report renderers: spreadsheet (openpyxl) and paginated document (reportlab).

Security:
- Spreadsheet text cells are sanitized to prevent formula execution when the
  file is opened in Excel/Sheets. Stripped characters are logged.
"""

from __future__ import annotations

import logging
from io import BytesIO
from typing import List, Optional

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from reportlab.lib.pagesizes import letter
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas

from services.report_service import (
    REPORT_COLUMNS,
    ReportDocument,
    ReportRow,
    ReportSummary,
    format_money,
)

logger = logging.getLogger(__name__)

REPORT_TITLE = "Sales Report"

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
PDF_MEDIA_TYPE = "application/pdf"

# Column widths in characters, in REPORT_COLUMNS order.
_COLUMN_WIDTHS = (25, 10, 10, 15, 15, 25)

_PDF_MARGIN = 54
_PDF_TITLE_SIZE = 18
_PDF_BODY_SIZE = 12
_PDF_LINE_GAP = 4
_PDF_FONT = "Helvetica"

_FORMULA_PREFIXES = {"=", "+", "-", "@", "\t", "\r"}


def sanitize_cell(value: Optional[str], field_name: str = "unknown") -> str:
    """
    Strip leading characters that can trigger formula execution in Excel/Sheets:
    =, +, -, @, tab, carriage return

    Example:
        sanitize_cell("=HYPERLINK(...)", "item_name")
        # Returns "HYPERLINK(...)" and logs a warning

        sanitize_cell("Soda", "item_name")
        # Returns "Soda" (unchanged, no logging)
    """
    if value is None or value == "":
        return ""

    text = str(value).strip()
    original_text = text

    stripped_chars = []
    while text and text[0] in _FORMULA_PREFIXES:
        stripped_chars.append(text[0])
        text = text[1:]

    if stripped_chars:
        logger.warning(
            f"Formula character(s) stripped from report field '{field_name}'",
            extra={
                "field_name": field_name,
                "stripped_characters": "".join(stripped_chars),
                "original_value": original_text[:100],
                "sanitized_value": text[:100],
                "modification_type": "formula_injection_prevention",
            },
        )

    return text


def pdf_line(row: ReportRow) -> str:
    """One sale as a report line: '<item> | Qty: <q> | $<total> | <payment> | <buyer> | <date>'."""

    return (
        f"{row.item_name} | Qty: {row.quantity} | ${row.total} | "
        f"{row.payment_type} | {row.buyer_type} | {row.date}"
    )


def render_excel(rows: List[ReportRow], summary: Optional[ReportSummary] = None) -> ReportDocument:
    """
    Render rows into an .xlsx workbook with a single "Sales Report" sheet.

    The header row names the six report columns. When a summary is given a
    totals row follows the data after one blank row.
    """

    workbook = Workbook()
    sheet = workbook.active
    sheet.title = REPORT_TITLE

    sheet.append(list(REPORT_COLUMNS))
    for cell in sheet[1]:
        cell.font = Font(bold=True)
    for index, width in enumerate(_COLUMN_WIDTHS, start=1):
        sheet.column_dimensions[get_column_letter(index)].width = width

    for row in rows:
        sheet.append([
            sanitize_cell(row.item_name, "item_name"),
            row.quantity,
            row.total,
            sanitize_cell(row.payment_type, "payment_type"),
            row.buyer_type,
            row.date,
        ])

    if summary is not None:
        sheet.append([])
        sheet.append(["Total", summary.total_quantity, format_money(summary.revenue)])
        for cell in sheet[sheet.max_row]:
            cell.font = Font(bold=True)

    output = BytesIO()
    workbook.save(output)

    return ReportDocument(
        content=output.getvalue(),
        media_type=XLSX_MEDIA_TYPE,
        filename="sales_report.xlsx",
        row_count=len(rows),
    )


def render_pdf(rows: List[ReportRow], *, compress: bool = True) -> ReportDocument:
    """
    Render rows into a paginated PDF: a centered title, then one line per sale.

    Lines wider than the page wrap; a new page starts when the current one is full.
    """

    output = BytesIO()
    pdf = canvas.Canvas(output, pagesize=letter, pageCompression=1 if compress else 0)
    pdf.setTitle(REPORT_TITLE)

    width, height = letter
    usable_width = width - 2 * _PDF_MARGIN
    leading = _PDF_BODY_SIZE + _PDF_LINE_GAP

    y = height - _PDF_MARGIN
    pdf.setFont(_PDF_FONT, _PDF_TITLE_SIZE)
    pdf.drawCentredString(width / 2, y, REPORT_TITLE)
    y -= _PDF_TITLE_SIZE * 2

    pdf.setFont(_PDF_FONT, _PDF_BODY_SIZE)
    for row in rows:
        for chunk in simpleSplit(pdf_line(row), _PDF_FONT, _PDF_BODY_SIZE, usable_width):
            if y < _PDF_MARGIN:
                pdf.showPage()
                pdf.setFont(_PDF_FONT, _PDF_BODY_SIZE)
                y = height - _PDF_MARGIN
            pdf.drawString(_PDF_MARGIN, y, chunk)
            y -= leading
        y -= _PDF_LINE_GAP

    pdf.save()

    return ReportDocument(
        content=output.getvalue(),
        media_type=PDF_MEDIA_TYPE,
        filename="sales_report.pdf",
        row_count=len(rows),
    )


__all__ = [
    "REPORT_TITLE",
    "pdf_line",
    "render_excel",
    "render_pdf",
    "sanitize_cell",
]

"""
Reports API Endpoints.

Download the sales report for a date range as a spreadsheet or a PDF.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from fastapi.responses import JSONResponse

from api.dependencies import get_report_service
from domain.errors import EmptyResultError, StorageUnavailableError, ValidationError
from services.report_service import ReportService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/reports/{report_format}",
    summary="Download Sales Report",
    description="Download the sales report as 'excel' (.xlsx) or 'pdf'.",
    response_class=Response
)
def download_report(
    report_format: str,
    start: Optional[str] = Query(None, description="First day, inclusive (YYYY-MM-DD)"),
    end: Optional[str] = Query(None, description="Last day, inclusive (YYYY-MM-DD)"),
    service: ReportService = Depends(get_report_service),
):
    """
    Download a sales report.

    Both days are included in full: `end` covers sales up to 23:59:59.999.
    Without `start`/`end` every sale is included.

    **Example usage:**
    ```
    GET /api/reports/excel?start=2025-01-01&end=2025-01-31
    GET /api/reports/pdf
    ```

    **No data:**
    `404 {"message": "No sales found for selected range"}`
    """
    try:
        document = service.generate_report(report_format, start, end)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except EmptyResultError as e:
        return JSONResponse(status_code=404, content={"message": str(e)})
    except StorageUnavailableError as e:
        logger.exception("Failed to generate report")
        raise HTTPException(status_code=500, detail=f"Failed to generate report: {e}")
    except Exception as e:
        logger.exception("Failed to render report")
        raise HTTPException(status_code=500, detail=f"Failed to render report: {e}")

    return Response(
        content=document.content,
        media_type=document.media_type,
        headers={
            "Content-Disposition": f"attachment; filename={document.filename}"
        }
    )

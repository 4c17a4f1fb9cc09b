"""
Sales API Endpoints.

Endpoint for recording a sale against an item's stock.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_sale_service
from api.models import SaleCreateRequest, SaleRecordedResponse, SaleResponse
from domain.errors import (
    ConcurrentUpdateError,
    InsufficientStockError,
    NotFoundError,
    StorageUnavailableError,
    ValidationError,
)
from services.sale_service import SaleService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/sales",
    response_model=SaleRecordedResponse,
    summary="Record Sale",
    description="Decrement an item's stock and append the sale to the ledger as one unit."
)
def record_sale(request: SaleCreateRequest, service: SaleService = Depends(get_sale_service)):
    """
    Record a sale.

    **Process:**
    1. Validates item id, quantity (positive integer) and payment type
    2. Checks the item exists and has enough stock
    3. Decrements stock only if it has not changed since it was read
    4. Appends the sale; if that fails the stock is restored

    **Retries:**
    Send a `requestId` to make the call safe to retry: a repeated id returns
    the original sale without touching stock again.

    **Example request:**
    ```json
    {"itemId": "...", "quantity": 3, "paymentType": "cash", "buyerType": "Customer"}
    ```

    **Success response:**
    ```json
    {
      "message": "Sale recorded successfully",
      "sale": {"id": "...", "itemId": "...", "quantity": 3, "total": "4.50",
               "paymentType": "cash", "buyerType": "Customer", "date": "2025-01-01T12:00:00Z"}
    }
    ```
    """
    try:
        sale = service.record_sale(
            item_id=request.item_id,
            quantity=request.quantity,
            payment_type=request.payment_type,
            buyer_type=request.buyer_type,
            request_id=request.request_id,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except InsufficientStockError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ConcurrentUpdateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except StorageUnavailableError as e:
        logger.exception("Failed to record sale")
        raise HTTPException(status_code=500, detail=f"Failed to record sale: {e}")

    return SaleRecordedResponse(
        message="Sale recorded successfully",
        sale=SaleResponse.from_domain(sale),
    )

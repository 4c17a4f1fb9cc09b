"""
Items API Endpoints.

Endpoints for listing, adding and removing sellable items.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from api.dependencies import get_item_service
from api.models import ItemCreateRequest, ItemResponse, MessageResponse
from domain.errors import NotFoundError, StorageUnavailableError, ValidationError
from services.item_service import ItemService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/items",
    response_model=List[ItemResponse],
    summary="List Items",
    description="List every sellable item with its price and remaining stock."
)
def list_items(service: ItemService = Depends(get_item_service)):
    """
    List all items in storage order.

    **Example usage:**
    - `GET /api/items`
    """
    try:
        return [ItemResponse.from_domain(item) for item in service.list_items()]
    except StorageUnavailableError as e:
        logger.exception("Failed to fetch items")
        raise HTTPException(status_code=500, detail=f"Failed to fetch items: {e}")


@router.post(
    "/items",
    response_model=ItemResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add Item",
    description="Add a sellable item. Stock defaults to 0."
)
def create_item(request: ItemCreateRequest, service: ItemService = Depends(get_item_service)):
    """
    Add an item.

    **Example request:**
    ```json
    {"name": "Soda", "price": "1.50", "stock": 10}
    ```
    """
    try:
        item = service.create_item(request.name, request.price, request.stock)
        return ItemResponse.from_domain(item)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StorageUnavailableError as e:
        logger.exception("Failed to add item")
        raise HTTPException(status_code=500, detail=f"Failed to add item: {e}")


@router.delete(
    "/items/{item_id}",
    response_model=MessageResponse,
    summary="Delete Item",
    description="Delete an item. Past sales of it stay in the ledger and report as 'Deleted Item'."
)
def delete_item(item_id: str, service: ItemService = Depends(get_item_service)):
    try:
        service.delete_item(item_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StorageUnavailableError as e:
        logger.exception("Failed to delete item")
        raise HTTPException(status_code=500, detail=f"Failed to delete item: {e}")

    return MessageResponse(message="Item deleted successfully")

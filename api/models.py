"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.
JSON field names are camelCase (itemId, paymentType, ...).
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from domain.item import Item
from domain.sale import SaleRecord


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# Item Models
# ============================================================================

class ItemCreateRequest(_CamelModel):
    """Request to add an item. Values are validated by the item service."""
    name: Optional[str] = None
    price: Optional[Decimal | str] = None
    stock: Optional[int] = Field(None, description="Initial stock (default 0)")

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {"name": "Soda", "price": "1.50", "stock": 10}
        },
    )


class ItemResponse(_CamelModel):
    """Single item in API response."""
    id: str
    name: str
    price: Decimal
    stock: int
    created_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, item: Item) -> "ItemResponse":
        return cls(
            id=item.item_id,
            name=item.name,
            price=item.price,
            stock=item.stock,
            created_at=item.created_at,
        )


class MessageResponse(BaseModel):
    message: str


# ============================================================================
# Sale Models
# ============================================================================

class SaleCreateRequest(_CamelModel):
    """Request to record a sale."""
    item_id: Optional[str] = None
    quantity: Optional[int] = None
    payment_type: Optional[str] = None
    buyer_type: Optional[str] = Field(None, description="Owner, Staff or Customer (default)")
    request_id: Optional[str] = Field(
        None,
        description="Idempotency key; resubmitting the same key returns the original sale",
    )

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "itemId": "0b6a4f8e-4f7c-4a55-9d1c-2f0d8f1f2a10",
                "quantity": 3,
                "paymentType": "cash",
                "buyerType": "Customer",
                "requestId": "kiosk-1-000123",
            }
        },
    )


class SaleResponse(_CamelModel):
    """Single sale in API response."""
    id: UUID
    item_id: str
    quantity: int
    total: Decimal
    payment_type: str
    buyer_type: str
    date: datetime
    request_id: Optional[str] = None

    @classmethod
    def from_domain(cls, sale: SaleRecord) -> "SaleResponse":
        return cls(
            id=sale.sale_id,
            item_id=sale.item_id,
            quantity=sale.quantity,
            total=sale.total,
            payment_type=sale.payment_type,
            buyer_type=sale.buyer_type.value,
            date=sale.sold_at,
            request_id=sale.request_id,
        )


class SaleRecordedResponse(BaseModel):
    """Response after recording a sale."""
    message: str
    sale: SaleResponse


# ============================================================================
# Health Models
# ============================================================================

class HealthResponse(BaseModel):
    status: str
    version: str
    service: str
    storage_connected: bool


__all__ = [
    "HealthResponse",
    "ItemCreateRequest",
    "ItemResponse",
    "MessageResponse",
    "SaleCreateRequest",
    "SaleRecordedResponse",
    "SaleResponse",
]

"""
Sale transaction processor.

Handles:
- Input validation for a sale
- Stock check and decrement as one conditional (compare-and-set) update
- Ledger append, with a compensating stock restore if the append fails
- Duplicate-submission protection through an optional client request id

Stock never goes negative: the decrement only applies if the stored stock still
equals the value the check was made against, so two concurrent sales of the
same item cannot both pass the check against the same stock.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Optional
from uuid import uuid4

from domain.errors import (
    ConcurrentUpdateError,
    DuplicateSaleError,
    InsufficientStockError,
    NotFoundError,
    SaleRecoveryError,
    StorageUnavailableError,
    ValidationError,
)
from domain.item import MAX_PRICE, Item
from domain.sale import BuyerType, SaleRecord
from repositories.item_repository import ItemRepository
from repositories.sale_repository import SaleRepository

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS: int = 5


@dataclass(frozen=True, slots=True)
class SaleRequest:
    """A validated request to sell `quantity` units of an item."""
    item_id: str
    quantity: int
    payment_type: str
    buyer_type: BuyerType = BuyerType.CUSTOMER
    request_id: Optional[str] = None


def validate_sale_request(
    item_id: Any,
    quantity: Any,
    payment_type: Any,
    buyer_type: Any = None,
    request_id: Any = None,
) -> SaleRequest:
    """
    Validate raw sale input.

    Raises:
        ValidationError: missing item id or payment type, quantity that is not
            a positive integer, unknown buyer type
    """

    if item_id is None or not str(item_id).strip():
        raise ValidationError("item_id is required")
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError("quantity must be a positive integer")
    if quantity <= 0:
        raise ValidationError("quantity must be a positive integer")
    if payment_type is None or not str(payment_type).strip():
        raise ValidationError("payment_type is required")
    if request_id is not None and not str(request_id).strip():
        request_id = None

    return SaleRequest(
        item_id=str(item_id).strip(),
        quantity=quantity,
        payment_type=str(payment_type).strip(),
        buyer_type=BuyerType.parse(buyer_type),
        request_id=str(request_id).strip() if request_id is not None else None,
    )


def _check_replay(request: SaleRequest, existing: SaleRecord) -> SaleRecord:
    """Return the stored sale if it is the one this request describes."""

    if (
        existing.item_id.lower() != request.item_id.lower()
        or existing.quantity != request.quantity
        or existing.payment_type != request.payment_type
        or existing.buyer_type is not request.buyer_type
    ):
        raise ValidationError(
            f"request_id {request.request_id} was already used for a different sale"
        )
    return existing


class SaleService:
    """
    Records sales against the item store and the sale ledger.

    Example:
        service = SaleService(ItemRepository(storage), SaleRepository(storage))
        sale = service.record_sale(item.item_id, 3, "cash", "Customer")
    """

    def __init__(
        self,
        items: ItemRepository,
        sales: SaleRepository,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self._items = items
        self._sales = sales
        self._max_attempts = max_attempts
        self._clock = clock

    def record_sale(
        self,
        item_id: Any,
        quantity: Any,
        payment_type: Any,
        buyer_type: Any = None,
        request_id: Any = None,
    ) -> SaleRecord:
        """
        Sell `quantity` units of an item.

        Process:
        1. Validate input
        2. Return the existing sale if this request id was already recorded
           (a different sale under the same request id is a ValidationError)
        3. Read the item and check stock
        4. Decrement stock with a compare-and-set on the value read (retry on race)
        5. Append the sale to the ledger; restore stock if that fails

        Returns:
            The created SaleRecord (or the earlier one for a repeated request id)

        Raises:
            ValidationError, NotFoundError, InsufficientStockError,
            ConcurrentUpdateError, StorageUnavailableError, SaleRecoveryError
        """

        request = validate_sale_request(item_id, quantity, payment_type, buyer_type, request_id)

        if request.request_id:
            existing = self._sales.get_sale_by_request_id(request.request_id)
            if existing is not None:
                logger.info(
                    "Duplicate sale submission ignored",
                    extra={"request_id": request.request_id, "sale_id": str(existing.sale_id)},
                )
                return _check_replay(request, existing)

        item = self._reserve_stock(request)

        sale = SaleRecord(
            sale_id=uuid4(),
            item_id=item.item_id,
            quantity=request.quantity,
            total=item.price_for(request.quantity),
            payment_type=request.payment_type,
            buyer_type=request.buyer_type,
            sold_at=self._clock(),
            request_id=request.request_id,
        )

        try:
            self._sales.append_sale(sale)
        except DuplicateSaleError:
            # Same request id committed concurrently; undo our decrement and
            # hand back the sale that won.
            self._restore_stock(request)
            existing = self._sales.get_sale_by_request_id(request.request_id or "")
            if existing is None:
                raise StorageUnavailableError(
                    f"Sale for request {request.request_id} reported as duplicate but not found"
                ) from None
            return _check_replay(request, existing)
        except StorageUnavailableError:
            self._restore_stock(request)
            raise

        logger.info(
            "Sale recorded",
            extra={
                "sale_id": str(sale.sale_id),
                "item_id": sale.item_id,
                "quantity": sale.quantity,
                "total": str(sale.total),
                "buyer_type": sale.buyer_type.value,
            },
        )
        return sale

    def _reserve_stock(self, request: SaleRequest) -> Item:
        """
        Decrement stock by request.quantity with compare-and-set.

        Returns the item as read by the winning attempt (its price is the one
        charged).
        """

        for attempt in range(1, self._max_attempts + 1):
            item = self._items.get_item(request.item_id)
            if item is None:
                raise NotFoundError(f"Item not found: {request.item_id}")
            if item.stock < request.quantity:
                raise InsufficientStockError(item.item_id, request.quantity, item.stock)
            if item.price_for(request.quantity) > MAX_PRICE:
                raise ValidationError(f"sale total must not exceed {MAX_PRICE}")

            remaining = item.decremented(request.quantity)
            if self._items.compare_and_set_stock(item.item_id, expected=item.stock, new=remaining.stock):
                return item

            logger.info(
                "Stock changed during sale, retrying",
                extra={"item_id": item.item_id, "attempt": attempt},
            )

        raise ConcurrentUpdateError(
            f"Stock for item {request.item_id} changed {self._max_attempts} times during the sale"
        )

    def _restore_stock(self, request: SaleRequest) -> None:
        """
        Give back a reserved quantity after a failed ledger append.

        Raises SaleRecoveryError when the stock cannot be restored, so the
        mismatch between stock and ledger is never silent.
        """

        context = {
            "item_id": request.item_id,
            "quantity": request.quantity,
            "request_id": request.request_id,
        }

        try:
            for _ in range(self._max_attempts):
                item = self._items.get_item(request.item_id)
                if item is None:
                    # Deleted in the meantime; nothing left to restore onto.
                    logger.warning("Item deleted before stock could be restored", extra=context)
                    return
                if self._items.compare_and_set_stock(
                    item.item_id, expected=item.stock, new=item.stock + request.quantity
                ):
                    logger.warning("Stock restored after failed sale", extra=context)
                    return
        except StorageUnavailableError as e:
            logger.critical("Stock restore failed; manual reconciliation needed", extra=context)
            raise SaleRecoveryError(request.item_id, request.quantity, request.request_id) from e

        logger.critical("Stock restore kept conflicting; manual reconciliation needed", extra=context)
        raise SaleRecoveryError(request.item_id, request.quantity, request.request_id)


__all__ = ["SaleRequest", "SaleService", "validate_sale_request"]

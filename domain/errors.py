"""
Domain: error taxonomy.

Every failure the core can report to a caller is one of these types. The HTTP
boundary maps them to status codes; nothing in the domain knows about HTTP.
"""

from __future__ import annotations

from typing import Optional


class VendingError(Exception):
    """Base class for all vending tracker errors."""


class ValidationError(VendingError, ValueError):
    """Missing or malformed input. Never retried automatically."""


class NotFoundError(VendingError):
    """A referenced entity does not exist."""


class InsufficientStockError(VendingError):
    """A sale asked for more units than the item has in stock."""

    def __init__(self, item_id: str, requested: int, available: int) -> None:
        self.item_id = item_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Not enough stock available for item {item_id}: "
            f"requested {requested}, available {available}"
        )


class EmptyResultError(VendingError):
    """No sales matched the requested report window."""


class ConcurrentUpdateError(VendingError):
    """Stock kept changing underneath a sale; the caller may retry with a request id."""


class DuplicateSaleError(VendingError):
    """A sale with the same request id is already in the ledger."""

    def __init__(self, request_id: str) -> None:
        self.request_id = request_id
        super().__init__(f"Sale already recorded for request {request_id}")


class StorageUnavailableError(VendingError, RuntimeError):
    """The document store failed or could not be reached."""

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        self.code = code  # database error code, when the store reported one
        super().__init__(message)


class SaleRecoveryError(StorageUnavailableError):
    """
    Stock was decremented but the sale could not be written and the stock
    could not be restored. Requires manual reconciliation.
    """

    def __init__(self, item_id: str, quantity: int, request_id: Optional[str] = None) -> None:
        self.item_id = item_id
        self.quantity = quantity
        self.request_id = request_id
        super().__init__(
            f"Sale for item {item_id} (quantity {quantity}) failed after stock was "
            f"decremented and the stock could not be restored"
        )


__all__ = [
    "VendingError",
    "ValidationError",
    "NotFoundError",
    "InsufficientStockError",
    "EmptyResultError",
    "ConcurrentUpdateError",
    "DuplicateSaleError",
    "StorageUnavailableError",
    "SaleRecoveryError",
]

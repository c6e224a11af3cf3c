"""
Exceptions raised by the allocation engine.

Hierarchy:
    AllocationError (base)
    ├── OrderNotFound        - order id absent from the ledger
    ├── InsufficientStock    - requested delta exceeds remaining stock
    └── CreditLimitExceeded  - cost delta exceeds customer's remaining credit
    ConfigError              - invalid run configuration

Allocation errors never leave partial changes behind: validation always
precedes mutation, so callers can catch them and carry on.
"""

from typing import Any, Dict, Optional


class AllocationError(Exception):
    """Base class for rejected allocation requests."""

    code = "ALLOCATION_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.code, "message": self.message, **self.details}


class OrderNotFound(AllocationError):
    code = "ORDER_NOT_FOUND"

    def __init__(self, order_id: str):
        super().__init__("Order not found.", {"order_id": order_id})
        self.order_id = order_id


class InsufficientStock(AllocationError):
    code = "INSUFFICIENT_STOCK"

    def __init__(self, order_id: str, available_stock: int, required_stock: int):
        super().__init__(
            f"Not enough stock remaining. Available: {available_stock}, Required: {required_stock}",
            {
                "order_id": order_id,
                "available_stock": available_stock,
                "required_stock": required_stock,
            },
        )
        self.available_stock = available_stock
        self.required_stock = required_stock

    @property
    def shortfall(self) -> int:
        return self.required_stock - self.available_stock


class CreditLimitExceeded(AllocationError):
    code = "CREDIT_LIMIT_EXCEEDED"

    def __init__(self, order_id: str, customer_name: str, available_credit, required_credit):
        super().__init__(
            f"Exceeds customer credit limit. Available credit: {available_credit:.2f}, "
            f"Required: {required_credit:.2f}",
            {
                "order_id": order_id,
                "customer_name": customer_name,
                "available_credit": available_credit,
                "required_credit": required_credit,
            },
        )
        self.customer_name = customer_name
        self.available_credit = available_credit
        self.required_credit = required_credit


class ConfigError(ValueError):
    """Raised when the run configuration is missing keys or holds bad values."""

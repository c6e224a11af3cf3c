from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    """
    Canonical money representation: Decimal quantised to cents.
    Floats go through str() so 456.78 stays 456.78.
    """
    if isinstance(value, Decimal):
        amount = value
    else:
        amount = Decimal(str(value))
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def to_naive_utc(value: datetime) -> datetime:
    """Timestamps are compared naive; aware ones are converted to UTC first."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class OrderStatus(str, Enum):
    NEW = "NEW"
    OVER_DUE = "OVER_DUE"
    EMERGENCY = "EMERGENCY"


class OrderPriority(str, Enum):
    NORMAL = "NORMAL"
    HIGH = "HIGH"


@dataclass(frozen=True)
class Product:
    product_id: str
    name: str
    remark: str = ""


@dataclass
class Customer:
    """
    Single stored customer entity.
    Only credit_remaining changes after creation.
    """
    customer_id: str
    name: str
    credit_limit: Decimal
    credit_remaining: Decimal = None

    def __post_init__(self):
        self.credit_limit = to_money(self.credit_limit)
        if self.credit_limit < 0:
            raise ValueError(f"Customer '{self.customer_id}' has a negative credit limit")
        if self.credit_remaining is None:
            self.credit_remaining = self.credit_limit
        else:
            self.credit_remaining = to_money(self.credit_remaining)
            if not 0 <= self.credit_remaining <= self.credit_limit:
                raise ValueError(
                    f"Customer '{self.customer_id}' credit_remaining {self.credit_remaining} "
                    f"outside [0, {self.credit_limit}]"
                )

    @property
    def credit_used(self) -> Decimal:
        return self.credit_limit - self.credit_remaining

    def restore_credit(self) -> None:
        self.credit_remaining = self.credit_limit


@dataclass(frozen=True)
class OrderRecord:
    """
    Order as delivered by a data source: request fields plus
    embedded customer / product snapshots.
    """
    order_id: str
    status: OrderStatus
    priority: OrderPriority
    customer: Customer
    product: Product
    price_per_unit: Decimal
    requested_qty: int
    created_at: datetime


@dataclass
class Order:
    order_id: str
    status: OrderStatus
    priority: OrderPriority
    customer_id: str
    product_id: str
    price_per_unit: Decimal
    requested_qty: int
    created_at: datetime
    allocated_qty: int = field(default=0)

    def __post_init__(self):
        self.status = OrderStatus(self.status)
        self.priority = OrderPriority(self.priority)
        self.price_per_unit = to_money(self.price_per_unit)
        self.requested_qty = int(self.requested_qty)
        self.created_at = to_naive_utc(self.created_at)
        if self.price_per_unit <= 0:
            raise ValueError(f"Order '{self.order_id}' must have a positive price per unit")
        if self.requested_qty < 0:
            raise ValueError(f"Order '{self.order_id}' has a negative requested quantity")

    @classmethod
    def from_record(cls, record: OrderRecord) -> "Order":
        return cls(
            order_id=record.order_id,
            status=record.status,
            priority=record.priority,
            customer_id=record.customer.customer_id,
            product_id=record.product.product_id,
            price_per_unit=record.price_per_unit,
            requested_qty=record.requested_qty,
            created_at=record.created_at,
        )

    @property
    def remaining_request(self) -> int:
        return self.requested_qty - self.allocated_qty

    @property
    def allocated_cost(self) -> Decimal:
        return self.allocated_qty * self.price_per_unit

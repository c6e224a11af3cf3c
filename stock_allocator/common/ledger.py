import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional

import polars as pl

from stock_allocator.common.models import Customer, Order, OrderRecord, Product
from stock_allocator.core.priority_scorer import rank_orders, score

ORDER_FRAME_SCHEMA = {
    "rank": pl.Int64,
    "order_id": pl.Utf8,
    "status": pl.Utf8,
    "priority": pl.Utf8,
    "score": pl.Float64,
    "customer_id": pl.Utf8,
    "customer_name": pl.Utf8,
    "product_id": pl.Utf8,
    "price_per_unit": pl.Float64,
    "requested_qty": pl.Int64,
    "allocated_qty": pl.Int64,
    "allocated_cost": pl.Float64,
    "created_at": pl.Datetime,
}

CUSTOMER_FRAME_SCHEMA = {
    "customer_id": pl.Utf8,
    "customer_name": pl.Utf8,
    "order_count": pl.Int64,
    "allocated_qty": pl.Int64,
    "credit_limit": pl.Float64,
    "credit_used": pl.Float64,
    "credit_remaining": pl.Float64,
}


@dataclass(frozen=True)
class LedgerSnapshot:
    """Read-only view handed to downstream consumers."""
    total_stock: int
    remaining_stock: int
    total_allocated: int
    orders: pl.DataFrame
    customers: pl.DataFrame

    @property
    def allocation_ratio(self) -> float:
        if self.total_stock <= 0:
            return 0.0
        return self.total_allocated / self.total_stock


class AllocationLedger:
    """
    In-memory allocation state for one product pool.

    Customers are stored once and referenced by id from every order,
    so credit reads and writes always go through the same entity.
    """

    def __init__(self, total_stock: int, product: Optional[Product] = None, logger=None):
        if int(total_stock) <= 0:
            raise ValueError(f"total_stock must be a positive integer, got {total_stock}")
        self.total_stock = int(total_stock)
        self.remaining_stock = self.total_stock
        self.product = product
        self.customers: Dict[str, Customer] = {}
        self.orders: List[Order] = []
        self._order_index: Dict[str, Order] = {}
        self.logger = logger or logging.getLogger(__name__)

    # ---------------- READ ----------------
    @property
    def total_allocated(self) -> int:
        return self.total_stock - self.remaining_stock

    def find_order(self, order_id: str) -> Optional[Order]:
        return self._order_index.get(order_id)

    def customer_of(self, order: Order) -> Customer:
        return self.customers[order.customer_id]

    def orders_of(self, customer_id: str) -> List[Order]:
        return [o for o in self.orders if o.customer_id == customer_id]

    # ---------------- INGEST ----------------
    def ingest(self, records: Iterable[OrderRecord]) -> int:
        """
        Appends a batch of order records in arrival order.
        The whole batch is validated before the ledger changes: one bad
        record leaves orders, customers and product untouched.
        Returns the number of orders added.
        """
        product = self.product
        new_orders: List[Order] = []
        new_customers: Dict[str, Customer] = {}
        seen = set(self._order_index)

        for record in records:
            if product is None:
                product = record.product
            elif record.product.product_id != product.product_id:
                raise ValueError(
                    f"Order '{record.order_id}' is for product '{record.product.product_id}', "
                    f"ledger holds '{product.product_id}'"
                )

            if record.order_id in seen:
                self.logger.warning("Duplicate order skipped | Order=%s", record.order_id)
                continue

            order = Order.from_record(record)
            self._register_customer(record.customer, new_customers)
            new_orders.append(order)
            seen.add(order.order_id)

        # ---- commit ----
        self.product = product
        self.customers.update(new_customers)
        for order in new_orders:
            self.orders.append(order)
            self._order_index[order.order_id] = order

        self.logger.debug(
            "Ingested batch | Added=%d | Orders=%d | Customers=%d",
            len(new_orders), len(self.orders), len(self.customers)
        )
        return len(new_orders)

    def _register_customer(self, snapshot: Customer, pending: Dict[str, Customer]) -> Customer:
        stored = self.customers.get(snapshot.customer_id) or pending.get(snapshot.customer_id)
        if stored is None:
            stored = Customer(
                customer_id=snapshot.customer_id,
                name=snapshot.name,
                credit_limit=snapshot.credit_limit,
            )
            pending[stored.customer_id] = stored
        elif stored.credit_limit != snapshot.credit_limit or stored.name != snapshot.name:
            self.logger.warning(
                "Customer snapshot differs from stored entity, keeping stored | Customer=%s",
                snapshot.customer_id
            )
        return stored

    # ---------------- MUTATE ----------------
    def apply_delta(self, order: Order, delta: int) -> None:
        """
        Moves `delta` units between the stock pool and an order, charging
        (or refunding) the owning customer. Callers validate beforehand.
        """
        customer = self.customer_of(order)
        order.allocated_qty += delta
        self.remaining_stock -= delta
        customer.credit_remaining -= delta * order.price_per_unit

    def reset_allocations(self) -> None:
        for order in self.orders:
            order.allocated_qty = 0
        for customer in self.customers.values():
            customer.restore_credit()
        self.remaining_stock = self.total_stock

    # ---------------- INSPECT ----------------
    def state(self) -> dict:
        """Every mutable field, in a comparable form."""
        return {
            "remaining_stock": self.remaining_stock,
            "allocated": {o.order_id: o.allocated_qty for o in self.orders},
            "credit_remaining": {
                c.customer_id: c.credit_remaining for c in self.customers.values()
            },
        }

    def verify(self) -> List[str]:
        """Returns invariant violations; empty list when the ledger is consistent."""
        violations = []

        if not 0 <= self.remaining_stock <= self.total_stock:
            violations.append(
                f"remaining_stock {self.remaining_stock} outside [0, {self.total_stock}]"
            )

        allocated_total = sum(o.allocated_qty for o in self.orders)
        if self.remaining_stock + allocated_total != self.total_stock:
            violations.append(
                f"remaining_stock {self.remaining_stock} + allocated {allocated_total} "
                f"!= total_stock {self.total_stock}"
            )

        for order in self.orders:
            if not 0 <= order.allocated_qty <= order.requested_qty:
                violations.append(
                    f"order {order.order_id} allocated {order.allocated_qty} "
                    f"outside [0, {order.requested_qty}]"
                )

        spent = {cid: 0 for cid in self.customers}
        for order in self.orders:
            spent[order.customer_id] += order.allocated_cost

        for cid, customer in self.customers.items():
            if not 0 <= customer.credit_remaining <= customer.credit_limit:
                violations.append(
                    f"customer {cid} credit_remaining {customer.credit_remaining} "
                    f"outside [0, {customer.credit_limit}]"
                )
            if customer.credit_used != spent[cid]:
                violations.append(
                    f"customer {cid} credit used {customer.credit_used} "
                    f"!= allocated cost {spent[cid]}"
                )

        return violations

    def snapshot(self, now: datetime) -> LedgerSnapshot:
        order_rows = []
        for rank, order in enumerate(rank_orders(self.orders, now), start=1):
            customer = self.customer_of(order)
            order_rows.append({
                "rank": rank,
                "order_id": order.order_id,
                "status": order.status.value,
                "priority": order.priority.value,
                "score": score(order, now),
                "customer_id": customer.customer_id,
                "customer_name": customer.name,
                "product_id": order.product_id,
                "price_per_unit": float(order.price_per_unit),
                "requested_qty": order.requested_qty,
                "allocated_qty": order.allocated_qty,
                "allocated_cost": float(order.allocated_cost),
                "created_at": order.created_at,
            })

        customer_rows = []
        for customer in self.customers.values():
            owned = self.orders_of(customer.customer_id)
            customer_rows.append({
                "customer_id": customer.customer_id,
                "customer_name": customer.name,
                "order_count": len(owned),
                "allocated_qty": sum(o.allocated_qty for o in owned),
                "credit_limit": float(customer.credit_limit),
                "credit_used": float(customer.credit_used),
                "credit_remaining": float(customer.credit_remaining),
            })

        return LedgerSnapshot(
            total_stock=self.total_stock,
            remaining_stock=self.remaining_stock,
            total_allocated=self.total_allocated,
            orders=pl.DataFrame(order_rows, schema=ORDER_FRAME_SCHEMA),
            customers=pl.DataFrame(customer_rows, schema=CUSTOMER_FRAME_SCHEMA),
        )

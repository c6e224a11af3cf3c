import logging
import random
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from stock_allocator.common.models import (
    Customer,
    OrderPriority,
    OrderRecord,
    OrderStatus,
    Product,
    to_money,
)

OrderProvider = Callable[[int, int], List[OrderRecord]]


class PaginatedOrderFeed:
    """
    Hands out order records page by page.

    `provider(start, count)` returns records from position `start`;
    the feed never asks for more than `max_orders` in total.
    """

    def __init__(self, provider: OrderProvider, page_size: int, max_orders: int, logger=None):
        if page_size <= 0:
            raise ValueError(f"page_size must be positive, got {page_size}")
        if max_orders <= 0:
            raise ValueError(f"max_orders must be positive, got {max_orders}")
        self.provider = provider
        self.page_size = page_size
        self.max_orders = max_orders
        self.current_page = 0
        self.total_loaded = 0
        self.has_more = True
        self.logger = logger or logging.getLogger(__name__)

    def load_more(self) -> List[OrderRecord]:
        if not self.has_more:
            return []

        to_load = min(self.page_size, self.max_orders - self.total_loaded)
        batch = self.provider(self.total_loaded, to_load) if to_load > 0 else []

        if not batch:
            self.has_more = False
            self.logger.debug("Order feed exhausted | Loaded=%d", self.total_loaded)
            return []

        batch = sorted(batch, key=lambda r: r.created_at)
        self.total_loaded += len(batch)
        self.current_page += 1

        if self.total_loaded >= self.max_orders or len(batch) < to_load:
            self.has_more = False

        self.logger.debug(
            "Loaded page | Page=%d | Batch=%d | Loaded=%d/%d",
            self.current_page, len(batch), self.total_loaded, self.max_orders
        )
        return batch

    def __iter__(self):
        while self.has_more:
            batch = self.load_more()
            if batch:
                yield batch


class DemoOrderGenerator:
    """
    Seeded generator of demo orders for a single product.
    Ids are positional, so generate(start, count) always yields ORDER-<start+1>...
    """

    def __init__(self, product: Product, customers: int = 20, seed: Optional[int] = None, now: Optional[datetime] = None):
        self.product = product
        self.now = now or datetime.now()
        self._rng = random.Random(seed)
        self.customers = [
            Customer(
                customer_id=f"CUST-{i + 1:02d}",
                name=f"Balerion{i + 1:02d}",
                credit_limit=round(self._rng.random() * 5000 + 1000, 2),
            )
            for i in range(customers)
        ]

    def __call__(self, start: int, count: int) -> List[OrderRecord]:
        return [self._make_order(start + i + 1) for i in range(count)]

    def _make_order(self, number: int) -> OrderRecord:
        rng = self._rng

        if rng.random() > 0.7:
            status = OrderStatus.NEW
        elif rng.random() > 0.5:
            status = OrderStatus.OVER_DUE
        else:
            status = OrderStatus.EMERGENCY

        return OrderRecord(
            order_id=f"ORDER-{number:03d}",
            status=status,
            priority=OrderPriority.HIGH if rng.random() > 0.8 else OrderPriority.NORMAL,
            customer=rng.choice(self.customers),
            product=self.product,
            price_per_unit=to_money(round(rng.random() * 200 + 400, 2)),
            requested_qty=rng.randint(5, 9),
            created_at=self.now - timedelta(days=rng.random() * 30),
        )

"""
In-process interface of the allocation engine.

The module-level functions operate on a ledger directly and return it.
`AllocationEngine` owns one ledger and serialises every operation behind a
single lock, so an auto allocation (which starts with a full reset) can never
interleave with a manual edit.
"""

import logging
import threading
from datetime import datetime
from typing import Iterable, Optional

from stock_allocator.common.ledger import AllocationLedger, LedgerSnapshot
from stock_allocator.common.models import OrderRecord, Product
from stock_allocator.core import manual_allocation
from stock_allocator.core.priority_scorer import score
from stock_allocator.pipeline.phase_registry import get_auto_allocator

logger = logging.getLogger(__name__)

DEFAULT_STRATEGY = "two_pass"

__all__ = [
    "AllocationEngine",
    "allocate",
    "auto_allocate",
    "ingest",
    "reset",
    "score",
]


def allocate(ledger: AllocationLedger, order_id: str, quantity: int, logger=logger) -> AllocationLedger:
    return manual_allocation.allocate(ledger, order_id, quantity, logger=logger)


def auto_allocate(
    ledger: AllocationLedger,
    now: datetime,
    strategy: str = DEFAULT_STRATEGY,
    logger=logger,
) -> AllocationLedger:
    allocator_cls = get_auto_allocator(strategy)
    return allocator_cls(ledger, logger=logger).allocate(now)


def reset(ledger: AllocationLedger, logger=logger) -> AllocationLedger:
    ledger.reset_allocations()
    logger.info("Allocations reset | Stock=%d | Customers=%d", ledger.total_stock, len(ledger.customers))
    return ledger


def ingest(ledger: AllocationLedger, records: Iterable[OrderRecord], logger=logger) -> AllocationLedger:
    added = ledger.ingest(records)
    logger.info("Orders ingested | Added=%d | TotalOrders=%d", added, len(ledger.orders))
    return ledger


class AllocationEngine:
    def __init__(self, total_stock: int, product: Optional[Product] = None, logger=None):
        self.logger = logger or logging.getLogger(__name__)
        self.ledger = AllocationLedger(total_stock, product, logger=self.logger)
        self._lock = threading.RLock()

    def ingest(self, records: Iterable[OrderRecord]) -> AllocationLedger:
        with self._lock:
            return ingest(self.ledger, list(records), logger=self.logger)

    def allocate(self, order_id: str, quantity: int) -> AllocationLedger:
        with self._lock:
            return allocate(self.ledger, order_id, quantity, logger=self.logger)

    def auto_allocate(self, now: Optional[datetime] = None, strategy: str = DEFAULT_STRATEGY) -> AllocationLedger:
        with self._lock:
            return auto_allocate(self.ledger, now or datetime.now(), strategy, logger=self.logger)

    def reset(self) -> AllocationLedger:
        with self._lock:
            return reset(self.ledger, logger=self.logger)

    def snapshot(self, now: Optional[datetime] = None) -> LedgerSnapshot:
        with self._lock:
            return self.ledger.snapshot(now or datetime.now())

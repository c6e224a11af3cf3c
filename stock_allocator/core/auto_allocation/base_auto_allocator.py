import logging
from abc import ABC, abstractmethod
from datetime import datetime

from stock_allocator.common.ledger import AllocationLedger


class BaseAutoAllocator(ABC):
    """
    Abstract base class for all Auto Allocation strategies.
    A strategy redistributes the whole stock pool of a ledger from a clean slate.
    """

    def __init__(self, ledger: AllocationLedger, config=None, logger=None) -> None:
        """
        :param ledger: AllocationLedger holding stock, customers and orders
        :param config: strategy-specific options
        """
        self.ledger = ledger
        self.config = config or {}
        self.logger = logger or logging.getLogger(__name__)

    @abstractmethod
    def allocate(self, now: datetime) -> AllocationLedger:
        """
        Replaces every existing allocation of the ledger.
        Returns the same ledger, now holding the new allocation.
        """
        pass

    def _affordable_units(self, order) -> int:
        customer = self.ledger.customer_of(order)
        return int(customer.credit_remaining // order.price_per_unit)

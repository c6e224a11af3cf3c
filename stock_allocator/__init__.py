from stock_allocator.common.exceptions import (
    AllocationError,
    CreditLimitExceeded,
    InsufficientStock,
    OrderNotFound,
)
from stock_allocator.common.ledger import AllocationLedger, LedgerSnapshot
from stock_allocator.common.models import (
    Customer,
    Order,
    OrderPriority,
    OrderRecord,
    OrderStatus,
    Product,
)
from stock_allocator.engine import (
    AllocationEngine,
    allocate,
    auto_allocate,
    ingest,
    reset,
    score,
)

__version__ = "0.1.0"

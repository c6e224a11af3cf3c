import logging

from stock_allocator.common.exceptions import CreditLimitExceeded, InsufficientStock, OrderNotFound
from stock_allocator.common.ledger import AllocationLedger

logger = logging.getLogger(__name__)


def allocate(ledger: AllocationLedger, order_id: str, quantity: int, logger=logger) -> AllocationLedger:
    """
    Sets one order's allocation to `quantity` (clamped to [0, requested_qty]).

    Raises OrderNotFound, InsufficientStock or CreditLimitExceeded without
    touching the ledger. A lower quantity releases stock and credit back
    to the pool. Other orders are left as they are.
    """
    order = ledger.find_order(order_id)
    if order is None:
        logger.warning("Manual allocation rejected | Order=%s | Reason=not found", order_id)
        raise OrderNotFound(order_id)

    new_qty = max(0, min(int(quantity), order.requested_qty))
    stock_needed = new_qty - order.allocated_qty

    if stock_needed > ledger.remaining_stock:
        logger.warning(
            "Manual allocation rejected | Order=%s | Available=%s | Required=%s",
            order_id, ledger.remaining_stock, stock_needed
        )
        raise InsufficientStock(order_id, ledger.remaining_stock, stock_needed)

    customer = ledger.customer_of(order)
    cost_difference = stock_needed * order.price_per_unit

    if cost_difference > 0 and cost_difference > customer.credit_remaining:
        logger.warning(
            "Manual allocation rejected | Order=%s | Customer=%s | AvailableCredit=%s | RequiredCredit=%s",
            order_id, customer.name, customer.credit_remaining, cost_difference
        )
        raise CreditLimitExceeded(order_id, customer.name, customer.credit_remaining, cost_difference)

    ledger.apply_delta(order, stock_needed)

    logger.info(
        "Manual allocation applied | Order=%s | Requested=%s | Allocated=%s | Delta=%s | RemainingStock=%s",
        order_id, quantity, new_qty, stock_needed, ledger.remaining_stock
    )
    return ledger

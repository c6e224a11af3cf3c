from datetime import datetime

from stock_allocator.common.ledger import AllocationLedger
from stock_allocator.core.auto_allocation.base_auto_allocator import BaseAutoAllocator
from stock_allocator.core.priority_scorer import rank_orders


class TwoPassAutoAllocator(BaseAutoAllocator):
    """
    Two Pass Auto Allocation.
    Strategy:
    - Reset every allocation, restore stock and credit
    - Rank orders by priority score (older first on ties)
    - Pass 1: one unit for the first affordable order of each customer
    - Pass 2: fill remaining requests greedily in rank order
    """

    FLOOR_UNITS = 1

    def allocate(self, now: datetime) -> AllocationLedger:
        ledger = self.ledger
        self.logger.info(
            "Two Pass Auto Allocation started | Orders=%d | Customers=%d | Stock=%d",
            len(ledger.orders), len(ledger.customers), ledger.total_stock
        )

        ledger.reset_allocations()
        ranked = rank_orders(ledger.orders, now)

        floor_units = self._fairness_pass(ranked)
        self.logger.info(
            "Pass 1 completed | FloorUnits=%d | RemainingStock=%d",
            floor_units, ledger.remaining_stock
        )

        greedy_units = self._greedy_pass(ranked)
        self.logger.info(
            "Pass 2 completed | GreedyUnits=%d | RemainingStock=%d",
            greedy_units, ledger.remaining_stock
        )

        self.logger.info(
            "Two Pass Auto Allocation completed | Allocated=%d of %d",
            ledger.total_allocated, ledger.total_stock
        )
        return ledger

    # --------------------------------------------
    # PASS 1: FAIRNESS FLOOR
    # --------------------------------------------
    def _fairness_pass(self, ranked) -> int:
        ledger = self.ledger
        touched_customers = set()
        granted_total = 0

        for order in ranked:
            if ledger.remaining_stock <= 0:
                break
            if order.customer_id in touched_customers:
                continue

            grant = min(
                self.FLOOR_UNITS,
                ledger.remaining_stock,
                order.requested_qty,
                self._affordable_units(order),
            )

            if grant > 0:
                ledger.apply_delta(order, grant)
                touched_customers.add(order.customer_id)
                granted_total += grant
                self.logger.debug(
                    "Floor grant | Order=%s | Customer=%s | Units=%d",
                    order.order_id, order.customer_id, grant
                )

        return granted_total

    # --------------------------------------------
    # PASS 2: GREEDY EXHAUSTION
    # --------------------------------------------
    def _greedy_pass(self, ranked) -> int:
        ledger = self.ledger
        granted_total = 0

        for order in ranked:
            if ledger.remaining_stock <= 0:
                break

            remaining_request = order.remaining_request
            if remaining_request <= 0:
                continue

            grant = min(
                remaining_request,
                ledger.remaining_stock,
                self._affordable_units(order),
            )

            if grant > 0:
                ledger.apply_delta(order, grant)
                granted_total += grant
                self.logger.debug(
                    "Greedy grant | Order=%s | Units=%d | Allocated=%d/%d",
                    order.order_id, grant, order.allocated_qty, order.requested_qty
                )
            else:
                self.logger.debug(
                    "No allocation possible | Order=%s | Customer=%s",
                    order.order_id, order.customer_id
                )

        return granted_total

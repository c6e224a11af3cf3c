from datetime import datetime
from typing import Iterable, List

from stock_allocator.common.models import Order, OrderPriority, OrderStatus

STATUS_BASE_SCORE = {
    OrderStatus.EMERGENCY: 100,
    OrderStatus.OVER_DUE: 50,
    OrderStatus.NEW: 25,
}
HIGH_PRIORITY_BONUS = 25
AGE_POINTS_PER_DAY = 2
MAX_AGE_POINTS = 20
SECONDS_PER_DAY = 24 * 60 * 60


def score(order: Order, now: datetime) -> float:
    """
    Ranking score for one order. Higher = allocated earlier.
    - status base: EMERGENCY 100, OVER_DUE 50, NEW 25
    - +25 for HIGH priority
    - +2 per day of age, capped at 20
    """
    points = STATUS_BASE_SCORE.get(order.status, 0)

    if order.priority == OrderPriority.HIGH:
        points += HIGH_PRIORITY_BONUS

    age_in_days = (now - order.created_at).total_seconds() / SECONDS_PER_DAY
    return points + min(age_in_days * AGE_POINTS_PER_DAY, MAX_AGE_POINTS)


def rank_orders(orders: Iterable[Order], now: datetime) -> List[Order]:
    """Score descending, older first on ties; sort is stable for the rest."""
    return sorted(orders, key=lambda o: (-score(o, now), o.created_at))

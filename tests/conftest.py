"""
Shared fixtures for the allocation engine tests.
"""

from datetime import datetime, timedelta

import pytest

from stock_allocator.common.ledger import AllocationLedger
from stock_allocator.common.models import (
    Customer,
    OrderPriority,
    OrderRecord,
    OrderStatus,
    Product,
)

NOW = datetime(2026, 10, 16, 12, 0, 0)
SALMON = Product(product_id="SALMON-001", name="Salmon", remark="1 day delivery Product")


def make_record(
    order_id,
    customer,
    price=100,
    requested=5,
    status=OrderStatus.NEW,
    priority=OrderPriority.NORMAL,
    age_days=1.0,
    product=SALMON,
):
    return OrderRecord(
        order_id=order_id,
        status=status,
        priority=priority,
        customer=customer,
        product=product,
        price_per_unit=price,
        requested_qty=requested,
        created_at=NOW - timedelta(days=age_days),
    )


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def product():
    return SALMON


@pytest.fixture
def alice():
    return Customer(customer_id="CUST-01", name="Alice", credit_limit=1000)


@pytest.fixture
def bob():
    return Customer(customer_id="CUST-02", name="Bob", credit_limit=500)


@pytest.fixture
def ledger(product):
    """Empty ledger with 10 units of stock."""
    return AllocationLedger(total_stock=10, product=product)


@pytest.fixture
def two_customer_ledger(ledger, alice, bob):
    """
    ORDER-001: Alice, 5 @ 100
    ORDER-002: Alice, 8 @ 100
    ORDER-003: Bob,   4 @ 150
    """
    ledger.ingest([
        make_record("ORDER-001", alice, price=100, requested=5, age_days=3),
        make_record("ORDER-002", alice, price=100, requested=8, age_days=2),
        make_record("ORDER-003", bob, price=150, requested=4, age_days=1),
    ])
    return ledger

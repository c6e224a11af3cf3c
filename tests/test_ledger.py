from decimal import Decimal

import pytest

from stock_allocator.common.ledger import AllocationLedger
from stock_allocator.common.models import Customer, Order, Product

from conftest import make_record


class TestConstruction:

    @pytest.mark.parametrize("stock", [0, -5])
    def test_rejects_non_positive_stock(self, stock):
        with pytest.raises(ValueError):
            AllocationLedger(total_stock=stock)

    def test_starts_full(self, ledger):
        assert ledger.remaining_stock == 10
        assert ledger.total_allocated == 0
        assert ledger.orders == []

    def test_order_rejects_bad_price(self, alice):
        with pytest.raises(ValueError):
            Order.from_record(make_record("ORDER-001", alice, price=0))

    def test_order_rejects_negative_request(self, alice):
        with pytest.raises(ValueError):
            Order.from_record(make_record("ORDER-001", alice, requested=-1))

    def test_money_is_quantised_to_cents(self):
        customer = Customer(customer_id="CUST-09", name="Zed", credit_limit=1234.5)
        assert customer.credit_limit == Decimal("1234.50")
        assert customer.credit_remaining == customer.credit_limit

    @pytest.mark.parametrize("remaining", [-1, 1000.01])
    def test_customer_rejects_credit_remaining_out_of_range(self, remaining):
        with pytest.raises(ValueError, match="credit_remaining"):
            Customer(customer_id="CUST-09", name="Zed", credit_limit=1000, credit_remaining=remaining)

    @pytest.mark.parametrize("remaining, used", [(0, "1000.00"), (1000, "0.00")])
    def test_customer_accepts_credit_remaining_bounds(self, remaining, used):
        customer = Customer(customer_id="CUST-09", name="Zed", credit_limit=1000, credit_remaining=remaining)
        assert customer.credit_used == Decimal(used)


class TestIngest:

    def test_appends_in_arrival_order(self, two_customer_ledger):
        assert [o.order_id for o in two_customer_ledger.orders] == ["ORDER-001", "ORDER-002", "ORDER-003"]
        assert all(o.allocated_qty == 0 for o in two_customer_ledger.orders)

    def test_customer_stored_once(self, two_customer_ledger):
        assert set(two_customer_ledger.customers) == {"CUST-01", "CUST-02"}
        first = two_customer_ledger.find_order("ORDER-001")
        second = two_customer_ledger.find_order("ORDER-002")
        assert two_customer_ledger.customer_of(first) is two_customer_ledger.customer_of(second)

    def test_stored_customer_is_not_the_snapshot(self, ledger, alice):
        ledger.ingest([make_record("ORDER-001", alice)])
        assert ledger.customers["CUST-01"] is not alice

    def test_later_snapshot_does_not_replace_stored_customer(self, ledger, alice):
        ledger.ingest([make_record("ORDER-001", alice)])
        ledger.customers["CUST-01"].credit_remaining = Decimal("100.00")

        changed = Customer(customer_id="CUST-01", name="Alice", credit_limit=9999)
        ledger.ingest([make_record("ORDER-002", changed)])

        stored = ledger.customers["CUST-01"]
        assert stored.credit_limit == Decimal("1000.00")
        assert stored.credit_remaining == Decimal("100.00")

    def test_duplicate_order_id_skipped(self, ledger, alice):
        added = ledger.ingest([
            make_record("ORDER-001", alice, requested=5),
            make_record("ORDER-001", alice, requested=9),
        ])
        assert added == 1
        assert ledger.find_order("ORDER-001").requested_qty == 5

    def test_rejects_other_product(self, ledger, alice):
        other = Product(product_id="TUNA-001", name="Tuna")
        with pytest.raises(ValueError):
            ledger.ingest([make_record("ORDER-001", alice, product=other)])

    def test_adopts_first_product_when_unset(self, alice, product):
        ledger = AllocationLedger(total_stock=5)
        ledger.ingest([make_record("ORDER-001", alice)])
        assert ledger.product == product

    def test_rejected_batch_leaves_ledger_untouched(self, two_customer_ledger, product):
        before = two_customer_ledger.state()
        carol = Customer(customer_id="CUST-03", name="Carol", credit_limit=800)
        other = Product(product_id="TUNA-001", name="Tuna")

        with pytest.raises(ValueError):
            two_customer_ledger.ingest([
                make_record("ORDER-004", carol),
                make_record("ORDER-005", carol, product=other),
            ])
        with pytest.raises(ValueError):
            two_customer_ledger.ingest([
                make_record("ORDER-004", carol),
                make_record("ORDER-005", carol, price=0),
            ])

        assert two_customer_ledger.state() == before
        assert len(two_customer_ledger.orders) == 3
        assert "CUST-03" not in two_customer_ledger.customers
        assert two_customer_ledger.find_order("ORDER-004") is None
        assert two_customer_ledger.product == product

    def test_rejected_batch_does_not_adopt_product(self, alice):
        ledger = AllocationLedger(total_stock=5)
        with pytest.raises(ValueError):
            ledger.ingest([
                make_record("ORDER-001", alice),
                make_record("ORDER-002", alice, requested=-1),
            ])

        assert ledger.product is None
        assert ledger.orders == []
        assert ledger.customers == {}

    def test_duplicate_within_batch_and_against_ledger(self, two_customer_ledger, alice):
        added = two_customer_ledger.ingest([
            make_record("ORDER-003", alice),
            make_record("ORDER-004", alice, requested=2),
            make_record("ORDER-004", alice, requested=7),
        ])
        assert added == 1
        assert two_customer_ledger.find_order("ORDER-004").requested_qty == 2


class TestInspect:

    def test_verify_clean_ledger(self, two_customer_ledger):
        assert two_customer_ledger.verify() == []

    def test_verify_reports_drift(self, two_customer_ledger):
        two_customer_ledger.find_order("ORDER-001").allocated_qty = 2
        violations = two_customer_ledger.verify()
        assert any("total_stock" in v for v in violations)
        assert any("CUST-01" in v for v in violations)

    def test_apply_delta_moves_stock_and_credit(self, two_customer_ledger):
        order = two_customer_ledger.find_order("ORDER-003")
        two_customer_ledger.apply_delta(order, 2)

        assert order.allocated_qty == 2
        assert two_customer_ledger.remaining_stock == 8
        assert two_customer_ledger.customers["CUST-02"].credit_remaining == Decimal("200.00")
        assert two_customer_ledger.verify() == []

    def test_state_reflects_allocations(self, two_customer_ledger):
        two_customer_ledger.apply_delta(two_customer_ledger.find_order("ORDER-001"), 1)
        state = two_customer_ledger.state()

        assert state["remaining_stock"] == 9
        assert state["allocated"]["ORDER-001"] == 1
        assert state["credit_remaining"]["CUST-01"] == Decimal("900.00")

    def test_snapshot_frames(self, two_customer_ledger, now):
        two_customer_ledger.apply_delta(two_customer_ledger.find_order("ORDER-002"), 3)
        snapshot = two_customer_ledger.snapshot(now)

        assert snapshot.total_allocated == 3
        assert snapshot.remaining_stock == 7
        assert snapshot.allocation_ratio == pytest.approx(0.3)

        # Oldest first among equal-status orders
        assert snapshot.orders["order_id"].to_list() == ["ORDER-001", "ORDER-002", "ORDER-003"]
        assert snapshot.orders["rank"].to_list() == [1, 2, 3]

        alice_row = snapshot.customers.filter(snapshot.customers["customer_id"] == "CUST-01").row(0, named=True)
        assert alice_row["order_count"] == 2
        assert alice_row["allocated_qty"] == 3
        assert alice_row["credit_used"] == pytest.approx(300.0)
        assert alice_row["credit_remaining"] == pytest.approx(700.0)

    def test_snapshot_of_empty_ledger(self, ledger, now):
        snapshot = ledger.snapshot(now)
        assert snapshot.orders.height == 0
        assert "allocated_qty" in snapshot.orders.columns
        assert snapshot.customers.height == 0

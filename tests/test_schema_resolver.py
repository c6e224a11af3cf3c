import logging

import polars as pl
import pytest

from stock_allocator.utils.schema_resolver import SchemaResolver

logger = logging.getLogger("stock_allocator.tests")


def _orders_frame(**overrides):
    data = {
        "order_id": ["ORDER-001", " ORDER-002 ", None],
        "status": ["NEW", "EMERGENCY", "NEW"],
        "priority": ["NORMAL", "HIGH", "NORMAL"],
        "customer_id": ["CUST-01", "CUST-02", "CUST-03"],
        "customer_name": ["Alice", "Bob", "Carol"],
        "credit_limit": [1000, 500, 800],
        "price_per_unit": [100.0, 150.5, 90.0],
        "requested_qty": [5, 4, 3],
        "created_at": ["2026-10-13T12:00:00"] * 3,
    }
    data.update(overrides)
    return pl.DataFrame(data)


class TestResolve:

    def test_renames_and_drops_extras(self):
        df = pl.DataFrame({"  Order   ID ": ["A"], "QTY": [1], "junk": [0]})
        out = SchemaResolver.resolve(
            df, {"order_id": "order id", "requested_qty": "Qty"}, ["order_id", "requested_qty"], "TEST", logger
        )
        assert out.columns == ["order_id", "requested_qty"]

    def test_missing_schema_key(self):
        df = pl.DataFrame({"Order ID": ["A"]})
        with pytest.raises(ValueError, match="Invalid schema configuration"):
            SchemaResolver.resolve(df, {}, ["order_id"], "TEST", logger)


class TestCastOrders:

    def test_strips_casts_and_drops_blank_ids(self):
        out = SchemaResolver.cast_orders(_orders_frame(), "TEST", logger)

        assert out["order_id"].to_list() == ["ORDER-001", "ORDER-002"]
        assert out["credit_limit"].dtype == pl.Float64
        assert out["requested_qty"].dtype == pl.Int64

    def test_non_numeric_quantity(self):
        frame = _orders_frame(requested_qty=["5", "four", "3"])
        with pytest.raises(ValueError, match="cannot be cast"):
            SchemaResolver.cast_orders(frame, "TEST", logger)

    @pytest.mark.parametrize("overrides", [
        {"status": ["NEW", None, "NEW"]},
        {"priority": ["NORMAL", "  ", "NORMAL"]},
        {"created_at": ["2026-10-13T12:00:00", "", "2026-10-13T12:00:00"]},
        {"customer_name": ["Alice", None, "Carol"]},
        {"credit_limit": [1000, None, 800]},
        {"price_per_unit": [100.0, None, 90.0]},
    ])
    def test_drops_rows_with_blank_required_fields(self, overrides):
        out = SchemaResolver.cast_orders(_orders_frame(**overrides), "TEST", logger)

        assert out["order_id"].to_list() == ["ORDER-001"]
        assert out.null_count().sum_horizontal().item() == 0

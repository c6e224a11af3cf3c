import logging
from datetime import datetime
from pathlib import Path
from typing import List

import polars as pl

from stock_allocator.common.models import (
    Customer,
    OrderPriority,
    OrderRecord,
    OrderStatus,
    Product,
    to_money,
    to_naive_utc,
)
from stock_allocator.utils.schema_resolver import ORDER_COLUMN_TYPES, SchemaResolver


def read_csv(file_path: Path, logger=None):
    try:
        return pl.read_csv(file_path)
    except Exception:
        if logger:
            logger.error("Failed to read CSV: %s", file_path, exc_info=True)
        raise


class CsvOrderProvider:
    """
    Serves order records from an orders CSV file.
    Columns are matched through the `schemas.orders` mapping of the config.
    """

    def __init__(self, file_path: Path, schema_cfg: dict, product: Product, logger=None):
        self.logger = logger or logging.getLogger(__name__)
        self.product = product

        raw_df = read_csv(file_path, logger=self.logger)
        df = SchemaResolver.resolve(
            df=raw_df,
            schema_cfg=schema_cfg,
            required_keys=list(ORDER_COLUMN_TYPES),
            df_name="ORDERS FILE",
            logger=self.logger,
        )
        self.orders_df = SchemaResolver.cast_orders(df, "ORDERS FILE", self.logger)
        self.logger.info("Orders file read | File=%s | Rows=%d", file_path, self.orders_df.height)

    def __len__(self) -> int:
        return self.orders_df.height

    def __call__(self, start: int, count: int) -> List[OrderRecord]:
        records = []
        for r in self.orders_df.slice(start, count).iter_rows(named=True):
            records.append(OrderRecord(
                order_id=r["order_id"],
                status=OrderStatus(r["status"].upper()),
                priority=OrderPriority(r["priority"].upper()),
                customer=Customer(
                    customer_id=r["customer_id"],
                    name=r["customer_name"],
                    credit_limit=r["credit_limit"],
                ),
                product=self.product,
                price_per_unit=to_money(r["price_per_unit"]),
                requested_qty=r["requested_qty"],
                created_at=to_naive_utc(datetime.fromisoformat(r["created_at"])),
            ))
        return records

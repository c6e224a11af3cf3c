from datetime import datetime
from pathlib import Path
from typing import Optional

import polars as pl

from stock_allocator.common.exceptions import AllocationError
from stock_allocator.common.ledger import LedgerSnapshot
from stock_allocator.common.models import Product
from stock_allocator.engine import AllocationEngine
from stock_allocator.io_modules.config_reader import parse_as_of
from stock_allocator.io_modules.order_feed import DemoOrderGenerator, PaginatedOrderFeed
from stock_allocator.io_modules.reader import CsvOrderProvider
from stock_allocator.io_modules.writer import write_csv

MANUAL_RESULT_SCHEMA = {
    "order_id": pl.Utf8,
    "requested_quantity": pl.Int64,
    "status": pl.Utf8,
    "error_type": pl.Utf8,
    "message": pl.Utf8,
    "allocated_qty": pl.Int64,
}


class AllocationPipeline:
    def __init__(self, config, logger):
        self.config = config
        self.logger = logger
        self.now = parse_as_of(config.get("as_of")) or datetime.now()
        self.base_path = Path(config.get("base_path", "."))

        product_cfg = config["inventory"]["product"]
        self.product = Product(
            product_id=str(product_cfg["product_id"]),
            name=str(product_cfg["name"]),
            remark=str(product_cfg.get("remark", "")),
        )
        self.engine = AllocationEngine(
            config["inventory"]["total_stock"], self.product, logger=self.logger
        )
        self.manual_results = []

    def run(self) -> Optional[LedgerSnapshot]:
        phases = self.config["phases"]

        if not phases["auto_allocation"]["enabled"] and \
        not phases["manual_allocation"]["enabled"]:
            self.logger.error(
                "Invalid config: At least one phase must be enabled "
                "(auto_allocation or manual_allocation)"
            )
            return None

        self._ingest_orders()

        # -------- AUTO ALLOCATION --------
        if phases["auto_allocation"]["enabled"]:
            alloc_type = phases["auto_allocation"].get("type", "two_pass")
            self.logger.info("Auto Allocation Phase started for %s Allocation", alloc_type)
            self.engine.auto_allocate(self.now, alloc_type)
            self.logger.info("Auto Allocation Phase Completed.")

        # -------- MANUAL ALLOCATION --------
        if phases["manual_allocation"]["enabled"]:
            self.logger.info("Manual Allocation Phase started")
            self._run_manual_allocation(phases["manual_allocation"].get("requests") or [])
            self.logger.info("Manual Allocation Phase Completed.")

        self._verify_ledger()

        snapshot = self.engine.snapshot(self.now)
        self.logger.info(
            "Allocation summary | Allocated=%d/%d (%.1f%%) | RemainingStock=%d | Orders=%d | Customers=%d",
            snapshot.total_allocated, snapshot.total_stock, snapshot.allocation_ratio * 100,
            snapshot.remaining_stock, snapshot.orders.height, snapshot.customers.height
        )
        self._write_outputs(snapshot)
        return snapshot

    # -------- internal pipeline steps --------

    def _build_feed(self) -> PaginatedOrderFeed:
        ingestion = self.config["ingestion"]
        source = ingestion["source"]
        max_orders = ingestion["max_orders"]

        if source == "csv":
            self.logger.info("Reading Input Files...")
            orders_file = self.base_path / ingestion["input_path"] / ingestion["csv_inputs"]["orders"]
            provider = CsvOrderProvider(
                orders_file, self.config["schemas"]["orders"], self.product, logger=self.logger
            )
            max_orders = min(max_orders, len(provider)) or max_orders
        elif source == "demo":
            demo_cfg = ingestion.get("demo") or {}
            provider = DemoOrderGenerator(
                self.product,
                customers=demo_cfg.get("customers", 20),
                seed=demo_cfg.get("seed"),
                now=self.now,
            )
        else:
            self.logger.error("Unsupported ingestion source: %s", source)
            raise ValueError(f"Unsupported ingestion source: {source}")

        return PaginatedOrderFeed(provider, ingestion["page_size"], max_orders, logger=self.logger)

    def _ingest_orders(self) -> None:
        feed = self._build_feed()
        for batch in feed:
            self.engine.ingest(batch)
        self.logger.info(
            "Ingestion completed | Pages=%d | Orders=%d | Customers=%d",
            feed.current_page, len(self.engine.ledger.orders), len(self.engine.ledger.customers)
        )

    def _run_manual_allocation(self, requests) -> None:
        for request in requests:
            order_id = str(request["order_id"])
            quantity = int(request["quantity"])
            try:
                self.engine.allocate(order_id, quantity)
            except AllocationError as e:
                self.logger.warning("Manual request rejected | Order=%s | %s", order_id, e)
                self.manual_results.append({
                    "order_id": order_id,
                    "requested_quantity": quantity,
                    "status": "REJECTED",
                    "error_type": e.code,
                    "message": e.message,
                    "allocated_qty": None,
                })
                continue

            self.manual_results.append({
                "order_id": order_id,
                "requested_quantity": quantity,
                "status": "APPLIED",
                "error_type": None,
                "message": None,
                "allocated_qty": self.engine.ledger.find_order(order_id).allocated_qty,
            })

    def _verify_ledger(self) -> None:
        violations = self.engine.ledger.verify()
        for violation in violations:
            self.logger.error("Ledger invariant violated: %s", violation)
        if not violations:
            self.logger.debug("Ledger invariants hold.")

    def _write_outputs(self, snapshot: LedgerSnapshot) -> None:
        try:
            out_dir = self.base_path / self.config.get("output_path", "output")
            out_dir.mkdir(parents=True, exist_ok=True)
            self.logger.info("Starting output write phase.")

            orders_file = out_dir / "orders_allocation.csv"
            write_csv(snapshot.orders, orders_file, logger=self.logger)
            self.logger.info("Order allocation written: %s (rows=%d)", orders_file, snapshot.orders.height)

            customers_file = out_dir / "customer_credit.csv"
            write_csv(snapshot.customers, customers_file, logger=self.logger)
            self.logger.info("Customer credit written: %s (rows=%d)", customers_file, snapshot.customers.height)

            if self.config["phases"]["manual_allocation"]["enabled"]:
                manual_df = pl.DataFrame(self.manual_results, schema=MANUAL_RESULT_SCHEMA)
                manual_file = out_dir / "manual_allocation_results.csv"
                write_csv(manual_df, manual_file, logger=self.logger)
                self.logger.info("Manual allocation results written: %s (rows=%d)", manual_file, manual_df.height)
            else:
                self.logger.info("Manual allocation output skipped (phase disabled).")

            self.logger.info("Output write phase completed.")

        except Exception as e:
            self.logger.critical("Failed to write output files: %s", str(e), exc_info=True)
            raise

from datetime import datetime
from pathlib import Path
from typing import Optional

import yaml

from stock_allocator.common.exceptions import ConfigError
from stock_allocator.common.models import to_naive_utc

SUPPORTED_SOURCES = ("demo", "csv")


def read_config(config_path: Path) -> dict:
    with open(config_path, "r") as f:
        try:
            config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Config is not valid YAML: {e}") from e
    validate_config(config)
    return config


def _require(section: dict, key: str, where: str):
    if not isinstance(section, dict) or key not in section:
        raise ConfigError(f"Missing config key '{where}.{key}'" if where else f"Missing config key '{key}'")
    return section[key]


def _positive_int(value, where: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigError(f"'{where}' must be a positive integer, got {value!r}")
    return value


def validate_config(config: dict) -> None:
    """Checks the keys the pipeline relies on. Raises ConfigError on the first problem."""
    inventory = _require(config, "inventory", "")
    _positive_int(_require(inventory, "total_stock", "inventory"), "inventory.total_stock")
    product = _require(inventory, "product", "inventory")
    _require(product, "product_id", "inventory.product")
    _require(product, "name", "inventory.product")

    ingestion = _require(config, "ingestion", "")
    source = _require(ingestion, "source", "ingestion")
    if source not in SUPPORTED_SOURCES:
        raise ConfigError(f"Unsupported ingestion source: {source}")
    _positive_int(_require(ingestion, "page_size", "ingestion"), "ingestion.page_size")
    _positive_int(_require(ingestion, "max_orders", "ingestion"), "ingestion.max_orders")

    if source == "csv":
        _require(ingestion, "input_path", "ingestion")
        _require(_require(ingestion, "csv_inputs", "ingestion"), "orders", "ingestion.csv_inputs")
        _require(_require(config, "schemas", ""), "orders", "schemas")

    phases = _require(config, "phases", "")
    for phase_name in ("auto_allocation", "manual_allocation"):
        phase = _require(phases, phase_name, "phases")
        _require(phase, "enabled", f"phases.{phase_name}")

    for request in phases["manual_allocation"].get("requests") or []:
        _require(request, "order_id", "phases.manual_allocation.requests[]")
        _require(request, "quantity", "phases.manual_allocation.requests[]")

    parse_as_of(config.get("as_of"))


def parse_as_of(value) -> Optional[datetime]:
    """`as_of` pins the scoring clock; None means the current time."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return to_naive_utc(value)
    try:
        return to_naive_utc(datetime.fromisoformat(str(value)))
    except ValueError:
        raise ConfigError(f"'as_of' is not an ISO timestamp: {value!r}")

import argparse
import sys
from pathlib import Path

from stock_allocator.common.exceptions import ConfigError
from stock_allocator.io_modules.config_reader import read_config
from stock_allocator.pipeline.allocation_pipeline import AllocationPipeline
from stock_allocator.utils.logger import EngineLogger

DEFAULT_CONFIG_PATH = Path(__file__).parent / "config" / "config.yaml"


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="stock-allocator",
        description="Allocate a shared stock pool across customer orders.",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help="Path to the YAML run configuration",
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    # 1️⃣ Load config
    try:
        config = read_config(args.config)
    except (OSError, ConfigError) as e:
        print(f"Invalid configuration {args.config}: {e}", file=sys.stderr)
        return 1

    # 2️⃣ Run logger
    logger = EngineLogger(
        base_path=config.get("base_path", "."),
        client=config.get("client", "UNKNOWN"),
        level=config.get("log_level", "INFO"),
    )

    # 3️⃣ Run pipeline
    try:
        snapshot = AllocationPipeline(config, logger).run()
    except Exception:
        logger.exception("Allocation run failed")
        return 1
    finally:
        logger.write_run_footer()
        logger.close()

    return 0 if snapshot is not None else 1


if __name__ == "__main__":
    raise SystemExit(main())

import polars as pl
import re

ORDER_COLUMN_TYPES = {
    "order_id": pl.Utf8,
    "status": pl.Utf8,
    "priority": pl.Utf8,
    "customer_id": pl.Utf8,
    "customer_name": pl.Utf8,
    "credit_limit": pl.Float64,
    "price_per_unit": pl.Float64,
    "requested_qty": pl.Int64,
    "created_at": pl.Utf8,
}


class SchemaResolver:

    @staticmethod
    def _normalize(col: str) -> str:
        """
        Canonical column representation for comparison:
        - strip leading/trailing spaces
        - lowercase
        - collapse spaces and underscores into one space
        """
        col = col.strip().lower()
        col = re.sub(r"[\s_]+", " ", col)
        return col

    @staticmethod
    def resolve(
        df: pl.DataFrame,
        schema_cfg: dict,
        required_keys: list,
        df_name: str,
        logger
    ) -> pl.DataFrame:
        """
        - Validates required columns (case/space insensitive)
        - Renames to semantic names (clean, canonical)
        - Drops extra columns
        """
        missing = [k for k in required_keys if k not in schema_cfg]
        if missing:
            logger.error("Schema config missing keys for %s: %s", df_name, missing)
            raise ValueError("Invalid schema configuration")

        normalized_df_cols = {
            SchemaResolver._normalize(c): c for c in df.columns
        }

        rename_map = {}
        for key in required_keys:
            expected_col = schema_cfg[key]
            norm_expected = SchemaResolver._normalize(expected_col)

            if norm_expected not in normalized_df_cols:
                logger.error(
                    "Missing column '%s' in %s (after normalization)", expected_col, df_name
                )
                raise ValueError("Input file schema mismatch")

            actual_col = normalized_df_cols[norm_expected]

            if df.height and df[actual_col].null_count() == df.height:
                logger.warning("Column '%s' in %s is completely empty", actual_col, df_name)

            rename_map[actual_col] = key

        df = df.rename(rename_map).select(required_keys)
        logger.debug("%s schema resolved. Columns: %s", df_name, df.columns)
        return df

    @staticmethod
    def cast_orders(df: pl.DataFrame, df_name: str, logger) -> pl.DataFrame:
        """
        Strips text columns and casts numeric ones for a resolved orders frame.
        Rows without an order id, or with any other required field blank, are dropped.
        """
        exprs = []
        for col, dtype in ORDER_COLUMN_TYPES.items():
            if dtype == pl.Utf8:
                exprs.append(pl.col(col).cast(pl.Utf8).str.strip_chars())
            else:
                exprs.append(pl.col(col).cast(dtype, strict=True))

        try:
            df = df.with_columns(exprs)
        except (pl.exceptions.InvalidOperationError, pl.exceptions.ComputeError):
            logger.error("Non-numeric values in numeric columns of %s", df_name, exc_info=True)
            raise ValueError(f"{df_name} holds values that cannot be cast")

        before = df.height
        df = df.filter(pl.col("order_id").is_not_null() & (pl.col("order_id") != ""))
        if df.height != before:
            logger.warning("%s: dropped %d rows without order id", df_name, before - df.height)

        complete = pl.all_horizontal(
            [pl.col(col).is_not_null() for col in ORDER_COLUMN_TYPES]
            + [pl.col(col) != "" for col, dtype in ORDER_COLUMN_TYPES.items() if dtype == pl.Utf8]
        )
        incomplete = df.filter(~complete)
        if incomplete.height:
            logger.warning(
                "%s: dropped %d rows with blank required fields | Orders=%s",
                df_name, incomplete.height, incomplete["order_id"].to_list()
            )
            df = df.filter(complete)

        logger.debug("%s cleaned. Rows: %d", df_name, df.height)
        return df

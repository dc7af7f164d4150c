"""Utility functions for the recommendation system.

This module provides helper functions for loading order history and the
item catalog from CSV files, and for saving and loading mining results.
"""

import logging
from pathlib import Path
from typing import List, Optional, Tuple

import joblib
import pandas as pd

from cartrec.recommender.catalog import CatalogItem, ItemCatalog
from cartrec.recommender.models import MiningResult, Order

# Configure module logger
logger = logging.getLogger(__name__)

# Data and artifact filenames
ORDERS_FILENAME = "orders.csv"
ITEMS_FILENAME = "items.csv"
MINING_RESULT_FILENAME = "mining_result.joblib"

# Orders in this state count as completed purchases
COMPLETED_STATUS = "delivered"

ORDER_COLUMNS = {"order_id", "item"}
ITEM_COLUMNS = {"item_id", "name"}


def _read_csv(csv_path: str, required_columns: set) -> pd.DataFrame:
    csv_file = Path(csv_path)
    if not csv_file.exists():
        raise FileNotFoundError(f"CSV file not found: {csv_path}")

    logger.info(f"Loading CSV from {csv_path}")
    df = pd.read_csv(csv_path, dtype=str, keep_default_na=False)

    if not required_columns.issubset(df.columns):
        missing = required_columns - set(df.columns)
        raise ValueError(f"CSV missing required columns: {sorted(missing)}")

    return df


def load_orders_csv(
    csv_path: str,
    status: Optional[str] = COMPLETED_STATUS,
) -> List[Order]:
    """Load order history from a CSV file with one row per order line.

    Expected columns: ``order_id``, ``item`` (item id or display name) and
    optionally ``status``. Rows with a blank item are ignored.

    Args:
        csv_path: Path to the orders CSV.
        status: Only keep orders in this status. None keeps every order.
            Ignored when the file has no ``status`` column.

    Returns:
        Orders in order of first appearance in the file.

    Raises:
        FileNotFoundError: If the CSV file does not exist.
        ValueError: If required columns are missing.

    Example:
        >>> orders = load_orders_csv("data/orders.csv")
        >>> print(f"Loaded {len(orders)} completed orders")
    """
    df = _read_csv(csv_path, ORDER_COLUMNS)

    if "status" not in df.columns:
        df["status"] = COMPLETED_STATUS
    elif status is not None:
        df = df[df["status"] == status]

    df = df[df["item"].str.strip() != ""]

    orders = [
        Order(
            order_id=str(order_id),
            items=tuple(group["item"].str.strip()),
            status=str(group["status"].iloc[0]),
        )
        for order_id, group in df.groupby("order_id", sort=False)
    ]

    logger.info(f"Loaded {len(orders)} orders ({len(df)} order lines)")
    return orders


def load_catalog_csv(csv_path: str) -> ItemCatalog:
    """Load the item catalog from a CSV file.

    Expected columns: ``item_id``, ``name`` and optionally ``hearts``,
    ``rating`` and ``price``. Missing or blank numeric values default to 0
    (``price`` to None).

    Raises:
        FileNotFoundError: If the CSV file does not exist.
        ValueError: If required columns are missing or a numeric column
            holds a non-numeric value.
    """
    df = _read_csv(csv_path, ITEM_COLUMNS)

    def numeric(column: str) -> pd.Series:
        if column not in df.columns:
            return pd.Series([None] * len(df), index=df.index, dtype="float64")
        values = pd.to_numeric(df[column], errors="coerce")
        invalid = values.isna() & (df[column].str.strip() != "")
        if invalid.any():
            raise ValueError(f"Non-numeric values in column '{column}'")
        return values

    hearts = numeric("hearts").fillna(0)
    rating = numeric("rating").fillna(0.0)
    price = numeric("price")

    items = [
        CatalogItem(
            item_id=str(item_id),
            name=str(name),
            hearts=int(h),
            rating=float(r),
            price=None if pd.isna(p) else float(p),
        )
        for item_id, name, h, r, p in zip(
            df["item_id"], df["name"], hearts, rating, price
        )
    ]

    logger.info(f"Loaded catalog with {len(items)} items")
    return ItemCatalog(items)


def get_data_paths(data_dir: str) -> Tuple[Path, Path]:
    """Get the orders and catalog CSV paths for a data directory."""
    data_path = Path(data_dir)
    return data_path / ORDERS_FILENAME, data_path / ITEMS_FILENAME


def check_data_exists(data_dir: str) -> bool:
    """Check if both the orders and the catalog CSV exist in ``data_dir``."""
    orders_path, items_path = get_data_paths(data_dir)
    return orders_path.exists() and items_path.exists()


def save_mining_result(
    result: MiningResult,
    output_dir: str,
    filename: str = MINING_RESULT_FILENAME,
) -> Path:
    """Save a mining result to disk with joblib.

    Creates the directory if it doesn't exist.

    Returns:
        Path of the written file.
    """
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    result_path = output_path / filename
    joblib.dump(result, result_path)
    logger.info(
        f"Saved mining result to {result_path} "
        f"({result.stats.frequent_itemsets_count} itemsets, "
        f"{result.stats.rules_count} rules)"
    )
    return result_path


def load_mining_result(
    model_dir: str,
    filename: str = MINING_RESULT_FILENAME,
) -> MiningResult:
    """Load a mining result saved by ``save_mining_result``.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    result_path = Path(model_dir) / filename
    if not result_path.exists():
        raise FileNotFoundError(f"Mining result not found: {result_path}")

    result = joblib.load(result_path)
    logger.info(f"Loaded mining result from {result_path}")
    return result

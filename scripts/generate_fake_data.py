"""Generate fake catalog and order data for testing and development.

This module creates a synthetic item catalog and order history for the
association-rule recommender. Orders are seeded with a few "bundles" of
items that are often bought together, so mining finds real rules.

Example:
    Run the script directly to generate default data:
        $ python scripts/generate_fake_data.py

    Or import and use programmatically:
        from scripts.generate_fake_data import generate_fake_orders
        orders_df = generate_fake_orders(num_orders=200)
"""

import random
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import pandas as pd

# Default configuration constants
DEFAULT_NUM_ITEMS = 30
DEFAULT_NUM_ORDERS = 500
DEFAULT_BUNDLE_RATE = 0.6
DEFAULT_MAX_EXTRA_ITEMS = 3
DEFAULT_RANDOM_SEED = 42

ORDER_STATUSES = ("delivered", "delivered", "delivered", "pending", "cancelled")

# Item groups that customers tend to buy together
DEFAULT_BUNDLES: Tuple[Tuple[str, ...], ...] = (
    ("1", "2"),
    ("3", "4", "5"),
    ("6", "7"),
)

ITEM_NAMES = (
    "Espresso", "Croissant", "Green Tea", "Scone", "Clotted Cream",
    "Bagel", "Cream Cheese", "Muffin", "Latte", "Brownie",
    "Orange Juice", "Granola", "Yogurt", "Cookie", "Hot Chocolate",
)


def generate_fake_catalog(
    num_items: int = DEFAULT_NUM_ITEMS,
    random_seed: Optional[int] = DEFAULT_RANDOM_SEED,
) -> pd.DataFrame:
    """Generate a synthetic item catalog.

    Args:
        num_items: Number of catalog items. Must be positive.
        random_seed: Seed for reproducible hearts, ratings and prices.

    Returns:
        A DataFrame with columns item_id, name, hearts, rating, price.
        Item ids are the strings "1" to str(num_items).

    Raises:
        ValueError: If num_items is not positive.
    """
    if num_items <= 0:
        raise ValueError("num_items must be positive")

    rng = random.Random(random_seed)
    items = []
    for idx in range(1, num_items + 1):
        base_name = ITEM_NAMES[(idx - 1) % len(ITEM_NAMES)]
        suffix = (idx - 1) // len(ITEM_NAMES)
        items.append({
            "item_id": str(idx),
            "name": base_name if suffix == 0 else f"{base_name} {suffix + 1}",
            "hearts": rng.randint(0, 500),
            "rating": round(rng.uniform(2.5, 5.0), 1),
            "price": round(rng.uniform(1.5, 12.0), 2),
        })

    return pd.DataFrame(items)


def generate_fake_orders(
    num_orders: int = DEFAULT_NUM_ORDERS,
    item_ids: Optional[Sequence[str]] = None,
    bundles: Sequence[Tuple[str, ...]] = DEFAULT_BUNDLES,
    bundle_rate: float = DEFAULT_BUNDLE_RATE,
    max_extra_items: int = DEFAULT_MAX_EXTRA_ITEMS,
    random_seed: Optional[int] = DEFAULT_RANDOM_SEED,
) -> pd.DataFrame:
    """Generate synthetic order lines.

    Each order gets a bundle with probability ``bundle_rate`` plus up to
    ``max_extra_items`` random items. Order status is mostly "delivered",
    with some pending and cancelled orders mixed in.

    Args:
        num_orders: Number of orders. Must be positive.
        item_ids: Catalog item ids to draw from. Defaults to "1".."30".
        bundles: Item groups planted into orders.
        bundle_rate: Probability an order contains one of the bundles.
        max_extra_items: Maximum number of random items added per order.
        random_seed: Seed for reproducible output.

    Returns:
        A DataFrame with one row per order line and columns
        order_id, status, item.

    Raises:
        ValueError: If parameters are out of range.
    """
    if num_orders <= 0:
        raise ValueError("num_orders must be positive")
    if not 0 <= bundle_rate <= 1:
        raise ValueError("bundle_rate must be in [0, 1]")
    if max_extra_items < 0:
        raise ValueError("max_extra_items must be non-negative")

    if item_ids is None:
        item_ids = [str(idx) for idx in range(1, DEFAULT_NUM_ITEMS + 1)]

    rng = random.Random(random_seed)
    lines = []

    for order_num in range(1, num_orders + 1):
        order_items: List[str] = []

        if bundles and rng.random() < bundle_rate:
            order_items.extend(rng.choice(bundles))

        num_extra = rng.randint(0 if order_items else 1, max(max_extra_items, 1))
        order_items.extend(rng.choice(item_ids) for _ in range(num_extra))

        status = rng.choice(ORDER_STATUSES)
        order_id = f"order-{order_num:05d}"
        for item_id in order_items:
            lines.append({"order_id": order_id, "status": status, "item": item_id})

    return pd.DataFrame(lines)


def main() -> None:
    """Generate a catalog and order history and save them to data/."""
    print(f"Generating {DEFAULT_NUM_ITEMS} catalog items and {DEFAULT_NUM_ORDERS} orders...")

    try:
        catalog_df = generate_fake_catalog()
        orders_df = generate_fake_orders(item_ids=list(catalog_df["item_id"]))
    except ValueError as e:
        print(f"Error generating data: {e}")
        return

    data_dir = Path(__file__).parent.parent / "data"
    data_dir.mkdir(exist_ok=True)

    items_path = data_dir / "items.csv"
    orders_path = data_dir / "orders.csv"
    catalog_df.to_csv(items_path, index=False)
    orders_df.to_csv(orders_path, index=False)

    print(f"\nData generated successfully!")
    print(f"Catalog saved to: {items_path}")
    print(f"Orders saved to: {orders_path}")
    print(f"\nData summary:")
    print(f"  Catalog items: {len(catalog_df)}")
    print(f"  Order lines: {len(orders_df)}")
    print(f"  Orders: {orders_df['order_id'].nunique()}")
    print(f"  Status counts:")
    for status, count in orders_df.groupby("status")["order_id"].nunique().items():
        print(f"    {status}: {count}")


if __name__ == "__main__":
    main()

"""CLI script for getting cart recommendations.

Useful for testing and evaluation. Mines the order history (or loads rules
saved by mine_rules.py), gets recommendations for the given cart items and
prints them to the console.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

# Add the src directory to Python path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

from cartrec.recommender.apriori import (
    DEFAULT_MIN_CONFIDENCE,
    DEFAULT_MIN_SUPPORT,
    MiningConfig,
)
from cartrec.recommender.scorer import DEFAULT_LIMIT
from cartrec.recommender.service import RecommendationResult, RecommendationService
from cartrec.recommender.utils import (
    check_data_exists,
    get_data_paths,
    load_catalog_csv,
    load_mining_result,
    load_orders_csv,
)

# Setup logging
logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s: %(message)s"
)
logger = logging.getLogger(__name__)


def get_recommendations(
    cart_items: list[str],
    data_dir: str = "data",
    limit: int = DEFAULT_LIMIT,
    min_support: float = DEFAULT_MIN_SUPPORT,
    min_confidence: float = DEFAULT_MIN_CONFIDENCE,
    rules_dir: Optional[str] = None,
) -> RecommendationResult:
    """Get recommendations for a cart.

    Args:
        cart_items: Item ids in the cart
        data_dir: Directory with orders.csv and items.csv
        limit: Number of recommendations to return
        min_support: Minimum itemset support
        min_confidence: Minimum rule confidence
        rules_dir: Directory with a saved mining result to score against
            instead of mining the order history

    Returns:
        RecommendationResult (possibly a popularity fallback)
    """
    if not check_data_exists(data_dir):
        print(f"Error: orders.csv and items.csv are required in {data_dir}", file=sys.stderr)
        sys.exit(1)

    try:
        orders_path, items_path = get_data_paths(data_dir)
        catalog = load_catalog_csv(str(items_path))
        orders = load_orders_csv(str(orders_path))
        mining_result = load_mining_result(rules_dir) if rules_dir else None

        service = RecommendationService(
            config=MiningConfig(min_support=min_support, min_confidence=min_confidence)
        )
        return service.recommend_for_cart(
            cart_items, orders, catalog, limit=limit, mining_result=mining_result
        )

    except FileNotFoundError as e:
        print("Error: Required file not found", file=sys.stderr)
        print(f"  {e}", file=sys.stderr)
        sys.exit(1)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def print_result(result: RecommendationResult, explain: bool = False) -> None:
    """Print recommendations, or the popular items when falling back."""
    if result.fallback:
        print(f"\n{result.message or 'Showing popular items'}:")
        for item in result.popular_items:
            print(f"  {item.item_id:>6}  {item.name}  (hearts={item.hearts}, rating={item.rating})")
        print()
        return

    print(f"\nYou might also like:")
    for rec in result.recommendations:
        name = rec.item.name if rec.item is not None else rec.item_id
        print(
            f"  {rec.item_id:>6}  {name}  "
            f"confidence={rec.confidence_percent}% support={rec.support_percent}%  "
            f"based on: {', '.join(rec.based_on)}"
        )
        if explain and rec.matching_rule is not None:
            rule = rec.matching_rule
            print(
                f"          rule: {list(rule.antecedent)} -> {list(rule.consequent)} "
                f"(confidence={rule.confidence:.3f}, lift={rule.lift:.2f}, "
                f"scorer score={rec.score:.3f})"
            )

    if explain:
        print(f"\nDebug: {result.debug}")
    print()


def main() -> None:
    """Main CLI function."""
    parser = argparse.ArgumentParser(
        description="Get product recommendations for a shopping cart",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/predict_cli.py 1
  python scripts/predict_cli.py 3 4 --limit 3
  python scripts/predict_cli.py 6 --min-support 0.02 --explain
  python scripts/predict_cli.py 1 --rules-dir models
        """
    )

    parser.add_argument(
        "cart_items",
        nargs="+",
        help="Item ids currently in the cart"
    )

    parser.add_argument(
        "--limit",
        type=int,
        default=DEFAULT_LIMIT,
        help=f"Number of recommendations to return (default: {DEFAULT_LIMIT})"
    )

    parser.add_argument(
        "--data-dir",
        type=str,
        default="data",
        help="Directory containing orders.csv and items.csv (default: data)"
    )

    parser.add_argument(
        "--min-support",
        type=float,
        default=DEFAULT_MIN_SUPPORT,
        help=f"Minimum itemset support (default: {DEFAULT_MIN_SUPPORT})"
    )

    parser.add_argument(
        "--min-confidence",
        type=float,
        default=DEFAULT_MIN_CONFIDENCE,
        help=f"Minimum rule confidence (default: {DEFAULT_MIN_CONFIDENCE})"
    )

    parser.add_argument(
        "--rules-dir",
        type=str,
        default=None,
        help="Directory with a mining result saved by mine_rules.py (default: mine on the fly)"
    )

    parser.add_argument(
        "--explain",
        action="store_true",
        help="Show the rule behind each recommendation"
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging"
    )

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.INFO)

    result = get_recommendations(
        cart_items=args.cart_items,
        data_dir=args.data_dir,
        limit=args.limit,
        min_support=args.min_support,
        min_confidence=args.min_confidence,
        rules_dir=args.rules_dir,
    )

    print(f"\nCart: {args.cart_items}")
    print_result(result, explain=args.explain)


if __name__ == "__main__":
    main()

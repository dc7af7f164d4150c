"""Command-line interface for mining association rules from order data.

This script mines frequent itemsets and association rules from the order
history and catalog CSV files, prints a summary of the strongest rules and
optionally saves the full result with joblib.

Example:
    Mine with default settings:
        $ python scripts/mine_rules.py data

    Mine with custom thresholds and save the result:
        $ python scripts/mine_rules.py data \\
            --min-support 0.02 \\
            --min-confidence 0.5 \\
            --output-dir models
"""

import argparse
import logging
import sys
from pathlib import Path

# Add the src directory to Python path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

from cartrec.recommender.apriori import (
    DEFAULT_MIN_CONFIDENCE,
    DEFAULT_MIN_SUPPORT,
    AprioriMiner,
    MiningConfig,
)
from cartrec.recommender.counting import COUNTING_STRATEGIES, SCAN
from cartrec.recommender.transactions import build_transactions
from cartrec.recommender.utils import (
    check_data_exists,
    get_data_paths,
    load_catalog_csv,
    load_orders_csv,
    save_mining_result,
)

DEFAULT_TOP_RULES = 10


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the script.

    Args:
        verbose: If True, set log level to DEBUG. Otherwise, use INFO.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def parse_arguments() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Mine association rules from order history CSV data.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Mine with default settings
  python scripts/mine_rules.py data

  # Lower the thresholds and use the sparse-matrix counter
  python scripts/mine_rules.py data --min-support 0.02 --counting matrix

  # Save the mining result for later inspection
  python scripts/mine_rules.py data --output-dir models
        """,
    )

    parser.add_argument(
        "data_dir",
        type=str,
        help="Directory containing orders.csv and items.csv",
    )
    parser.add_argument(
        "--min-support",
        type=float,
        default=DEFAULT_MIN_SUPPORT,
        help=f"Minimum itemset support in (0, 1] (default: {DEFAULT_MIN_SUPPORT})",
    )
    parser.add_argument(
        "--min-confidence",
        type=float,
        default=DEFAULT_MIN_CONFIDENCE,
        help=f"Minimum rule confidence in (0, 1] (default: {DEFAULT_MIN_CONFIDENCE})",
    )
    parser.add_argument(
        "--counting",
        type=str,
        choices=list(COUNTING_STRATEGIES),
        default=SCAN,
        help=f"Support counting strategy (default: {SCAN})",
    )
    parser.add_argument(
        "--max-length",
        type=int,
        default=None,
        help="Largest itemset size to search for (default: unbounded)",
    )
    parser.add_argument(
        "--top",
        type=int,
        default=DEFAULT_TOP_RULES,
        help=f"Number of rules to print (default: {DEFAULT_TOP_RULES})",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help="Directory where the mining result is saved (default: not saved)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging (DEBUG level)",
    )

    return parser.parse_args()


def main() -> int:
    """Main entry point for the mining script.

    Returns:
        Exit code: 0 on success, 1 on error.
    """
    try:
        args = parse_arguments()
        setup_logging(verbose=args.verbose)
        logger = logging.getLogger(__name__)

        config = MiningConfig(
            min_support=args.min_support,
            min_confidence=args.min_confidence,
            counting=args.counting,
            max_length=args.max_length,
        )

        if not check_data_exists(args.data_dir):
            logger.error(
                f"Missing orders.csv or items.csv in data directory: {args.data_dir}"
            )
            return 1

        orders_path, items_path = get_data_paths(args.data_dir)
        catalog = load_catalog_csv(str(items_path))
        orders = load_orders_csv(str(orders_path))
        transactions = build_transactions(orders, catalog.resolve)

        logger.info("=" * 70)
        logger.info("Mining Configuration")
        logger.info("=" * 70)
        logger.info(f"Data directory:  {args.data_dir}")
        logger.info(f"Min support:     {config.min_support}")
        logger.info(f"Min confidence:  {config.min_confidence}")
        logger.info(f"Counting:        {config.counting}")
        logger.info(f"Max length:      {config.max_length or 'unbounded'}")
        logger.info("=" * 70)

        result = AprioriMiner(config).run(transactions)

        logger.info("=" * 70)
        logger.info("Mining Summary")
        logger.info("=" * 70)
        logger.info(f"Completed orders:   {len(orders)}")
        logger.info(f"Transactions:       {result.stats.total_transactions}")
        logger.info(f"Frequent itemsets:  {result.stats.frequent_itemsets_count}")
        logger.info(f"Rules:              {result.stats.rules_count}")
        logger.info("=" * 70)

        for rule in result.rules[: args.top]:
            antecedent = ", ".join(catalog.names_for(rule.antecedent))
            consequent = ", ".join(catalog.names_for(rule.consequent))
            logger.info(
                f"{{{antecedent}}} -> {{{consequent}}}  "
                f"confidence={rule.confidence:.2%} support={rule.support:.2%} "
                f"lift={rule.lift:.2f}"
            )

        if args.output_dir:
            result_path = save_mining_result(result, args.output_dir)
            logger.info(f"Mining result saved to: {result_path.absolute()}")

        return 0

    except FileNotFoundError as e:
        logging.error(f"File error: {e}")
        return 1
    except ValueError as e:
        logging.error(f"Validation error: {e}")
        return 1
    except KeyboardInterrupt:
        logging.warning("Mining interrupted by user")
        return 130
    except Exception as e:
        logging.error(f"Unexpected error: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())

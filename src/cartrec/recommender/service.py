"""Recommendation service tying the pipeline together.

The service is the boundary between the pure mining/scoring functions and
the caller: it builds transactions from orders, mines rules (through the
optional cache), scores and enriches recommendations, and degrades to a
popularity ranking when there is not enough history or no rule fires.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from cartrec.recommender.apriori import (
    AprioriMiner,
    MiningConfig,
    count_rule_transactions,
)
from cartrec.recommender.cache import MiningCache
from cartrec.recommender.catalog import (
    DEFAULT_POPULAR_LIMIT,
    CatalogItem,
    ItemCatalog,
    rank_popular,
)
from cartrec.recommender.models import (
    EnrichedRecommendation,
    Itemset,
    MiningResult,
    MiningStats,
    Order,
    Rule,
    Transaction,
)
from cartrec.recommender.scorer import DEFAULT_LIMIT, enrich, recommend
from cartrec.recommender.transactions import build_transactions

# Configure module logger
logger = logging.getLogger(__name__)

# Fewer transactions than this and rules are not worth mining
MIN_TRANSACTIONS = 3
DEFAULT_TOP_N = 10

INSUFFICIENT_HISTORY_MESSAGE = "Showing popular items (insufficient order history)"
NO_MATCHING_RULES_MESSAGE = "Showing popular items (no matching rules for cart)"
NO_ORDERS_MESSAGE = "No order history available for training"
TRAINED_MESSAGE = "Model trained successfully"


@dataclass(frozen=True)
class RecommendationResult:
    """Recommendations for a cart, or the popularity fallback.

    Exactly one of ``recommendations`` and ``popular_items`` is filled:
    rule-based results carry metrics, fallback results do not.
    """

    recommendations: Tuple[EnrichedRecommendation, ...] = ()
    popular_items: Tuple[CatalogItem, ...] = ()
    fallback: bool = False
    message: Optional[str] = None
    debug: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TrainingSummary:
    success: bool
    message: str
    total_orders: int = 0
    stats: Optional[MiningStats] = None


@dataclass(frozen=True)
class RuleSummary:
    """A rule together with the number of transactions containing it."""

    rule: Rule
    transaction_count: int


@dataclass(frozen=True)
class RecommendationStats:
    total_orders: int
    total_transactions: int
    frequent_itemsets_count: int
    rules_count: int
    top_combinations: Tuple[Itemset, ...] = ()
    top_rules: Tuple[RuleSummary, ...] = ()


class RecommendationService:
    """Cart recommendation pipeline with popularity fallback."""

    def __init__(
        self,
        config: Optional[MiningConfig] = None,
        cache: Optional[MiningCache] = None,
        popular_limit: int = DEFAULT_POPULAR_LIMIT,
    ):
        self.config = config or MiningConfig()
        self.cache = cache
        self.popular_limit = popular_limit

        logger.info(
            f"Initialized RecommendationService: "
            f"min_support={self.config.min_support}, "
            f"min_confidence={self.config.min_confidence}, "
            f"counting={self.config.counting}, "
            f"cache={'enabled' if cache is not None else 'disabled'}"
        )

    def _mine(self, transactions: Sequence[Transaction]) -> MiningResult:
        if self.cache is not None:
            return self.cache.get_or_mine(
                transactions,
                self.config,
                lambda txns, config: AprioriMiner(config).run(txns),
            )
        return AprioriMiner(self.config).run(transactions)

    def _fallback(
        self,
        catalog: ItemCatalog,
        message: str,
        debug: Dict[str, Any],
    ) -> RecommendationResult:
        popular = rank_popular(catalog, limit=self.popular_limit)
        logger.info(
            "Falling back to popular items",
            extra={"reason": message, "num_items": len(popular)},
        )
        return RecommendationResult(
            popular_items=tuple(popular),
            fallback=True,
            message=message,
            debug=debug,
        )

    def recommend_for_cart(
        self,
        cart_items: Iterable[str],
        orders: Iterable[Order],
        catalog: ItemCatalog,
        limit: int = DEFAULT_LIMIT,
        mining_result: Optional[MiningResult] = None,
    ) -> RecommendationResult:
        """Recommend items for a cart from the full order history.

        Args:
            cart_items: Item ids in the current cart.
            orders: Completed historical orders.
            catalog: Item catalog used to resolve order lines and names.
            limit: Maximum number of rule-based recommendations.
            mining_result: Previously mined rules to score against. When
                given, the order history is not mined again.

        Returns:
            RecommendationResult, flagged as a fallback when fewer than
            ``MIN_TRANSACTIONS`` transactions exist or no rule fires.
        """
        start_time = time.time()
        basket = list(dict.fromkeys(cart_items))
        orders = list(orders)

        transactions = build_transactions(orders, catalog.resolve)
        debug: Dict[str, Any] = {
            "total_orders": len(orders),
            "total_transactions": len(transactions),
        }

        if len(transactions) < MIN_TRANSACTIONS:
            return self._fallback(catalog, INSUFFICIENT_HISTORY_MESSAGE, debug)

        result = mining_result
        if result is None:
            result = self._mine(transactions)
        debug["rules_generated"] = len(result.rules)

        recommendations = recommend(basket, result.rules, limit=limit)
        enriched = enrich(recommendations, result.rules, transactions, basket, catalog)

        if not enriched:
            return self._fallback(catalog, NO_MATCHING_RULES_MESSAGE, debug)

        debug["recommendations_returned"] = len(enriched)
        logger.info(
            "Recommendations generated",
            extra={
                "basket_size": len(basket),
                "num_recommendations": len(enriched),
                "total_time_ms": round((time.time() - start_time) * 1000, 2),
            },
        )

        return RecommendationResult(recommendations=tuple(enriched), debug=debug)

    def train(self, orders: Iterable[Order], catalog: ItemCatalog) -> TrainingSummary:
        """Mine the order history and report what was found.

        Clears the mining cache first, since training is triggered when
        new orders have been recorded.
        """
        orders = list(orders)
        if not orders:
            logger.warning("No order history available for training")
            return TrainingSummary(success=False, message=NO_ORDERS_MESSAGE)

        if self.cache is not None:
            self.cache.invalidate()

        transactions = build_transactions(orders, catalog.resolve)
        result = self._mine(transactions)

        return TrainingSummary(
            success=True,
            message=TRAINED_MESSAGE,
            total_orders=len(orders),
            stats=result.stats,
        )

    def stats(
        self,
        orders: Iterable[Order],
        catalog: ItemCatalog,
        top_n: int = DEFAULT_TOP_N,
    ) -> RecommendationStats:
        """Summarize the strongest item combinations and rules.

        Returns:
            RecommendationStats with the ``top_n`` multi-item itemsets by
            support and the ``top_n`` rules by confidence.

        Raises:
            ValueError: If ``top_n`` is negative.
        """
        if top_n < 0:
            raise ValueError(f"top_n must be non-negative, got {top_n}")

        orders = list(orders)
        transactions = build_transactions(orders, catalog.resolve)
        result = self._mine(transactions)

        combinations = [
            itemset for itemset in result.frequent_itemsets if itemset.size >= 2
        ]
        combinations.sort(key=lambda itemset: itemset.support, reverse=True)

        top_rules: List[RuleSummary] = [
            RuleSummary(
                rule=rule,
                transaction_count=count_rule_transactions(
                    rule.antecedent, rule.consequent, transactions
                ),
            )
            for rule in result.rules[:top_n]
        ]

        return RecommendationStats(
            total_orders=len(orders),
            total_transactions=len(transactions),
            frequent_itemsets_count=result.stats.frequent_itemsets_count,
            rules_count=result.stats.rules_count,
            top_combinations=tuple(combinations[:top_n]),
            top_rules=tuple(top_rules),
        )

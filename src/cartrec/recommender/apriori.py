"""Frequent itemset and association rule mining with the Apriori algorithm.

This module implements the level-wise Apriori search over a set of
transactions: it finds frequent single items, repeatedly joins the previous
layer of frequent itemsets into larger candidates and keeps those meeting
the minimum support. Association rules are then derived from every frequent
itemset with two or more items and scored by confidence and lift.

Everything is recomputed from scratch on each call; nothing is retained
between runs.
"""

import logging
import time
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from cartrec.recommender.counting import (
    COUNTING_STRATEGIES,
    SCAN,
    SupportCounter,
    make_counter,
)
from cartrec.recommender.models import (
    Itemset,
    MiningResult,
    MiningStats,
    Rule,
    Transaction,
)

# Configure module logger
logger = logging.getLogger(__name__)

# Mining configuration constants
DEFAULT_MIN_SUPPORT = 0.05
DEFAULT_MIN_CONFIDENCE = 0.6

# Consequent support used for lift when the consequent itself is not frequent
LIFT_SUPPORT_FLOOR = 0.01


@dataclass(frozen=True)
class MiningConfig:
    """Parameters for one mining run.

    Attributes:
        min_support: Minimum fraction of transactions an itemset must
            appear in, in (0, 1].
        min_confidence: Minimum rule confidence, in (0, 1].
        counting: Support counting strategy, "scan" or "matrix".
        max_length: Optional largest itemset size to search for.
        max_candidates: Optional ceiling on the size of a candidate layer.
            The search stops when a layer would exceed it.
    """

    min_support: float = DEFAULT_MIN_SUPPORT
    min_confidence: float = DEFAULT_MIN_CONFIDENCE
    counting: str = SCAN
    max_length: Optional[int] = None
    max_candidates: Optional[int] = None

    def __post_init__(self) -> None:
        if not 0 < self.min_support <= 1:
            raise ValueError(
                f"min_support must be in (0, 1], got {self.min_support}"
            )
        if not 0 < self.min_confidence <= 1:
            raise ValueError(
                f"min_confidence must be in (0, 1], got {self.min_confidence}"
            )
        if self.counting not in COUNTING_STRATEGIES:
            raise ValueError(
                f"counting must be one of {list(COUNTING_STRATEGIES)}, "
                f"got '{self.counting}'"
            )
        if self.max_length is not None and self.max_length < 1:
            raise ValueError(f"max_length must be positive, got {self.max_length}")
        if self.max_candidates is not None and self.max_candidates < 1:
            raise ValueError(
                f"max_candidates must be positive, got {self.max_candidates}"
            )


def generate_candidates(
    prev_itemsets: Sequence[Tuple[str, ...]],
    k: int,
) -> List[Tuple[str, ...]]:
    """Join pairs of (k-1)-itemsets into candidate k-itemsets.

    Every unordered pair whose union has exactly ``k`` items produces a
    candidate, which means the two itemsets share k-2 items. Candidates are
    sorted tuples and each appears once, in first-generated order.
    """
    candidates: List[Tuple[str, ...]] = []
    seen = set()
    n = len(prev_itemsets)

    for i in range(n):
        first = frozenset(prev_itemsets[i])
        for j in range(i + 1, n):
            union = first.union(prev_itemsets[j])
            if len(union) != k:
                continue

            candidate = tuple(sorted(union))
            if candidate not in seen:
                seen.add(candidate)
                candidates.append(candidate)

    return candidates


def generate_subsets(items: Sequence[str]) -> List[Tuple[str, ...]]:
    """All 2^k subsets of ``items``, including the empty and the full set.

    Built by subset doubling: start from the empty set and, for each item,
    extend every subset collected so far by that item.
    """
    subsets: List[Tuple[str, ...]] = [()]
    for item in items:
        subsets.extend([subset + (item,) for subset in subsets])
    return subsets


def count_rule_transactions(
    antecedent: Iterable[str],
    consequent: Iterable[str],
    transactions: Sequence[Transaction],
) -> int:
    """Number of transactions containing both sides of a rule."""
    wanted = frozenset(antecedent) | frozenset(consequent)
    return sum(1 for transaction in transactions if wanted <= transaction)


class AprioriMiner:
    """Level-wise frequent itemset and association rule miner."""

    def __init__(self, config: Optional[MiningConfig] = None):
        self.config = config or MiningConfig()

    @property
    def min_support(self) -> float:
        return self.config.min_support

    @property
    def min_confidence(self) -> float:
        return self.config.min_confidence

    def _frequent_single_items(
        self,
        transactions: Sequence[Transaction],
    ) -> List[Itemset]:
        item_counts: Dict[str, int] = {}
        for transaction in transactions:
            for item in transaction:
                item_counts[item] = item_counts.get(item, 0) + 1

        n = len(transactions)
        layer = []
        for item in sorted(item_counts):
            support = item_counts[item] / n
            if support >= self.min_support:
                layer.append(Itemset(items=(item,), support=support))
        return layer

    def find_frequent_itemsets(
        self,
        transactions: Sequence[Transaction],
        counter: Optional[SupportCounter] = None,
    ) -> List[Itemset]:
        """Find every itemset whose support reaches ``min_support``.

        Args:
            transactions: Transactions to mine.
            counter: Support counter to use for k >= 2. Defaults to the
                strategy named in the config.

        Returns:
            Frequent itemsets, layer by layer (all 1-itemsets first, then
            2-itemsets, and so on). Empty for an empty transaction set.
        """
        if not transactions:
            return []

        if counter is None:
            counter = make_counter(self.config.counting, transactions)

        current = self._frequent_single_items(transactions)
        frequent_itemsets = list(current)
        logger.debug(f"Layer 1: {len(current)} frequent itemsets")

        k = 2
        while current:
            if self.config.max_length is not None and k > self.config.max_length:
                logger.debug(f"Reached max_length={self.config.max_length}, stopping")
                break

            candidates = generate_candidates([itemset.items for itemset in current], k)

            if (
                self.config.max_candidates is not None
                and len(candidates) > self.config.max_candidates
            ):
                logger.warning(
                    "Candidate layer exceeds ceiling, stopping search",
                    extra={
                        "k": k,
                        "num_candidates": len(candidates),
                        "max_candidates": self.config.max_candidates,
                    },
                )
                break

            current = counter.filter(candidates, self.min_support)
            frequent_itemsets.extend(current)

            logger.debug(
                f"Layer {k}: {len(candidates)} candidates, "
                f"{len(current)} frequent itemsets"
            )
            k += 1

        return frequent_itemsets

    def generate_rules(self, frequent_itemsets: Sequence[Itemset]) -> List[Rule]:
        """Derive association rules from frequent itemsets.

        For every itemset with at least two items, each non-empty proper
        subset is tried as the antecedent, with the remaining items as the
        consequent. Rules below ``min_confidence`` are discarded. When the
        consequent is not itself frequent, its support is taken as
        ``LIFT_SUPPORT_FLOOR`` for the lift computation.

        Returns:
            Rules sorted by descending confidence (stable for ties).
        """
        support_by_items: Dict[FrozenSet[str], float] = {
            itemset.as_set(): itemset.support for itemset in frequent_itemsets
        }

        rules: List[Rule] = []
        for itemset in frequent_itemsets:
            if itemset.size < 2:
                continue

            for antecedent in generate_subsets(itemset.items):
                if len(antecedent) == 0 or len(antecedent) == itemset.size:
                    continue

                antecedent_support = support_by_items.get(frozenset(antecedent), 0.0)
                if antecedent_support <= 0:
                    continue

                confidence = itemset.support / antecedent_support
                if confidence < self.min_confidence:
                    continue

                consequent = tuple(
                    item for item in itemset.items if item not in antecedent
                )
                consequent_support = support_by_items.get(
                    frozenset(consequent), LIFT_SUPPORT_FLOOR
                )

                rules.append(
                    Rule(
                        antecedent=tuple(sorted(antecedent)),
                        consequent=consequent,
                        support=itemset.support,
                        confidence=confidence,
                        lift=confidence / consequent_support,
                    )
                )

        return sorted(rules, key=lambda rule: rule.confidence, reverse=True)

    def run(self, transactions: Sequence[Transaction]) -> MiningResult:
        """Mine frequent itemsets and rules from ``transactions``.

        An empty transaction set yields an empty result rather than an error.
        """
        start_time = time.time()
        logger.info(
            "Starting Apriori mining",
            extra={
                "num_transactions": len(transactions),
                "min_support": self.min_support,
                "min_confidence": self.min_confidence,
                "counting": self.config.counting,
            },
        )

        if not transactions:
            logger.info("No transactions to mine")
            return MiningResult.empty()

        frequent_itemsets = self.find_frequent_itemsets(transactions)
        rules = self.generate_rules(frequent_itemsets)

        logger.info(
            "Mining completed",
            extra={
                "num_transactions": len(transactions),
                "num_frequent_itemsets": len(frequent_itemsets),
                "num_rules": len(rules),
                "mining_time_ms": round((time.time() - start_time) * 1000, 2),
            },
        )

        return MiningResult(
            frequent_itemsets=tuple(frequent_itemsets),
            rules=tuple(rules),
            stats=MiningStats(
                total_transactions=len(transactions),
                frequent_itemsets_count=len(frequent_itemsets),
                rules_count=len(rules),
            ),
        )


def mine(
    transactions: Sequence[Transaction],
    min_support: float = DEFAULT_MIN_SUPPORT,
    min_confidence: float = DEFAULT_MIN_CONFIDENCE,
    **options,
) -> MiningResult:
    """Mine frequent itemsets and association rules.

    This is the functional entry point. Parameters are validated before any
    work is done.

    Args:
        transactions: Transactions as sets of item ids.
        min_support: Minimum itemset support, in (0, 1].
        min_confidence: Minimum rule confidence, in (0, 1].
        **options: Extra ``MiningConfig`` fields (``counting``,
            ``max_length``, ``max_candidates``).

    Returns:
        MiningResult with frequent itemsets, rules and counters.

    Raises:
        ValueError: If a parameter is out of range.

    Example:
        >>> result = mine(
        ...     [{"A", "B"}, {"A", "B"}, {"A", "C"}, {"B", "C"}, {"A", "B", "C"}],
        ...     min_support=0.4,
        ...     min_confidence=0.5,
        ... )
        >>> result.rules[0].antecedent, result.rules[0].consequent
        (('A',), ('B',))
        >>> round(result.rules[0].confidence, 2)
        0.75
    """
    config = MiningConfig(
        min_support=min_support,
        min_confidence=min_confidence,
        **options,
    )
    return AprioriMiner(config).run([frozenset(t) for t in transactions])

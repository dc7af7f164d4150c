"""Rule-based recommendation scoring for a shopping cart.

Selects the association rules that fire for the current basket, keeps the
best-scoring proposal per item, and recomputes exact confidence and support
for the basket that was actually queried.
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence

from cartrec.recommender.catalog import ItemCatalog
from cartrec.recommender.models import (
    EnrichedRecommendation,
    Recommendation,
    Rule,
    Transaction,
)

# Configure module logger
logger = logging.getLogger(__name__)

# Default parameters
DEFAULT_LIMIT = 5


def recommend(
    basket: Iterable[str],
    rules: Sequence[Rule],
    limit: int = DEFAULT_LIMIT,
) -> List[Recommendation]:
    """Rank recommendations for a basket from mined rules.

    A rule fires when its antecedent shares at least one item with the
    basket. Each consequent item not already in the basket becomes a
    candidate scored with the rule's confidence (its support when the
    confidence is zero). When several rules propose the same item only the
    strictly highest score is kept, together with the basket items that
    triggered that rule.

    Args:
        basket: Item ids currently in the cart.
        rules: Mined association rules.
        limit: Maximum number of recommendations to return.

    Returns:
        At most ``limit`` recommendations, highest score first, one per item.

    Raises:
        ValueError: If ``limit`` is negative.

    Example:
        >>> rule = Rule(("A",), ("B",), support=0.6, confidence=0.75, lift=0.94)
        >>> [(r.item_id, r.score, r.based_on) for r in recommend({"A"}, [rule])]
        [('B', 0.75, ('A',))]
    """
    if limit < 0:
        raise ValueError(f"limit must be non-negative, got {limit}")

    basket_items = set(basket)
    recommendations: Dict[str, Recommendation] = {}

    for rule in rules:
        matching_items = tuple(item for item in rule.antecedent if item in basket_items)
        if not matching_items:
            continue

        score = rule.confidence or rule.support
        for item_id in rule.consequent:
            if item_id in basket_items:
                continue

            existing = recommendations.get(item_id)
            if existing is not None and score <= existing.score:
                continue

            recommendations[item_id] = Recommendation(
                item_id=item_id,
                score=score,
                confidence=rule.confidence,
                support=rule.support,
                based_on=matching_items,
                rule=rule,
            )

    ranked = sorted(recommendations.values(), key=lambda rec: rec.score, reverse=True)
    ranked = ranked[:limit]

    logger.debug(
        "Scored recommendations",
        extra={
            "basket_size": len(basket_items),
            "num_rules": len(rules),
            "num_candidates": len(recommendations),
            "num_recommendations": len(ranked),
        },
    )
    for rec in ranked:
        logger.debug(
            f"Item: {rec.item_id}, Confidence: {rec.confidence:.2%}, "
            f"Support: {rec.support:.2%}"
        )

    return ranked


def joint_support(
    item_id: str,
    based_on: Iterable[str],
    transactions: Sequence[Transaction],
) -> float:
    """Fraction of transactions holding ``item_id`` and any of ``based_on``.

    Returns 0.0 when there are no transactions.
    """
    if not transactions:
        return 0.0

    triggers = frozenset(based_on)
    pair_count = sum(
        1
        for transaction in transactions
        if item_id in transaction and not triggers.isdisjoint(transaction)
    )
    return pair_count / len(transactions)


def _find_matching_rule(
    item_id: str,
    rules: Sequence[Rule],
    basket_items: frozenset,
) -> Optional[Rule]:
    for rule in rules:
        if item_id in rule.consequent and not basket_items.isdisjoint(rule.antecedent):
            return rule
    return None


def enrich(
    recommendations: Sequence[Recommendation],
    rules: Sequence[Rule],
    transactions: Sequence[Transaction],
    basket: Iterable[str],
    catalog: Optional[ItemCatalog] = None,
) -> List[EnrichedRecommendation]:
    """Recompute exact metrics for recommendations against the real basket.

    A recommendation may have come from a rule whose antecedent only
    partly overlaps the basket, so the rule-level numbers are replaced:

    - confidence comes from the first rule (in rule order) that implies
      the item and whose antecedent intersects the basket;
    - support becomes the share of transactions containing the item
      together with at least one of the basket items that triggered it.

    Args:
        recommendations: Output of ``recommend``.
        rules: The rules the recommendations were scored from.
        transactions: Full transaction log used for mining.
        basket: Item ids currently in the cart.
        catalog: Optional catalog used to resolve display names. When
            given, recommendations for items missing from it are dropped.

    Returns:
        Enriched recommendations in the input order.
    """
    basket_items = frozenset(basket)
    enriched: List[EnrichedRecommendation] = []

    for rec in recommendations:
        item = None
        if catalog is not None:
            item = catalog.get(rec.item_id)
            if item is None:
                logger.warning(
                    "Recommended item missing from catalog, dropping it",
                    extra={"item_id": rec.item_id},
                )
                continue

        confidence = rec.score or 0.0
        matching_rule = _find_matching_rule(rec.item_id, rules, basket_items)
        if matching_rule is not None:
            confidence = matching_rule.confidence

        support = rec.support
        if rec.based_on:
            support = joint_support(rec.item_id, rec.based_on, transactions)

        if catalog is not None:
            based_on_names = tuple(catalog.names_for(rec.based_on))
        else:
            based_on_names = rec.based_on

        enriched.append(
            EnrichedRecommendation(
                item_id=rec.item_id,
                recommendation_score=confidence,
                confidence=confidence,
                support=support,
                based_on=based_on_names,
                based_on_ids=rec.based_on,
                score=rec.score,
                item=item,
                matching_rule=matching_rule,
            )
        )

    return enriched

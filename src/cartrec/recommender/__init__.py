"""Association-rule mining module for CartRec.

This module turns completed orders into transactions, mines frequent
itemsets and association rules with the Apriori algorithm, and scores
rule-based recommendations for the items currently in a cart.
"""

from cartrec.recommender.apriori import AprioriMiner, MiningConfig, mine
from cartrec.recommender.models import (
    EnrichedRecommendation,
    Itemset,
    MiningResult,
    MiningStats,
    Order,
    Recommendation,
    Rule,
)
from cartrec.recommender.scorer import enrich, recommend

__all__ = [
    "AprioriMiner",
    "EnrichedRecommendation",
    "Itemset",
    "MiningConfig",
    "MiningResult",
    "MiningStats",
    "Order",
    "Recommendation",
    "Rule",
    "enrich",
    "mine",
    "recommend",
]

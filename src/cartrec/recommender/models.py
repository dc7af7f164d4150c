"""Record types shared by the mining and scoring modules.

Every record is an immutable dataclass with a fixed set of fields. Item
identifiers are plain strings; itemsets, antecedents and consequents are
stored as sorted tuples so two records describing the same combination
compare equal regardless of the order the items were discovered in.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Optional, Tuple

# A transaction is the deduplicated set of item ids from one completed order
Transaction = FrozenSet[str]


@dataclass(frozen=True)
class Order:
    """A historical order as handed over by the order store.

    ``items`` holds raw item references (a catalog id or a display name),
    which are resolved to item ids by the transaction builder.
    """

    order_id: str
    items: Tuple[str, ...]
    status: str = "delivered"


@dataclass(frozen=True)
class Itemset:
    """Distinct items and the fraction of transactions containing all of them."""

    items: Tuple[str, ...]
    support: float

    @property
    def size(self) -> int:
        return len(self.items)

    def as_set(self) -> FrozenSet[str]:
        return frozenset(self.items)

    def to_dict(self) -> Dict[str, Any]:
        return {"itemset": list(self.items), "support": self.support}


@dataclass(frozen=True)
class Rule:
    """An association rule ``antecedent -> consequent``.

    Attributes:
        antecedent: Items on the left-hand side (sorted).
        consequent: Items on the right-hand side (sorted), disjoint from
            the antecedent.
        support: Support of the full itemset the rule was derived from.
        confidence: support(itemset) / support(antecedent).
        lift: confidence / support(consequent).
    """

    antecedent: Tuple[str, ...]
    consequent: Tuple[str, ...]
    support: float
    confidence: float
    lift: float

    @property
    def itemset(self) -> Tuple[str, ...]:
        return tuple(sorted(self.antecedent + self.consequent))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "antecedent": list(self.antecedent),
            "consequent": list(self.consequent),
            "support": self.support,
            "confidence": self.confidence,
            "lift": self.lift,
        }


@dataclass(frozen=True)
class Recommendation:
    """A scored candidate item produced by the rule scorer."""

    item_id: str
    score: float
    confidence: float
    support: float
    based_on: Tuple[str, ...]
    rule: Optional[Rule] = field(default=None, compare=False)


@dataclass(frozen=True)
class EnrichedRecommendation:
    """A recommendation whose metrics were recomputed for the actual basket.

    ``based_on`` holds display names of the triggering cart items and
    ``based_on_ids`` their identifiers. ``score`` is the value the scorer
    ranked the item with; ``recommendation_score`` equals the exact
    ``confidence`` for the queried basket.
    """

    item_id: str
    recommendation_score: float
    confidence: float
    support: float
    based_on: Tuple[str, ...]
    based_on_ids: Tuple[str, ...]
    score: float
    item: Optional[Any] = None
    matching_rule: Optional[Rule] = None

    @property
    def confidence_percent(self) -> int:
        return round(self.confidence * 100)

    @property
    def support_percent(self) -> int:
        return round(self.support * 100)


@dataclass(frozen=True)
class MiningStats:
    total_transactions: int
    frequent_itemsets_count: int
    rules_count: int


@dataclass(frozen=True)
class MiningResult:
    """Output of one mining run: frequent itemsets, rules and counters."""

    frequent_itemsets: Tuple[Itemset, ...]
    rules: Tuple[Rule, ...]
    stats: MiningStats

    @classmethod
    def empty(cls, total_transactions: int = 0) -> "MiningResult":
        return cls(
            frequent_itemsets=(),
            rules=(),
            stats=MiningStats(
                total_transactions=total_transactions,
                frequent_itemsets_count=0,
                rules_count=0,
            ),
        )

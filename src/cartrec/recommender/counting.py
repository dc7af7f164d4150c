"""Support counting strategies for the Apriori search.

The miner only needs two things from a counter: the support of an itemset
and the subset of a candidate layer that meets the minimum support. Any
strategy that returns the same supports can be swapped in without changing
the itemsets or rules that come out of the miner.
"""

import logging
from abc import ABC, abstractmethod
from typing import Iterable, List, Sequence, Tuple

import numpy as np

from cartrec.recommender.models import Itemset, Transaction
from cartrec.recommender.transactions import build_incidence_matrix

# Configure module logger
logger = logging.getLogger(__name__)

SCAN = "scan"
MATRIX = "matrix"
COUNTING_STRATEGIES = (SCAN, MATRIX)


def calculate_support(
    itemset: Iterable[str],
    transactions: Sequence[Transaction],
) -> float:
    """Fraction of transactions that contain every item of ``itemset``.

    Returns 0.0 when there are no transactions.
    """
    if not transactions:
        return 0.0

    wanted = frozenset(itemset)
    count = sum(1 for transaction in transactions if wanted <= transaction)
    return count / len(transactions)


class SupportCounter(ABC):
    """Base class for support counting over a fixed transaction set."""

    def __init__(self, transactions: Sequence[Transaction]):
        self.num_transactions = len(transactions)

    @abstractmethod
    def count(self, items: Tuple[str, ...]) -> int:
        """Number of transactions containing every item in ``items``."""

    def support(self, items: Tuple[str, ...]) -> float:
        """Fraction of transactions containing every item in ``items``.

        Returns 0.0 for an empty transaction set.
        """
        if self.num_transactions == 0:
            return 0.0
        return self.count(items) / self.num_transactions

    def filter(
        self,
        candidates: Iterable[Tuple[str, ...]],
        min_support: float,
    ) -> List[Itemset]:
        """Keep the candidates whose support is at least ``min_support``.

        Candidate order is preserved.
        """
        frequent = []
        for candidate in candidates:
            support = self.support(candidate)
            if support >= min_support:
                frequent.append(Itemset(items=candidate, support=support))
        return frequent


class ScanCounter(SupportCounter):
    """Brute-force counter that scans every transaction for each itemset."""

    def __init__(self, transactions: Sequence[Transaction]):
        super().__init__(transactions)
        self._transactions = [frozenset(t) for t in transactions]

    def count(self, items: Tuple[str, ...]) -> int:
        wanted = frozenset(items)
        return sum(1 for transaction in self._transactions if wanted <= transaction)

    def support(self, items: Tuple[str, ...]) -> float:
        return calculate_support(items, self._transactions)


class MatrixCounter(SupportCounter):
    """Counter backed by a sparse transaction-item incidence matrix.

    An itemset is contained in a transaction when the row sum over the
    itemset's columns equals the itemset size.
    """

    def __init__(self, transactions: Sequence[Transaction]):
        super().__init__(transactions)
        self._matrix, self._item_id_to_idx = build_incidence_matrix(transactions)

    def count(self, items: Tuple[str, ...]) -> int:
        if not items:
            return self.num_transactions

        try:
            columns = [self._item_id_to_idx[item] for item in items]
        except KeyError:
            # Item never seen in any transaction
            return 0

        row_sums = np.asarray(self._matrix[:, columns].sum(axis=1)).ravel()
        return int(np.count_nonzero(row_sums == len(columns)))


def make_counter(name: str, transactions: Sequence[Transaction]) -> SupportCounter:
    """Create the support counter registered under ``name``.

    Raises:
        ValueError: If ``name`` is not a known counting strategy.
    """
    if name == SCAN:
        return ScanCounter(transactions)
    if name == MATRIX:
        return MatrixCounter(transactions)

    raise ValueError(
        f"Unknown counting strategy '{name}'. Choose from {list(COUNTING_STRATEGIES)}"
    )

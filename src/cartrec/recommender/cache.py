"""Optional memoization of mining results.

Mining is a pure function of the transaction set and the mining
parameters, so its result can be reused for as long as no new orders are
recorded. The cache is keyed on a hash of both and must be invalidated
explicitly when the order history changes.
"""

import logging
import threading
from collections import OrderedDict
from typing import Callable, Sequence

import joblib

from cartrec.recommender.apriori import MiningConfig
from cartrec.recommender.models import MiningResult, Transaction

# Configure module logger
logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 8

MineFunction = Callable[[Sequence[Transaction], MiningConfig], MiningResult]


def cache_key(transactions: Sequence[Transaction], config: MiningConfig) -> str:
    """Hash a transaction set and mining parameters into a cache key.

    Transaction order and item order within a transaction do not affect
    the key, since neither affects the mined itemsets or rules.
    """
    canonical = sorted(tuple(sorted(transaction)) for transaction in transactions)
    params = (
        config.min_support,
        config.min_confidence,
        config.max_length,
        config.max_candidates,
    )
    return joblib.hash((canonical, params))


class MiningCache:
    """Thread-safe LRU cache of mining results.

    The counting strategy is not part of the key because every strategy
    yields identical results.
    """

    def __init__(self, max_entries: int = DEFAULT_MAX_ENTRIES):
        if max_entries < 1:
            raise ValueError(f"max_entries must be positive, got {max_entries}")

        self.max_entries = max_entries
        self._lock = threading.Lock()
        self._entries: "OrderedDict[str, MiningResult]" = OrderedDict()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_or_mine(
        self,
        transactions: Sequence[Transaction],
        config: MiningConfig,
        mine_fn: MineFunction,
    ) -> MiningResult:
        """Return the cached result for these inputs, mining on a miss.

        Args:
            transactions: Transactions to mine.
            config: Mining parameters.
            mine_fn: Called as ``mine_fn(transactions, config)`` on a miss.

        Returns:
            The mining result for ``transactions`` and ``config``.
        """
        key = cache_key(transactions, config)

        with self._lock:
            cached = self._entries.get(key)
            if cached is not None:
                self._entries.move_to_end(key)
                self.hits += 1
                logger.debug("Mining cache hit", extra={"cache_key": key})
                return cached
            self.misses += 1

        logger.debug("Mining cache miss", extra={"cache_key": key})
        result = mine_fn(transactions, config)

        with self._lock:
            self._entries[key] = result
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

        return result

    def invalidate(self) -> None:
        """Drop every cached result (call when new orders are recorded)."""
        with self._lock:
            dropped = len(self._entries)
            self._entries.clear()

        logger.info("Mining cache invalidated", extra={"dropped_entries": dropped})

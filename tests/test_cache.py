"""Tests for the mining result cache."""

import threading

import pytest

from cartrec.recommender.apriori import AprioriMiner, MiningConfig
from cartrec.recommender.cache import MiningCache, cache_key

TRANSACTIONS = [
    frozenset({"A", "B"}),
    frozenset({"A", "B"}),
    frozenset({"A", "C"}),
]


class CountingMiner:
    """Mine function that records how often it was called."""

    def __init__(self):
        self.calls = 0

    def __call__(self, transactions, config):
        self.calls += 1
        return AprioriMiner(config).run(transactions)


def test_cache_key_ignores_transaction_order():
    config = MiningConfig()

    assert cache_key(TRANSACTIONS, config) == cache_key(
        list(reversed(TRANSACTIONS)), config
    )


def test_cache_key_depends_on_thresholds():
    assert cache_key(TRANSACTIONS, MiningConfig(min_support=0.1)) != cache_key(
        TRANSACTIONS, MiningConfig(min_support=0.2)
    )


def test_cache_key_ignores_counting_strategy():
    assert cache_key(TRANSACTIONS, MiningConfig(counting="scan")) == cache_key(
        TRANSACTIONS, MiningConfig(counting="matrix")
    )


def test_cache_key_depends_on_transactions():
    config = MiningConfig()

    assert cache_key(TRANSACTIONS, config) != cache_key(TRANSACTIONS[:2], config)


def test_get_or_mine_reuses_result():
    cache = MiningCache()
    miner = CountingMiner()
    config = MiningConfig(min_support=0.3)

    first = cache.get_or_mine(TRANSACTIONS, config, miner)
    second = cache.get_or_mine(TRANSACTIONS, config, miner)

    assert miner.calls == 1
    assert first is second
    assert (cache.hits, cache.misses) == (1, 1)


def test_cached_result_equals_fresh_mining():
    cache = MiningCache()
    config = MiningConfig(min_support=0.3)

    cached = cache.get_or_mine(TRANSACTIONS, config, CountingMiner())

    assert cached == AprioriMiner(config).run(TRANSACTIONS)


def test_invalidate_forces_remining():
    cache = MiningCache()
    miner = CountingMiner()
    config = MiningConfig(min_support=0.3)

    cache.get_or_mine(TRANSACTIONS, config, miner)
    cache.invalidate()
    cache.get_or_mine(TRANSACTIONS, config, miner)

    assert miner.calls == 2


def test_lru_eviction():
    cache = MiningCache(max_entries=2)
    miner = CountingMiner()
    configs = [MiningConfig(min_support=s) for s in (0.1, 0.2, 0.3)]

    for config in configs:
        cache.get_or_mine(TRANSACTIONS, config, miner)

    assert len(cache) == 2
    # The oldest entry was evicted and is mined again
    cache.get_or_mine(TRANSACTIONS, configs[0], miner)
    assert miner.calls == 4


def test_invalid_max_entries():
    with pytest.raises(ValueError, match="max_entries"):
        MiningCache(max_entries=0)


def test_concurrent_access():
    cache = MiningCache()
    config = MiningConfig(min_support=0.3)
    results = []

    def worker():
        results.append(cache.get_or_mine(TRANSACTIONS, config, CountingMiner()))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(results) == 8
    assert all(result == results[0] for result in results)
    assert len(cache) == 1

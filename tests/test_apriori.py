"""Tests for Apriori frequent itemset and rule mining.

Covers the level-wise search, rule derivation, parameter validation and the
properties every mining result must satisfy.
"""

import random
from itertools import combinations
from typing import List

import pytest

from cartrec.recommender.apriori import (
    LIFT_SUPPORT_FLOOR,
    AprioriMiner,
    MiningConfig,
    count_rule_transactions,
    generate_candidates,
    generate_subsets,
    mine,
)
from cartrec.recommender.counting import (
    MatrixCounter,
    ScanCounter,
    calculate_support,
    make_counter,
)
from cartrec.recommender.models import Itemset


@pytest.fixture
def small_transactions() -> List[frozenset]:
    """Five transactions over items A, B and C."""
    return [
        frozenset({"A", "B"}),
        frozenset({"A", "B"}),
        frozenset({"A", "C"}),
        frozenset({"B", "C"}),
        frozenset({"A", "B", "C"}),
    ]


@pytest.fixture
def random_transactions() -> List[frozenset]:
    """A reproducible larger transaction set with correlated items."""
    rng = random.Random(7)
    items = [str(i) for i in range(12)]
    transactions = []
    for _ in range(120):
        basket = set(rng.sample(items, rng.randint(1, 4)))
        if "0" in basket and rng.random() < 0.7:
            basket.add("1")
        if "2" in basket and rng.random() < 0.6:
            basket.update({"3", "4"})
        transactions.append(frozenset(basket))
    return transactions


def supports(result) -> dict:
    return {itemset.items: itemset.support for itemset in result.frequent_itemsets}


# ===== Support and helpers =====


def test_calculate_support(small_transactions):
    assert calculate_support(["A"], small_transactions) == pytest.approx(0.8)
    assert calculate_support(["A", "B"], small_transactions) == pytest.approx(0.6)
    assert calculate_support(["A", "B", "C"], small_transactions) == pytest.approx(0.2)
    assert calculate_support(["Z"], small_transactions) == 0.0


def test_calculate_support_empty_transactions():
    assert calculate_support(["A"], []) == 0.0


def test_generate_candidates_joins_pairs_with_k_items():
    candidates = generate_candidates([("A", "B"), ("A", "C"), ("B", "C")], 3)

    assert candidates == [("A", "B", "C")]


def test_generate_candidates_from_single_items():
    candidates = generate_candidates([("A",), ("B",), ("C",)], 2)

    assert candidates == [("A", "B"), ("A", "C"), ("B", "C")]


def test_generate_candidates_skips_pairs_sharing_too_few_items():
    assert generate_candidates([("A", "B"), ("C", "D")], 3) == []


def test_generate_subsets_doubles_per_item():
    subsets = generate_subsets(("A", "B", "C"))

    assert len(subsets) == 8
    assert subsets[0] == ()
    assert ("A", "B", "C") in subsets
    assert len(set(subsets)) == 8


def test_count_rule_transactions(small_transactions):
    assert count_rule_transactions(["A"], ["B"], small_transactions) == 3
    assert count_rule_transactions(["A", "B"], ["C"], small_transactions) == 1


# ===== Level-wise search =====


def test_mine_example_itemsets(small_transactions):
    """A, B and C are frequent singles and all pairs reach 0.4 support."""
    result = mine(small_transactions, min_support=0.4, min_confidence=0.5)
    found = supports(result)

    assert found[("A",)] == pytest.approx(0.8)
    assert found[("B",)] == pytest.approx(0.8)
    assert found[("C",)] == pytest.approx(0.6)
    assert found[("A", "B")] == pytest.approx(0.6)
    assert found[("A", "C")] == pytest.approx(0.4)
    assert found[("B", "C")] == pytest.approx(0.4)
    assert ("A", "B", "C") not in found
    assert result.stats.frequent_itemsets_count == 6
    assert result.stats.total_transactions == 5


def test_mine_example_rule_a_implies_b(small_transactions):
    result = mine(small_transactions, min_support=0.4, min_confidence=0.5)

    rule = next(
        r for r in result.rules if r.antecedent == ("A",) and r.consequent == ("B",)
    )
    assert rule.confidence == pytest.approx(0.75)
    assert rule.support == pytest.approx(0.6)
    assert rule.lift == pytest.approx(0.75 / 0.8)


def test_mine_rules_sorted_by_confidence(small_transactions):
    result = mine(small_transactions, min_support=0.4, min_confidence=0.5)
    confidences = [rule.confidence for rule in result.rules]

    assert confidences == sorted(confidences, reverse=True)
    assert result.stats.rules_count == len(result.rules) == 6


def test_mine_filters_by_min_confidence(small_transactions):
    result = mine(small_transactions, min_support=0.4, min_confidence=0.7)

    assert {(r.antecedent, r.consequent) for r in result.rules} == {
        (("A",), ("B",)),
        (("B",), ("A",)),
    }


def test_mine_empty_transactions():
    """No transactions is a valid state, not an error."""
    result = mine([], min_support=0.1, min_confidence=0.5)

    assert result.frequent_itemsets == ()
    assert result.rules == ()
    assert result.stats.total_transactions == 0


def test_mine_finds_three_item_sets():
    transactions = [frozenset({"A", "B", "C"})] * 4 + [frozenset({"D"})]

    result = mine(transactions, min_support=0.5, min_confidence=0.9)
    found = supports(result)

    assert found[("A", "B", "C")] == pytest.approx(0.8)
    assert ("D",) not in found
    # Every non-empty proper subset of ABC gives a rule with confidence 1
    assert len(result.rules) == 12


def test_mine_layers_grow_one_item_at_a_time(random_transactions):
    result = mine(random_transactions, min_support=0.03, min_confidence=0.5)
    sizes = [itemset.size for itemset in result.frequent_itemsets]

    assert sizes == sorted(sizes)
    assert sizes[0] == 1
    assert set(sizes) == set(range(1, max(sizes) + 1))


def test_mine_accepts_plain_sets():
    result = mine([{"A", "B"}, {"A", "B"}, ["A"]], min_support=0.5, min_confidence=0.5)

    assert supports(result)[("A", "B")] == pytest.approx(2 / 3)


def test_max_length_stops_search(small_transactions):
    result = mine(small_transactions, min_support=0.4, min_confidence=0.5, max_length=1)

    assert all(itemset.size == 1 for itemset in result.frequent_itemsets)
    assert result.rules == ()


def test_max_candidates_stops_search(small_transactions):
    result = mine(
        small_transactions, min_support=0.4, min_confidence=0.5, max_candidates=2
    )

    # Three frequent singles produce three 2-item candidates, above the ceiling
    assert [itemset.items for itemset in result.frequent_itemsets] == [
        ("A",),
        ("B",),
        ("C",),
    ]


# ===== Rule generation =====


def test_generate_rules_uses_lift_floor_for_infrequent_consequent():
    miner = AprioriMiner(MiningConfig(min_support=0.1, min_confidence=0.6))
    frequent = [Itemset(("A",), 0.5), Itemset(("A", "B"), 0.4)]

    rules = miner.generate_rules(frequent)

    # B -> A is skipped because B was never frequent
    assert len(rules) == 1
    rule = rules[0]
    assert rule.antecedent == ("A",)
    assert rule.consequent == ("B",)
    assert rule.confidence == pytest.approx(0.8)
    assert rule.lift == pytest.approx(0.8 / LIFT_SUPPORT_FLOOR)


def test_generate_rules_ignores_single_items():
    miner = AprioriMiner()

    assert miner.generate_rules([Itemset(("A",), 0.9), Itemset(("B",), 0.9)]) == []


# ===== Properties =====


def test_support_monotonicity(random_transactions):
    """Every subset of a frequent itemset has at least its support."""
    result = mine(random_transactions, min_support=0.03, min_confidence=0.5)
    found = supports(result)

    for items, support in found.items():
        for size in range(1, len(items)):
            for subset in combinations(items, size):
                assert found[subset] >= support


def test_confidence_bound(random_transactions):
    result = mine(random_transactions, min_support=0.03, min_confidence=0.4)

    assert result.rules
    for rule in result.rules:
        assert 0.4 <= rule.confidence <= 1.0


def test_rule_partition_invariant(random_transactions):
    result = mine(random_transactions, min_support=0.03, min_confidence=0.3)
    found = supports(result)

    for rule in result.rules:
        antecedent, consequent = set(rule.antecedent), set(rule.consequent)
        assert antecedent and consequent
        assert antecedent.isdisjoint(consequent)
        assert rule.itemset in found
        assert rule.support == found[rule.itemset]


def test_mining_is_idempotent(random_transactions):
    first = mine(random_transactions, min_support=0.03, min_confidence=0.5)
    second = mine(random_transactions, min_support=0.03, min_confidence=0.5)

    assert first == second


def test_matrix_counter_matches_scan_counter(random_transactions):
    scan = mine(random_transactions, min_support=0.03, min_confidence=0.5)
    matrix = mine(
        random_transactions, min_support=0.03, min_confidence=0.5, counting="matrix"
    )

    assert matrix.frequent_itemsets == scan.frequent_itemsets
    assert matrix.rules == scan.rules


def test_counters_agree_on_support(small_transactions):
    scan = ScanCounter(small_transactions)
    matrix = MatrixCounter(small_transactions)

    for items in [("A",), ("A", "B"), ("A", "B", "C"), ("Z",), ("A", "Z")]:
        assert matrix.count(items) == scan.count(items)
        assert matrix.support(items) == scan.support(items)


def test_counter_filter_keeps_candidate_order(small_transactions):
    counter = make_counter("scan", small_transactions)

    frequent = counter.filter([("B", "C"), ("A", "B"), ("A", "B", "C")], 0.4)

    assert [itemset.items for itemset in frequent] == [("B", "C"), ("A", "B")]


def test_make_counter_unknown_strategy(small_transactions):
    with pytest.raises(ValueError, match="Unknown counting strategy"):
        make_counter("hash-tree", small_transactions)


# ===== Parameter validation =====


@pytest.mark.parametrize("min_support", [0, -0.1, 1.5])
def test_invalid_min_support(min_support):
    with pytest.raises(ValueError, match="min_support"):
        MiningConfig(min_support=min_support)


@pytest.mark.parametrize("min_confidence", [0, 1.01])
def test_invalid_min_confidence(min_confidence):
    with pytest.raises(ValueError, match="min_confidence"):
        MiningConfig(min_confidence=min_confidence)


def test_invalid_options():
    with pytest.raises(ValueError, match="counting"):
        MiningConfig(counting="hash-tree")
    with pytest.raises(ValueError, match="max_length"):
        MiningConfig(max_length=0)
    with pytest.raises(ValueError, match="max_candidates"):
        MiningConfig(max_candidates=0)


def test_boundary_thresholds_are_valid():
    config = MiningConfig(min_support=1, min_confidence=1)

    assert config.min_support == 1


def test_mine_validates_before_mining():
    """Invalid parameters fail even for an empty transaction set."""
    with pytest.raises(ValueError):
        mine([], min_support=0, min_confidence=0.5)


def test_scan_counter_support_matches_calculate_support(small_transactions):
    counter = ScanCounter(small_transactions)

    for items in [("A",), ("B", "C"), ("A", "B", "C")]:
        assert counter.support(items) == calculate_support(items, small_transactions)
    assert ScanCounter([]).support(("A",)) == 0.0

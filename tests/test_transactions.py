"""Tests for building transactions from orders."""

import numpy as np

from cartrec.recommender.catalog import CatalogItem, ItemCatalog
from cartrec.recommender.models import Order
from cartrec.recommender.transactions import build_incidence_matrix, build_transactions


def make_catalog() -> ItemCatalog:
    return ItemCatalog([
        CatalogItem(item_id="1", name="Espresso"),
        CatalogItem(item_id="2", name="Croissant"),
        CatalogItem(item_id="3", name="Green Tea"),
    ])


def test_build_transactions_resolves_ids_and_names():
    """Order lines may reference items by id or by display name."""
    orders = [Order("o1", ("1", "Croissant")), Order("o2", ("Green Tea",))]

    transactions = build_transactions(orders, make_catalog().resolve)

    assert transactions == [frozenset({"1", "2"}), frozenset({"3"})]


def test_build_transactions_collapses_duplicates():
    orders = [Order("o1", ("1", "1", "Espresso", "2"))]

    transactions = build_transactions(orders, make_catalog().resolve)

    assert transactions == [frozenset({"1", "2"})]


def test_build_transactions_skips_unknown_references():
    """Unknown items are skipped without dropping the rest of the order."""
    orders = [Order("o1", ("1", "Discontinued Scone", "3"))]

    transactions = build_transactions(orders, make_catalog().resolve)

    assert transactions == [frozenset({"1", "3"})]


def test_build_transactions_drops_orders_without_known_items():
    orders = [
        Order("o1", ("Discontinued Scone",)),
        Order("o2", ()),
        Order("o3", ("2",)),
    ]

    transactions = build_transactions(orders, make_catalog().resolve)

    assert transactions == [frozenset({"2"})]


def test_build_transactions_keeps_order_sequence():
    orders = [Order(f"o{i}", (item_id,)) for i, item_id in enumerate(["3", "1", "2"])]

    transactions = build_transactions(orders, make_catalog().resolve)

    assert transactions == [frozenset({"3"}), frozenset({"1"}), frozenset({"2"})]


def test_build_transactions_empty_input():
    assert build_transactions([], make_catalog().resolve) == []


def test_build_incidence_matrix():
    """Rows follow transaction order and columns are sorted item ids."""
    transactions = [frozenset({"b", "a"}), frozenset({"c"}), frozenset({"a", "c"})]

    matrix, item_id_to_idx = build_incidence_matrix(transactions)

    assert item_id_to_idx == {"a": 0, "b": 1, "c": 2}
    assert matrix.shape == (3, 3)
    np.testing.assert_array_equal(
        matrix.toarray(),
        [[1, 1, 0], [0, 0, 1], [1, 0, 1]],
    )

"""Transaction building from historical orders.

Converts completed orders into transactions (deduplicated sets of item ids)
and, for the matrix support counter, into a sparse transaction-item
incidence matrix.
"""

import logging
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
from scipy.sparse import csr_matrix
from sklearn.preprocessing import MultiLabelBinarizer

from cartrec.recommender.models import Order, Transaction

# Configure module logger
logger = logging.getLogger(__name__)

# Resolves a raw order line reference to an item id (None if unknown)
ItemResolver = Callable[[str], Optional[str]]


def build_transactions(
    orders: Iterable[Order],
    resolve: ItemResolver,
) -> List[Transaction]:
    """Convert orders into transactions of resolved item ids.

    Unresolvable references are skipped without failing the order. An order
    that resolves to no known item at all is dropped instead of producing an
    empty transaction. The output keeps the input order of the orders.

    Args:
        orders: Historical orders, already filtered to completed ones.
        resolve: Callable mapping an order line reference to an item id,
            or None when the reference is unknown.

    Returns:
        List of non-empty transactions.

    Example:
        >>> orders = [Order("o1", ("Tea", "Cake", "Tea"))]
        >>> transactions = build_transactions(orders, {"Tea": "1", "Cake": "2"}.get)
        >>> [sorted(t) for t in transactions]
        [['1', '2']]
    """
    transactions: List[Transaction] = []
    total_orders = 0
    skipped_refs = 0

    for order in orders:
        total_orders += 1
        item_ids = set()

        for reference in order.items:
            item_id = resolve(reference)
            if item_id is None:
                skipped_refs += 1
                logger.debug(
                    "Skipping unresolvable item reference",
                    extra={"order_id": order.order_id, "reference": reference},
                )
                continue
            item_ids.add(item_id)

        if item_ids:
            transactions.append(frozenset(item_ids))

    logger.info(
        "Transactions built",
        extra={
            "total_orders": total_orders,
            "num_transactions": len(transactions),
            "dropped_orders": total_orders - len(transactions),
            "skipped_references": skipped_refs,
        },
    )

    return transactions


def build_incidence_matrix(
    transactions: Sequence[Transaction],
) -> Tuple[csr_matrix, Dict[str, int]]:
    """Build a binary transaction-item matrix.

    Rows are transactions (in input order) and columns are items sorted by
    id. A cell is 1 when the transaction contains the item.

    Args:
        transactions: Transactions to encode.

    Returns:
        A tuple containing:
            - Sparse CSR matrix of shape (n_transactions, n_items)
            - Dictionary mapping item id to matrix column index
    """
    unique_items = sorted(set().union(*transactions))
    item_id_to_idx = {item_id: idx for idx, item_id in enumerate(unique_items)}

    if not transactions:
        return csr_matrix((0, 0), dtype=np.int32), item_id_to_idx

    binarizer = MultiLabelBinarizer(classes=unique_items, sparse_output=True)
    matrix = csr_matrix(binarizer.fit_transform(transactions), dtype=np.int32)

    logger.debug(
        f"Incidence matrix shape: {matrix.shape}, non-zero entries: {matrix.nnz}"
    )

    return matrix, item_id_to_idx

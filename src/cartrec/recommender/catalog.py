"""Item catalog lookups and popularity ranking.

The catalog is only used for presentation (display names) and for the
popularity fallback. Mining and scoring work on item ids alone.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional

# Configure module logger
logger = logging.getLogger(__name__)

DEFAULT_POPULAR_LIMIT = 10


@dataclass(frozen=True)
class CatalogItem:
    """Display attributes of a catalog item.

    Attributes:
        item_id: Unique identifier used in transactions.
        name: Human-readable display name.
        hearts: Popularity signal (number of likes).
        rating: Quality signal (average rating).
        price: Optional unit price.
    """

    item_id: str
    name: str
    hearts: int = 0
    rating: float = 0.0
    price: Optional[float] = None


class ItemCatalog:
    """In-memory item catalog indexed by id and by display name."""

    def __init__(self, items: Iterable[CatalogItem]):
        self._by_id: Dict[str, CatalogItem] = {}
        self._by_name: Dict[str, CatalogItem] = {}

        for item in items:
            self._by_id[item.item_id] = item
            # First item wins when two items share a display name
            self._by_name.setdefault(item.name, item)

        logger.debug(f"Catalog initialized with {len(self._by_id)} items")

    def __len__(self) -> int:
        return len(self._by_id)

    def __iter__(self) -> Iterator[CatalogItem]:
        return iter(self._by_id.values())

    def get(self, item_id: str) -> Optional[CatalogItem]:
        return self._by_id.get(item_id)

    def find_by_name(self, name: str) -> Optional[CatalogItem]:
        return self._by_name.get(name)

    def resolve(self, reference: str) -> Optional[str]:
        """Resolve an order line reference to an item id.

        A reference is matched against item ids first and display names
        second. Returns None when neither matches.
        """
        if reference in self._by_id:
            return reference

        item = self.find_by_name(reference)
        if item is None:
            return None
        return item.item_id

    def names_for(self, item_ids: Iterable[str]) -> List[str]:
        """Map item ids to display names, skipping ids missing from the catalog."""
        names = []
        for item_id in item_ids:
            item = self._by_id.get(item_id)
            if item is not None:
                names.append(item.name)
        return names


def rank_popular(
    items: Iterable[CatalogItem],
    limit: int = DEFAULT_POPULAR_LIMIT,
) -> List[CatalogItem]:
    """Rank items by popularity (hearts), then quality (rating), both descending.

    Args:
        items: Candidate catalog items.
        limit: Maximum number of items to return.

    Returns:
        Up to ``limit`` items, most popular first. Ties keep input order.
    """
    if limit < 0:
        raise ValueError(f"limit must be non-negative, got {limit}")

    ranked = sorted(items, key=lambda item: (item.hearts, item.rating), reverse=True)
    return ranked[:limit]

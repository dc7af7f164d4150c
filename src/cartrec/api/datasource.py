"""Order history and item catalog sources for the API.

The recommendation service only needs completed orders and the catalog.
Routes receive a ``DataSource`` through FastAPI dependency injection, so
tests can swap in an in-memory source with ``app.dependency_overrides``.
"""

import logging
from abc import ABC, abstractmethod
from typing import Iterable, List

from cartrec.api.exceptions import DataSourceUnavailableError
from cartrec.config import get_settings
from cartrec.recommender.catalog import CatalogItem, ItemCatalog
from cartrec.recommender.models import Order
from cartrec.recommender.utils import (
    COMPLETED_STATUS,
    get_data_paths,
    load_catalog_csv,
    load_orders_csv,
)

# Configure module logger
logger = logging.getLogger(__name__)


class DataSource(ABC):
    """Provides completed orders and the item catalog."""

    @abstractmethod
    def completed_orders(self) -> List[Order]:
        """Orders that reached the completed (delivered) state."""

    @abstractmethod
    def catalog(self) -> ItemCatalog:
        """The current item catalog."""


class InMemoryDataSource(DataSource):
    def __init__(self, orders: Iterable[Order], items: Iterable[CatalogItem]):
        self._orders = list(orders)
        self._catalog = ItemCatalog(items)

    def completed_orders(self) -> List[Order]:
        return [order for order in self._orders if order.status == COMPLETED_STATUS]

    def catalog(self) -> ItemCatalog:
        return self._catalog


class CsvDataSource(DataSource):
    """Reads ``orders.csv`` and ``items.csv`` from a data directory on every call."""

    def __init__(self, data_dir: str):
        self.data_dir = data_dir
        self.orders_path, self.items_path = get_data_paths(data_dir)

    def completed_orders(self) -> List[Order]:
        try:
            return load_orders_csv(str(self.orders_path), status=COMPLETED_STATUS)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load orders from {self.orders_path}: {e}")
            raise DataSourceUnavailableError(str(self.orders_path), e) from e

    def catalog(self) -> ItemCatalog:
        try:
            return load_catalog_csv(str(self.items_path))
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load catalog from {self.items_path}: {e}")
            raise DataSourceUnavailableError(str(self.items_path), e) from e


def get_data_source() -> DataSource:
    """FastAPI dependency returning the configured data source."""
    return CsvDataSource(get_settings().data_dir)

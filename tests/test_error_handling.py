"""Tests for error handling in the CartRec API.

Tests error scenarios including unavailable order data, invalid
parameters and unexpected failures during recommendation.
"""

import logging

import pytest
from fastapi.testclient import TestClient

from cartrec.api.datasource import CsvDataSource, InMemoryDataSource, get_data_source
from cartrec.api.exceptions import (
    CartRecException,
    DataSourceUnavailableError,
    InvalidParameterError,
    RecommendationError,
)
from cartrec.api.main import app
from cartrec.api.metrics import metrics_service
from cartrec.api.routes.recommend import get_recommendation_service
from cartrec.recommender.catalog import CatalogItem
from cartrec.recommender.models import Order
from cartrec.recommender.service import RecommendationService

# Configure logging for tests
logging.basicConfig(level=logging.WARNING)


class FailingService(RecommendationService):
    """Service whose recommendation call raises a preset exception."""

    def __init__(self, error: Exception):
        super().__init__()
        self.error = error

    def recommend_for_cart(self, *args, **kwargs):
        raise self.error


@pytest.fixture
def client():
    data_source = InMemoryDataSource(
        [Order("o1", ("1", "2"))], [CatalogItem("1", "Espresso")]
    )
    app.dependency_overrides[get_data_source] = lambda: data_source
    metrics_service.reset()

    yield TestClient(app)

    app.dependency_overrides.clear()
    metrics_service.reset()


def use_service(service: RecommendationService) -> None:
    app.dependency_overrides[get_recommendation_service] = lambda: service


def test_data_source_unavailable(client, tmp_path):
    """Test that a missing data directory returns 503 Service Unavailable."""
    missing_dir = tmp_path / "no_data"
    app.dependency_overrides[get_data_source] = lambda: CsvDataSource(str(missing_dir))

    response = client.post("/api/recommendations/get", json={"cart_items": ["1"]})

    assert response.status_code == 503
    data = response.json()
    assert data["success"] is False
    assert data["error"] == "DataSourceUnavailableError"
    assert "unavailable" in data["message"]
    assert data["details"]["error_type"] == "FileNotFoundError"


def test_data_source_unavailable_for_train_and_stats(client, tmp_path):
    app.dependency_overrides[get_data_source] = lambda: CsvDataSource(
        str(tmp_path / "no_data")
    )

    assert client.post("/api/recommendations/train").status_code == 503
    assert client.get("/api/recommendations/stats").status_code == 503


def test_negative_limit_rejected(client):
    response = client.post(
        "/api/recommendations/get", json={"cart_items": ["1"], "limit": -1}
    )

    assert response.status_code == 422


def test_invalid_cart_items_rejected(client):
    response = client.post("/api/recommendations/get", json={"cart_items": "1"})

    assert response.status_code == 422


def test_value_error_maps_to_invalid_parameter(client):
    use_service(FailingService(ValueError("min_support must be in (0, 1]")))

    response = client.post("/api/recommendations/get", json={"cart_items": ["1"]})

    assert response.status_code == 422
    data = response.json()
    assert data["error"] == "InvalidParameterError"
    assert "min_support" in data["message"]


def test_unexpected_error_maps_to_recommendation_error(client):
    use_service(FailingService(RuntimeError("boom")))

    response = client.post(
        "/api/recommendations/get", json={"cart_items": ["1", "2"]}
    )

    assert response.status_code == 500
    data = response.json()
    assert data["error"] == "RecommendationError"
    assert data["details"] == {
        "basket_size": 2,
        "error": "boom",
        "error_type": "RuntimeError",
    }


def test_failed_requests_not_counted(client):
    use_service(FailingService(RuntimeError("boom")))

    client.post("/api/recommendations/get", json={"cart_items": ["1"]})

    assert metrics_service.get_metrics()["request_count"] == 0


def test_negative_top_n_rejected(client):
    response = client.get("/api/recommendations/stats?top_n=-1")

    assert response.status_code == 422
    assert response.json()["error"] == "InvalidParameterError"


def test_exception_hierarchy():
    """Test that custom exceptions carry status codes and details."""
    unavailable = DataSourceUnavailableError("data/orders.csv", OSError("denied"))
    assert isinstance(unavailable, CartRecException)
    assert unavailable.status_code == 503
    assert unavailable.details["source"] == "data/orders.csv"

    invalid = InvalidParameterError(ValueError("bad"))
    assert invalid.status_code == 422
    assert invalid.details == {"error": "bad"}

    failed = RecommendationError(RuntimeError("boom"), basket_size=3)
    assert failed.status_code == 500
    assert failed.details["basket_size"] == 3

    base = CartRecException("oops")
    assert base.status_code == 500
    assert base.details == {}

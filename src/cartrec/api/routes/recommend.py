"""Recommendation endpoints for the CartRec API.

This module provides API endpoints for cart recommendations, rule mining
("training") summaries and mining statistics. Every request mines the
current order history from scratch unless the mining cache is enabled.
"""

import logging
import threading
import time
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from cartrec.api.datasource import DataSource, get_data_source
from cartrec.api.exceptions import (
    CartRecException,
    InvalidParameterError,
    RecommendationError,
)
from cartrec.api.metrics import metrics_service
from cartrec.config import get_settings
from cartrec.recommender.cache import MiningCache
from cartrec.recommender.catalog import CatalogItem
from cartrec.recommender.models import EnrichedRecommendation, Itemset, Rule
from cartrec.recommender.service import RecommendationService, RuleSummary

# Configure module logger
logger = logging.getLogger(__name__)

# Create API router
router = APIRouter(
    prefix="/api/recommendations",
    tags=["recommendations"],
)

# Service shared across requests (holds the optional mining cache)
_service: Optional[RecommendationService] = None
_service_lock = threading.Lock()


class RecommendationRequest(BaseModel):
    """Request body for cart recommendations."""

    cart_items: List[str] = Field(
        default_factory=list, description="Item ids currently in the cart"
    )
    limit: Optional[int] = Field(
        default=None, ge=0, le=100, description="Maximum number of recommendations"
    )


class RecommendedItem(BaseModel):
    """A recommended catalog item.

    Metric fields are only set for rule-based recommendations; popular
    items served as a fallback leave them empty.
    """

    item_id: str
    name: str
    hearts: int = 0
    rating: float = 0.0
    price: Optional[float] = None
    recommendation_score: Optional[float] = None
    confidence: Optional[float] = None
    support: Optional[float] = None
    based_on: Optional[List[str]] = None
    based_on_ids: Optional[List[str]] = None
    confidence_percent: Optional[int] = None
    support_percent: Optional[int] = None


class RecommendationResponse(BaseModel):
    success: bool = True
    recommendations: List[RecommendedItem]
    fallback: bool = False
    message: Optional[str] = None
    debug: Dict[str, Any] = Field(default_factory=dict)


class ItemsetModel(BaseModel):
    itemset: List[str]
    support: float


class RuleModel(BaseModel):
    antecedent: List[str]
    consequent: List[str]
    support: float
    confidence: float
    lift: float
    transactions: Optional[int] = Field(
        default=None, description="Number of transactions containing the rule"
    )


class TrainingStatsModel(BaseModel):
    total_orders: int
    total_transactions: int
    frequent_itemsets: int
    rules: int


class TrainResponse(BaseModel):
    success: bool
    message: str
    stats: Optional[TrainingStatsModel] = None


class StatsModel(BaseModel):
    total_orders: int
    total_transactions: int
    frequent_itemsets_count: int
    rules_count: int
    top_combinations: List[ItemsetModel]
    top_rules: List[RuleModel]


class StatsResponse(BaseModel):
    success: bool = True
    stats: StatsModel


def get_recommendation_service() -> RecommendationService:
    """Return the shared service, creating it from settings on first use."""
    global _service

    with _service_lock:
        if _service is None:
            settings = get_settings()
            cache = MiningCache() if settings.enable_cache else None
            _service = RecommendationService(
                config=settings.mining_config(),
                cache=cache,
                popular_limit=settings.popular_limit,
            )
    return _service


def _catalog_item_fields(item: CatalogItem) -> Dict[str, Any]:
    return {
        "item_id": item.item_id,
        "name": item.name,
        "hearts": item.hearts,
        "rating": item.rating,
        "price": item.price,
    }


def _to_recommended_item(rec: EnrichedRecommendation) -> RecommendedItem:
    if rec.item is not None:
        fields = _catalog_item_fields(rec.item)
    else:
        fields = {"item_id": rec.item_id, "name": rec.item_id}

    return RecommendedItem(
        **fields,
        recommendation_score=rec.recommendation_score,
        confidence=rec.confidence,
        support=rec.support,
        based_on=list(rec.based_on),
        based_on_ids=list(rec.based_on_ids),
        confidence_percent=rec.confidence_percent,
        support_percent=rec.support_percent,
    )


def _to_itemset_model(itemset: Itemset) -> ItemsetModel:
    return ItemsetModel(**itemset.to_dict())


def _to_rule_model(rule: Rule, transactions: Optional[int] = None) -> RuleModel:
    return RuleModel(**rule.to_dict(), transactions=transactions)


@router.post("/get", response_model=RecommendationResponse)
def get_recommendations(
    request: RecommendationRequest,
    data_source: DataSource = Depends(get_data_source),
    service: RecommendationService = Depends(get_recommendation_service),
) -> RecommendationResponse:
    """Get recommendations for the items in a cart.

    Mines association rules from completed orders and ranks the items they
    imply for the cart. Falls back to the most popular catalog items when
    there is too little order history or no rule applies to the cart.

    Example:
        POST /api/recommendations/get {"cart_items": ["1", "4"]}
        Returns up to 5 items frequently bought with items 1 and 4.
    """
    start_time = time.time()
    limit = request.limit
    if limit is None:
        limit = get_settings().recommendation_limit

    logger.info(
        f"Generating recommendations for cart of {len(request.cart_items)} items, "
        f"limit={limit}"
    )

    try:
        orders = data_source.completed_orders()
        catalog = data_source.catalog()
        result = service.recommend_for_cart(
            request.cart_items, orders, catalog, limit=limit
        )
    except CartRecException:
        raise
    except ValueError as e:
        raise InvalidParameterError(e) from e
    except Exception as e:
        logger.error(f"Error generating recommendations: {e}", exc_info=True)
        raise RecommendationError(e, basket_size=len(request.cart_items)) from e

    if result.fallback:
        items = [
            RecommendedItem(**_catalog_item_fields(item))
            for item in result.popular_items
        ]
    else:
        items = [_to_recommended_item(rec) for rec in result.recommendations]

    metrics_service.record_request(
        (time.time() - start_time) * 1000,
        fallback=result.fallback,
        num_items=len(items),
    )

    return RecommendationResponse(
        recommendations=items,
        fallback=result.fallback,
        message=result.message,
        debug=result.debug,
    )


@router.post("/train", response_model=TrainResponse)
def train_recommendation_model(
    data_source: DataSource = Depends(get_data_source),
    service: RecommendationService = Depends(get_recommendation_service),
) -> TrainResponse:
    """Mine the order history and report itemset and rule counts.

    Also invalidates the mining cache, so call it after new orders are
    recorded.
    """
    logger.info("Training recommendation model...")

    try:
        summary = service.train(data_source.completed_orders(), data_source.catalog())
    except CartRecException:
        raise
    except Exception as e:
        logger.error(f"Failed to train recommendation model: {e}", exc_info=True)
        raise CartRecException(
            message=f"Failed to train recommendation model: {str(e)}",
            details={"error": str(e), "error_type": type(e).__name__},
        ) from e

    stats = None
    if summary.stats is not None:
        stats = TrainingStatsModel(
            total_orders=summary.total_orders,
            total_transactions=summary.stats.total_transactions,
            frequent_itemsets=summary.stats.frequent_itemsets_count,
            rules=summary.stats.rules_count,
        )

    return TrainResponse(success=summary.success, message=summary.message, stats=stats)


@router.get("/stats", response_model=StatsResponse)
def get_recommendation_stats(
    top_n: int = 10,
    data_source: DataSource = Depends(get_data_source),
    service: RecommendationService = Depends(get_recommendation_service),
) -> StatsResponse:
    """Get the most frequent item combinations and the strongest rules."""
    try:
        stats = service.stats(
            data_source.completed_orders(), data_source.catalog(), top_n=top_n
        )
    except CartRecException:
        raise
    except ValueError as e:
        raise InvalidParameterError(e) from e
    except Exception as e:
        logger.error(f"Failed to get recommendation stats: {e}", exc_info=True)
        raise CartRecException(
            message=f"Failed to get recommendation stats: {str(e)}",
            details={"error": str(e), "error_type": type(e).__name__},
        ) from e

    def rule_model(summary: RuleSummary) -> RuleModel:
        return _to_rule_model(summary.rule, summary.transaction_count)

    return StatsResponse(
        stats=StatsModel(
            total_orders=stats.total_orders,
            total_transactions=stats.total_transactions,
            frequent_itemsets_count=stats.frequent_itemsets_count,
            rules_count=stats.rules_count,
            top_combinations=[_to_itemset_model(i) for i in stats.top_combinations],
            top_rules=[rule_model(summary) for summary in stats.top_rules],
        )
    )

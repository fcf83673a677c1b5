"""Recommendation endpoints for the MitraRec API.

Recommendations are a best-effort enhancement of the storefront: whatever goes
wrong while reading data or scoring, the endpoint answers 200 with an empty
product list and logs the failure.
"""

import logging
import time
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from src.api.deps import get_data_source
from src.api.metrics import metrics_service
from src.recommender.engine import generate_recommendations
from src.recommender.models import ProductSummary
from src.recommender.ranker import DEFAULT_TOP_N
from src.recommender.sources import MarketplaceDataSource

# Configure module logger
logger = logging.getLogger(__name__)

# Create API router
router = APIRouter(
    prefix="/recommend",
    tags=["recommendations"],
)


class RecommendationResponse(BaseModel):
    """Response model for recommendation requests.

    Attributes:
        user_id: The user the products were ranked for.
        products: Recommended products, best first.
        scores: Score breakdown, only present when ``explain=true``.
    """

    user_id: str = Field(..., description="User ID for recommendations")
    products: List[ProductSummary] = Field(
        default_factory=list, description="Recommended products, best first"
    )
    scores: Optional[Dict[str, Any]] = Field(
        default=None, description="Total and per-signal scores of returned products"
    )


@router.get("/{user_id}", response_model=RecommendationResponse)
def get_recommendations(
    user_id: str,
    top_n: int = Query(DEFAULT_TOP_N, ge=1, le=DEFAULT_TOP_N),
    explain: bool = False,
    source: MarketplaceDataSource = Depends(get_data_source),
) -> RecommendationResponse:
    """Get product recommendations for a user.

    Ranks the catalog against the user's views and searches of the last 30
    days. Products the user already viewed are never returned.

    Args:
        user_id: User ID for which to generate recommendations.
        top_n: Number of recommendations to return (1 to 12, default 12).
        explain: If True, include the score breakdown in the response.
        source: Data source for activity and products.

    Returns:
        RecommendationResponse with up to ``top_n`` products.

    Example:
        GET /recommend/3f6c...?explain=true
    """
    start_time = time.perf_counter()
    degraded = False
    scores = None

    try:
        if explain:
            products, scores = generate_recommendations(
                user_id, source, top_n=top_n, return_scores=True
            )
        else:
            products = generate_recommendations(user_id, source, top_n=top_n)
    except Exception as e:
        degraded = True
        products = []
        logger.error(
            "Recommendation request degraded to an empty list",
            extra={"user_id": user_id, "error": str(e), "error_type": type(e).__name__},
            exc_info=True,
        )

    metrics_service.record_request(
        latency_ms=(time.perf_counter() - start_time) * 1000,
        num_results=len(products),
        degraded=degraded,
    )

    return RecommendationResponse(
        user_id=user_id,
        products=[ProductSummary.from_product(p) for p in products],
        scores=scores if explain else None,
    )

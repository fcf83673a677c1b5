"""Seller analytics endpoints.

Unlike recommendations these numbers are shown as-is on the seller
dashboard, so a data failure is reported as 503 instead of an empty answer.
"""

import logging

from fastapi import APIRouter, Depends

from src.api.deps import get_data_source
from src.recommender.analytics import SellerAnalytics, seller_analytics
from src.recommender.sources import MarketplaceDataSource

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/sellers",
    tags=["analytics"],
)


@router.get("/{seller_id}/analytics", response_model=SellerAnalytics)
def get_seller_analytics(
    seller_id: str,
    source: MarketplaceDataSource = Depends(get_data_source),
) -> SellerAnalytics:
    """Stall views, unique visitors and top viewed products of the last 30 days."""
    logger.info("Computing seller analytics", extra={"seller_id": seller_id})
    return seller_analytics(seller_id, source)

"""Seller dashboard statistics over the same activity log.

Reports, for the trailing activity window, how often a seller's stall was
visited, by how many distinct users, and which of the seller's products were
viewed the most.
"""

import logging
from collections import Counter
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from src.recommender.engine import activity_window_start
from src.recommender.models import ActivityType
from src.recommender.sources import MarketplaceDataSource

logger = logging.getLogger(__name__)

TOP_PRODUCTS_LIMIT = 5
UNTITLED = "Untitled"


class TopProduct(BaseModel):
    id: str
    title: str
    views: int


class SellerAnalytics(BaseModel):
    seller_id: str
    total_views: int
    unique_visitors: int
    top_products: List[TopProduct]


def seller_analytics(
    seller_id: str,
    source: MarketplaceDataSource,
    now: Optional[datetime] = None,
    limit: int = TOP_PRODUCTS_LIMIT,
) -> SellerAnalytics:
    """Compute stall traffic and the most viewed products of one seller.

    A seller's stall id is their seller id. Stall traffic counts every event
    logged against the stall; product popularity counts product views only.

    Raises:
        DataUnavailableError: If the activity log or catalog cannot be read.
    """
    since = activity_window_start(now)

    stall_events = source.fetch_stall_activity(seller_id, since)
    visitors = {e.user_id for e in stall_events}

    seller_products = source.fetch_products_by_seller(seller_id)
    titles = {p.id: p.title for p in seller_products}

    counts: Counter = Counter()
    for event in source.fetch_product_activity(since):
        if event.activity_type is ActivityType.VIEW and event.product_id in titles:
            counts[event.product_id] += 1

    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))[:limit]
    top_products = [
        TopProduct(id=pid, title=titles[pid] or UNTITLED, views=views)
        for pid, views in ranked
    ]

    logger.info(
        "Computed seller analytics",
        extra={
            "seller_id": seller_id,
            "total_views": len(stall_events),
            "unique_visitors": len(visitors),
            "num_products": len(seller_products),
        },
    )

    return SellerAnalytics(
        seller_id=seller_id,
        total_views=len(stall_events),
        unique_visitors=len(visitors),
        top_products=top_products,
    )

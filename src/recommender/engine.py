"""Module for getting recommendations.

``recommend`` is the pure entry point: it takes one user's activity and a
catalog snapshot and returns ranked products, without touching any storage.
``recommend_for_user`` wraps it with the two data-source reads and degrades
every failure to an empty list, since recommendations are a best-effort
enhancement of the storefront.
"""

import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from src.recommender.models import ActivityEvent, Product
from src.recommender.ranker import DEFAULT_TOP_N, rank_products
from src.recommender.scorer import ProductScorer
from src.recommender.sources import MarketplaceDataSource

# Configure module logger
logger = logging.getLogger(__name__)

ACTIVITY_WINDOW = timedelta(days=30)


def activity_window_start(now: Optional[datetime] = None) -> datetime:
    """Earliest timestamp still considered recent activity."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now - ACTIVITY_WINDOW


def recommend(
    user_id: str,
    activity: Sequence[ActivityEvent],
    catalog: Sequence[Product],
    top_n: int = DEFAULT_TOP_N,
    since: Optional[datetime] = None,
    return_scores: bool = False,
) -> List[Product] | Tuple[List[Product], Dict]:
    """Rank catalog products for a user from their recent activity.

    Args:
        user_id: User to recommend for. Events of other users are ignored.
        activity: Activity snapshot; usually already limited to the user.
        catalog: Product snapshot.
        top_n: Maximum number of products to return.
        since: If given, events before this instant are ignored.
        return_scores: If True, also return the score breakdown.

    Returns:
        Ranked products, optionally with a dict holding the total score and
        the per-signal contributions of every returned product.
    """
    events = [e for e in activity if e.user_id == user_id]
    if since is not None:
        if since.tzinfo is None:
            since = since.replace(tzinfo=timezone.utc)
        events = [e for e in events if e.timestamp >= since]

    if not events or not catalog:
        logger.debug(
            "Nothing to score",
            extra={"user_id": user_id, "num_events": len(events), "num_products": len(catalog)},
        )
        if return_scores:
            return [], {"scores": {}, "signals": {}}
        return []

    scorer = ProductScorer(events, catalog)
    scores, breakdown = scorer.score(return_breakdown=True)
    products = rank_products(scores, scorer.catalog, scorer.viewed_ids, top_n=top_n)

    if return_scores:
        returned = [p.id for p in products]
        score_breakdown = {
            "scores": {pid: scores[pid] for pid in returned},
            "signals": {
                name: {pid: points[pid] for pid in returned if pid in points}
                for name, points in breakdown.items()
            },
        }
        return products, score_breakdown
    return products


def generate_recommendations(
    user_id: str,
    source: MarketplaceDataSource,
    now: Optional[datetime] = None,
    top_n: int = DEFAULT_TOP_N,
    return_scores: bool = False,
) -> List[Product] | Tuple[List[Product], Dict]:
    """Fetch one user's activity and the catalog, then rank.

    The catalog is only fetched when the user has recent activity.

    Raises:
        DataUnavailableError: If either read fails.
    """
    start_time = time.time()
    since = activity_window_start(now)

    logger.info(
        "Starting recommendation generation",
        extra={"user_id": user_id, "top_n": top_n, "since": since.isoformat()},
    )

    activity = source.fetch_recent_activity(user_id, since)
    if not activity:
        logger.info("No recent activity, returning no recommendations", extra={"user_id": user_id})
        if return_scores:
            return [], {"scores": {}, "signals": {}}
        return []

    catalog = source.fetch_all_products()

    scoring_start = time.time()
    result = recommend(
        user_id,
        activity,
        catalog,
        top_n=top_n,
        since=since,
        return_scores=return_scores,
    )
    products = result[0] if return_scores else result

    logger.info(
        "Recommendations generated",
        extra={
            "user_id": user_id,
            "num_events": len(activity),
            "num_products": len(catalog),
            "num_recommendations": len(products),
            "scoring_time_ms": round((time.time() - scoring_start) * 1000, 2),
            "total_time_ms": round((time.time() - start_time) * 1000, 2),
        },
    )
    return result


def recommend_for_user(
    user_id: str,
    source: MarketplaceDataSource,
    now: Optional[datetime] = None,
    top_n: int = DEFAULT_TOP_N,
) -> List[Product]:
    """Best-effort recommendations; any failure yields an empty list."""
    try:
        return generate_recommendations(user_id, source, now=now, top_n=top_n)
    except Exception as e:
        logger.error(
            "Recommendation generation failed, returning no recommendations",
            extra={"user_id": user_id, "error": str(e), "error_type": type(e).__name__},
            exc_info=True,
        )
        return []


def batch_recommend_for_users(
    user_ids: List[str],
    source: MarketplaceDataSource,
    now: Optional[datetime] = None,
    top_n: int = DEFAULT_TOP_N,
) -> Dict[str, List[Product]]:
    """Generate recommendations for multiple users in batch.

    The catalog is fetched once and reused for every user. A failed read
    only empties the result of the users it affects.

    Args:
        user_ids: Users to recommend for.
        source: Where to read activity and products from.
        now: Reference time for the activity window (default: current UTC time).
        top_n: Number of recommendations per user.

    Returns:
        Dictionary mapping user IDs to their recommended products.
    """
    logger.info(f"Generating batch recommendations for {len(user_ids)} users, top_n={top_n}")

    since = activity_window_start(now)
    results: Dict[str, List[Product]] = {user_id: [] for user_id in user_ids}

    try:
        catalog = source.fetch_all_products()
    except Exception as e:
        logger.error(f"Catalog unavailable, batch returns no recommendations: {e}")
        return results

    for user_id in user_ids:
        try:
            activity = source.fetch_recent_activity(user_id, since)
            results[user_id] = recommend(user_id, activity, catalog, top_n=top_n, since=since)
        except Exception as e:
            logger.error(f"Failed to generate recommendations for user {user_id}: {e}")

    logger.info(f"Batch recommendations completed for {len(results)} users")

    return results

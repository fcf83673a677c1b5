"""Ranking of scored products into the final recommendation list."""

import logging
from typing import AbstractSet, Dict, List, Sequence

from src.recommender.models import Product, ScoredCandidate

# Configure module logger
logger = logging.getLogger(__name__)

DEFAULT_TOP_N = 12


def build_candidates(
    scores: Dict[str, float],
    catalog: Sequence[Product],
    viewed_ids: AbstractSet[str],
) -> List[ScoredCandidate]:
    """Turn a score map into candidates, dropping viewed and non-positive entries.

    Only products present in the catalog can become candidates; scores for
    ids the catalog does not know about (e.g. a viewed product that was since
    deleted) are ignored.
    """
    candidates = []
    seen = set()
    for product in catalog:
        if product.id in seen:
            continue
        seen.add(product.id)

        score = scores.get(product.id, 0.0)
        if score <= 0 or product.id in viewed_ids:
            continue
        candidates.append(
            ScoredCandidate(
                product_id=product.id,
                score=score,
                tiebreak_key=product.created_at,
            )
        )
    return candidates


def sort_candidates(candidates: Sequence[ScoredCandidate]) -> List[ScoredCandidate]:
    """Order by score, then newest ``created_at``, then product id.

    ISO-8601 timestamps sort chronologically as plain strings, so the
    tie-break compares them lexicographically. Both sorts are stable.
    """
    # Innermost key first: id ascending, then created_at and score descending
    ordered = sorted(candidates, key=lambda c: c.product_id)
    ordered.sort(key=lambda c: c.tiebreak_key, reverse=True)
    ordered.sort(key=lambda c: c.score, reverse=True)
    return ordered


def rank_products(
    scores: Dict[str, float],
    catalog: Sequence[Product],
    viewed_ids: AbstractSet[str],
    top_n: int = DEFAULT_TOP_N,
) -> List[Product]:
    """Return the top ``top_n`` catalog products by score.

    Args:
        scores: Product id to accumulated score.
        catalog: The catalog snapshot the scores were computed from.
        viewed_ids: Products the user already viewed; never recommended.
        top_n: Maximum number of products to return; never more than
            ``DEFAULT_TOP_N``.

    Returns:
        Products in rank order, at most ``top_n`` of them.
    """
    top_n = min(top_n, DEFAULT_TOP_N)
    if top_n <= 0 or not scores:
        return []

    product_by_id: Dict[str, Product] = {}
    for product in catalog:
        product_by_id.setdefault(product.id, product)

    ranked = sort_candidates(build_candidates(scores, catalog, viewed_ids))[:top_n]

    logger.debug(
        "Ranked candidates",
        extra={"num_candidates": len(scores), "num_ranked": len(ranked), "top_n": top_n},
    )

    return [product_by_id[candidate.product_id] for candidate in ranked]

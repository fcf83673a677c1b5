"""Multi-signal product scoring.

Every product in the catalog is scored against one user's recent activity by
six independent signals. The final score of a product is the plain sum of the
contributions it received; a product is a candidate only when that sum is
strictly positive.

The weights below are hand-tuned heuristics. There are no relevance labels in
the marketplace to retune them against, so they are kept as they are.
"""

import logging
from typing import Dict, FrozenSet, List, Sequence, Set, Tuple

from src.recommender.models import ActivityEvent, ActivityType, Product
from src.recommender.similarity import (
    color_similarity,
    hash_similarity,
    jaccard,
    normalize_title,
    tokenize,
)

# Configure module logger
logger = logging.getLogger(__name__)

# Signal weights
VIEW_WEIGHT = 1.0
SEARCH_MATCH_WEIGHT = 2.0
CATEGORY_AFFINITY_WEIGHT = 2.0
CONTENT_SIMILARITY_SCALE = 3.0
CONTENT_SIMILARITY_MAX = 3.0
COLOR_SIMILARITY_WEIGHT = 1.5
HASH_SIMILARITY_WEIGHT = 1.5
DUPLICATE_TITLE_WEIGHT = 2.0

SIGNAL_NAMES = (
    "view",
    "search",
    "category",
    "content",
    "image",
    "duplicate_title",
)


def _add(scores: Dict[str, float], product_id: str, points: float) -> None:
    scores[product_id] = scores.get(product_id, 0.0) + points


def _product_tokens(product: Product) -> FrozenSet[str]:
    return tokenize(product.title) | tokenize(product.description)


def viewed_product_ids(activity: Sequence[ActivityEvent]) -> Set[str]:
    """Ids of every product the activity shows as viewed."""
    return {
        event.product_id
        for event in activity
        if event.activity_type is ActivityType.VIEW and event.product_id
    }


class ProductScorer:
    """Scores a catalog snapshot against a snapshot of one user's activity.

    Both snapshots are passed in explicitly and never mutated, so a scorer
    holds no state beyond the request it was built for.
    """

    def __init__(
        self,
        activity: Sequence[ActivityEvent],
        catalog: Sequence[Product],
    ):
        self.activity = list(activity)

        # First occurrence wins if the catalog repeats an id
        self.catalog: List[Product] = []
        self.product_by_id: Dict[str, Product] = {}
        for product in catalog:
            if product.id in self.product_by_id:
                continue
            self.product_by_id[product.id] = product
            self.catalog.append(product)

        self.viewed_ids: Set[str] = viewed_product_ids(self.activity)
        # Viewed products that still exist in the catalog, in catalog order
        self.viewed_products: List[Product] = [
            p for p in self.catalog if p.id in self.viewed_ids
        ]

    def _candidates(self) -> List[Product]:
        """Catalog products that were not viewed in the window."""
        return [p for p in self.catalog if p.id not in self.viewed_ids]

    def _view_scores(self) -> Dict[str, float]:
        """+1 for every view event of a product."""
        scores: Dict[str, float] = {}
        for event in self.activity:
            if event.activity_type is ActivityType.VIEW and event.product_id:
                _add(scores, event.product_id, VIEW_WEIGHT)
        return scores

    def _search_scores(self) -> Dict[str, float]:
        """+2 per search whose query is a substring of title, description or category."""
        scores: Dict[str, float] = {}
        searchable = [
            (p.id, p.title.lower(), p.description.lower(), p.category.lower())
            for p in self.catalog
        ]
        for event in self.activity:
            if event.activity_type is not ActivityType.SEARCH or not (event.query or "").strip():
                continue
            query = event.query.lower()
            for product_id, title, description, category in searchable:
                if query in title or query in description or query in category:
                    _add(scores, product_id, SEARCH_MATCH_WEIGHT)
        return scores

    def _category_scores(self) -> Dict[str, float]:
        """Flat +2 for non-viewed products sharing a category with a viewed one."""
        viewed_categories = {p.category for p in self.viewed_products if p.category}
        if not viewed_categories:
            return {}
        return {
            p.id: CATEGORY_AFFINITY_WEIGHT
            for p in self._candidates()
            if p.category and p.category in viewed_categories
        }

    def _content_scores(self) -> Dict[str, float]:
        """Up to +3 for the best title/description Jaccard match with a viewed product."""
        if not self.viewed_products:
            return {}

        viewed_tokens = [_product_tokens(p) for p in self.viewed_products]
        scores: Dict[str, float] = {}
        for product in self._candidates():
            tokens = _product_tokens(product)
            best = max(jaccard(tokens, reference) for reference in viewed_tokens)
            if best > 0:
                scores[product.id] = min(
                    CONTENT_SIMILARITY_MAX,
                    max(0.0, best * CONTENT_SIMILARITY_SCALE),
                )
        return scores

    def _image_scores(self) -> Dict[str, float]:
        """Up to +3 from average color and perceptual hash closeness.

        The best color match and the best hash match are taken independently,
        so they may come from different viewed products.
        """
        viewed_colors = [
            p.image_avg_color for p in self.viewed_products if p.image_avg_color is not None
        ]
        viewed_hashes = [
            p.image_ahash for p in self.viewed_products if p.image_ahash is not None
        ]
        if not viewed_colors and not viewed_hashes:
            return {}

        scores: Dict[str, float] = {}
        for product in self._candidates():
            if not product.has_image_features:
                continue

            best_color = 0.0
            if product.image_avg_color is not None:
                for color in viewed_colors:
                    best_color = max(best_color, color_similarity(product.image_avg_color, color))

            best_hash = 0.0
            if product.image_ahash is not None:
                for ahash in viewed_hashes:
                    best_hash = max(best_hash, hash_similarity(product.image_ahash, ahash))

            combined = best_color * COLOR_SIMILARITY_WEIGHT + best_hash * HASH_SIMILARITY_WEIGHT
            if combined > 0:
                scores[product.id] = combined
        return scores

    def _duplicate_title_scores(self) -> Dict[str, float]:
        """Flat +2 for the same item relisted under an identical title."""
        viewed_titles = {normalize_title(p.title) for p in self.viewed_products}
        viewed_titles.discard("")
        if not viewed_titles:
            return {}
        return {
            p.id: DUPLICATE_TITLE_WEIGHT
            for p in self._candidates()
            if normalize_title(p.title) in viewed_titles
        }

    def score(
        self,
        return_breakdown: bool = False,
    ) -> Dict[str, float] | Tuple[Dict[str, float], Dict[str, Dict[str, float]]]:
        """Sum all signal contributions per product.

        Args:
            return_breakdown: If True, also return the contribution of every
                signal, keyed by signal name.

        Returns:
            Mapping of product id to a strictly positive score, optionally
            with the per-signal breakdown.
        """
        breakdown = {
            "view": self._view_scores(),
            "search": self._search_scores(),
            "category": self._category_scores(),
            "content": self._content_scores(),
            "image": self._image_scores(),
            "duplicate_title": self._duplicate_title_scores(),
        }

        totals: Dict[str, float] = {}
        for name in SIGNAL_NAMES:
            for product_id, points in breakdown[name].items():
                _add(totals, product_id, points)

        scores = {pid: total for pid, total in totals.items() if total > 0}

        logger.debug(
            "Scored catalog",
            extra={
                "num_products": len(self.catalog),
                "num_viewed": len(self.viewed_ids),
                "num_scored": len(scores),
                "signal_hits": {name: len(breakdown[name]) for name in SIGNAL_NAMES},
            },
        )

        if return_breakdown:
            return scores, breakdown
        return scores


def score_products(
    activity: Sequence[ActivityEvent],
    catalog: Sequence[Product],
) -> Dict[str, float]:
    """Score every catalog product against the given activity."""
    return ProductScorer(activity, catalog).score()


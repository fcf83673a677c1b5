"""Typed records consumed by the recommendation engine.

Rows coming out of the data store are loosely typed dictionaries. They are
parsed into the models below at the ingestion boundary so that the scorer and
ranker only ever see validated data. A row that cannot be parsed is logged and
skipped; it never aborts a scoring pass.
"""

import logging
import math
import re
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from src.recommender.exceptions import MalformedRecordError

# Configure module logger
logger = logging.getLogger(__name__)

AHASH_HEX_LENGTH = 16
_HEX_RE = re.compile(r"^[0-9a-f]+$")


class ActivityType(str, Enum):
    VIEW = "view"
    SEARCH = "search"
    STALL_VIEW = "stall_view"
    # Logged by the storefront but not scored yet
    ADD_TO_CART = "add_to_cart"
    PURCHASE = "purchase"


class RGBColor(BaseModel):
    """Average color of a product image, each channel in 0..255."""

    model_config = ConfigDict(frozen=True)

    r: float = Field(ge=0, le=255)
    g: float = Field(ge=0, le=255)
    b: float = Field(ge=0, le=255)


class ActivityEvent(BaseModel):
    """A single user interaction from the activity log."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    activity_type: ActivityType
    product_id: Optional[str] = None
    query: Optional[str] = None
    stall_id: Optional[str] = None
    timestamp: datetime

    @field_validator("timestamp")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # The activity table stores timestamptz; treat naive values as UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class Product(BaseModel):
    """A marketplace listing together with its optional image features."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str = ""
    description: str = ""
    category: str = ""
    price: float = 0.0
    seller_id: str = ""
    created_at: str = ""
    image_url: Optional[str] = None
    image_avg_color: Optional[RGBColor] = None
    image_ahash: Optional[str] = None

    @property
    def has_image_features(self) -> bool:
        return self.image_avg_color is not None or self.image_ahash is not None


class ScoredCandidate(BaseModel):
    """Transient ranking entry, built fresh for every request."""

    product_id: str
    score: float
    tiebreak_key: str = ""


class ProductSummary(BaseModel):
    """Subset of product fields needed to render a recommendation card."""

    id: str
    title: str
    category: str
    price: float
    image_url: Optional[str] = None
    created_at: str

    @classmethod
    def from_product(cls, product: Product) -> "ProductSummary":
        return cls(
            id=product.id,
            title=product.title,
            category=product.category,
            price=product.price,
            image_url=product.image_url,
            created_at=product.created_at,
        )


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    return str(value)


def _optional_text(value: Any) -> Optional[str]:
    text = _text(value).strip()
    return text or None


def _query_text(value: Any) -> Optional[str]:
    # Queries match as raw substrings; surrounding spaces are significant
    text = _text(value)
    return text if text.strip() else None


def _parse_color(row: Mapping[str, Any]) -> Optional[RGBColor]:
    channels = [row.get("image_avg_r"), row.get("image_avg_g"), row.get("image_avg_b")]
    if any(channel is None for channel in channels):
        return None
    try:
        values = [float(channel) for channel in channels]
    except (TypeError, ValueError):
        return None
    if any(math.isnan(v) or math.isinf(v) for v in values):
        return None
    try:
        return RGBColor(r=values[0], g=values[1], b=values[2])
    except ValidationError:
        return None


def _parse_ahash(value: Any) -> Optional[str]:
    text = _optional_text(value)
    if text is None:
        return None
    text = text.lower()
    if len(text) != AHASH_HEX_LENGTH or not _HEX_RE.match(text):
        return None
    return text


def activity_from_row(row: Mapping[str, Any]) -> ActivityEvent:
    """Parse one ``user_activity`` row.

    Raises:
        MalformedRecordError: If the row is missing required fields, has an
            unknown activity type, or is a view/search without its payload.
    """
    try:
        event = ActivityEvent(
            user_id=_text(row.get("user_id")),
            activity_type=row.get("activity_type"),
            product_id=_optional_text(row.get("product_id")),
            query=_query_text(row.get("query")),
            stall_id=_optional_text(row.get("stall_id")),
            timestamp=row.get("timestamp"),
        )
    except ValidationError as e:
        raise MalformedRecordError("activity", str(e), _optional_text(row.get("id"))) from e

    if not event.user_id:
        raise MalformedRecordError("activity", "missing user_id", _optional_text(row.get("id")))
    if event.activity_type is ActivityType.VIEW and event.product_id is None:
        raise MalformedRecordError("activity", "view without product_id", _optional_text(row.get("id")))
    if event.activity_type is ActivityType.SEARCH and event.query is None:
        raise MalformedRecordError("activity", "search without query", _optional_text(row.get("id")))
    return event


def product_from_row(row: Mapping[str, Any]) -> Product:
    """Parse one ``products`` row.

    Image features are best-effort: an incomplete color triple or an
    unparseable hash drops that feature instead of rejecting the product.

    Raises:
        MalformedRecordError: If the row has no id or a non-numeric price.
    """
    product_id = _optional_text(row.get("id"))
    if product_id is None:
        raise MalformedRecordError("product", "missing id")

    price = row.get("price")
    try:
        price = float(price) if price is not None else 0.0
    except (TypeError, ValueError) as e:
        raise MalformedRecordError("product", f"non-numeric price {price!r}", product_id) from e

    try:
        return Product(
            id=product_id,
            title=_text(row.get("title")),
            description=_text(row.get("description")),
            category=_text(row.get("category")),
            price=price,
            seller_id=_text(row.get("seller_id")),
            created_at=_text(row.get("created_at")),
            image_url=_optional_text(row.get("image_url")),
            image_avg_color=_parse_color(row),
            image_ahash=_parse_ahash(row.get("image_ahash")),
        )
    except ValidationError as e:
        raise MalformedRecordError("product", str(e), product_id) from e


def parse_activity_rows(rows: Iterable[Mapping[str, Any]]) -> List[ActivityEvent]:
    """Parse activity rows, skipping the ones that are malformed."""
    events = []
    skipped = 0
    for row in rows:
        try:
            events.append(activity_from_row(row))
        except MalformedRecordError as e:
            skipped += 1
            logger.warning("Skipping malformed activity row", extra={"reason": e.message})

    if skipped:
        logger.info(
            "Parsed activity rows",
            extra={"num_events": len(events), "num_skipped": skipped},
        )
    return events


def parse_product_rows(rows: Iterable[Mapping[str, Any]]) -> List[Product]:
    """Parse product rows, skipping the ones that are malformed."""
    products = []
    skipped = 0
    for row in rows:
        try:
            products.append(product_from_row(row))
        except MalformedRecordError as e:
            skipped += 1
            logger.warning("Skipping malformed product row", extra={"reason": e.message})

    if skipped:
        logger.info(
            "Parsed product rows",
            extra={"num_products": len(products), "num_skipped": skipped},
        )
    return products


def product_to_row(product: Product) -> Dict[str, Any]:
    """Flatten a product back into the column layout of the ``products`` table."""
    color = product.image_avg_color
    return {
        "id": product.id,
        "seller_id": product.seller_id,
        "title": product.title,
        "category": product.category,
        "description": product.description,
        "price": product.price,
        "image_url": product.image_url,
        "created_at": product.created_at,
        "image_avg_r": color.r if color else None,
        "image_avg_g": color.g if color else None,
        "image_avg_b": color.b if color else None,
        "image_ahash": product.image_ahash,
    }

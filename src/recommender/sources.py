"""Data sources for user activity and the product catalog.

The engine only needs a handful of read operations, collected in
``MarketplaceDataSource``. Three implementations are provided:

- ``InMemoryDataSource`` for tests and for callers that already hold rows.
- ``CsvDataSource`` for CSV snapshots exported from the marketplace database.
- ``SupabaseDataSource`` for the hosted ``user_activity`` and ``products`` tables.

Every implementation maps raw rows to typed models at this boundary and wraps
backend failures in ``DataUnavailableError``.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import pandas as pd
from supabase import Client, create_client

from src.recommender.exceptions import DataUnavailableError
from src.recommender.models import (
    ActivityEvent,
    Product,
    parse_activity_rows,
    parse_product_rows,
)

# Configure module logger
logger = logging.getLogger(__name__)

ACTIVITY_TABLE = "user_activity"
PRODUCTS_TABLE = "products"
ACTIVITY_FILENAME = "activity.csv"
PRODUCTS_FILENAME = "products.csv"
SUPABASE_PAGE_SIZE = 1000
SUPABASE_ORDER_COLUMN = "id"


class MarketplaceDataSource(ABC):
    """Read-only access to the activity log and the product catalog."""

    @abstractmethod
    def fetch_recent_activity(self, user_id: str, since: datetime) -> List[ActivityEvent]:
        """Events of one user at or after ``since``."""

    @abstractmethod
    def fetch_stall_activity(self, stall_id: str, since: datetime) -> List[ActivityEvent]:
        """Events of any user on one stall at or after ``since``."""

    @abstractmethod
    def fetch_product_activity(self, since: datetime) -> List[ActivityEvent]:
        """Events of any user that reference a product, at or after ``since``."""

    @abstractmethod
    def fetch_all_products(self) -> List[Product]:
        """The whole catalog."""

    @abstractmethod
    def fetch_products_by_seller(self, seller_id: str) -> List[Product]:
        """Catalog entries listed by one seller."""


class SnapshotDataSource(MarketplaceDataSource):
    """Base for sources that load every row and filter in memory."""

    @abstractmethod
    def _load_activity(self) -> List[ActivityEvent]:
        ...

    @abstractmethod
    def _load_products(self) -> List[Product]:
        ...

    def fetch_recent_activity(self, user_id: str, since: datetime) -> List[ActivityEvent]:
        return [
            e for e in self._load_activity()
            if e.user_id == user_id and e.timestamp >= since
        ]

    def fetch_stall_activity(self, stall_id: str, since: datetime) -> List[ActivityEvent]:
        return [
            e for e in self._load_activity()
            if e.stall_id == stall_id and e.timestamp >= since
        ]

    def fetch_product_activity(self, since: datetime) -> List[ActivityEvent]:
        return [
            e for e in self._load_activity()
            if e.product_id is not None and e.timestamp >= since
        ]

    def fetch_all_products(self) -> List[Product]:
        return list(self._load_products())

    def fetch_products_by_seller(self, seller_id: str) -> List[Product]:
        return [p for p in self._load_products() if p.seller_id == seller_id]


class InMemoryDataSource(SnapshotDataSource):
    """Serves activity and products held in memory.

    Accepts either typed models or raw rows; raw rows are parsed once, up
    front, with malformed ones skipped.
    """

    def __init__(
        self,
        activity: Iterable[Union[ActivityEvent, Mapping[str, Any]]] = (),
        products: Iterable[Union[Product, Mapping[str, Any]]] = (),
    ):
        activity = list(activity)
        products = list(products)
        self.activity: List[ActivityEvent] = [
            e for e in activity if isinstance(e, ActivityEvent)
        ] + parse_activity_rows(r for r in activity if not isinstance(r, ActivityEvent))
        self.products: List[Product] = [
            p for p in products if isinstance(p, Product)
        ] + parse_product_rows(r for r in products if not isinstance(r, Product))

    def _load_activity(self) -> List[ActivityEvent]:
        return self.activity

    def _load_products(self) -> List[Product]:
        return self.products


def _read_csv_rows(csv_path: Path) -> List[Dict[str, Any]]:
    if not csv_path.exists():
        raise FileNotFoundError(f"CSV file not found: {csv_path}")

    # Ids and hashes must stay strings; numeric columns are converted per row
    df = pd.read_csv(csv_path, dtype=str)
    return df.to_dict(orient="records")


class CsvDataSource(SnapshotDataSource):
    """Reads ``activity.csv`` and ``products.csv`` from a snapshot directory.

    Files are re-read on every fetch so a refreshed export is picked up
    without restarting the service.
    """

    def __init__(
        self,
        data_dir: str,
        activity_filename: str = ACTIVITY_FILENAME,
        products_filename: str = PRODUCTS_FILENAME,
    ):
        self.data_dir = Path(data_dir)
        self.activity_path = self.data_dir / activity_filename
        self.products_path = self.data_dir / products_filename

    def _load_activity(self) -> List[ActivityEvent]:
        try:
            rows = _read_csv_rows(self.activity_path)
        except Exception as e:
            raise DataUnavailableError(ACTIVITY_TABLE, e) from e
        logger.debug(f"Loaded {len(rows)} activity rows from {self.activity_path}")
        return parse_activity_rows(rows)

    def _load_products(self) -> List[Product]:
        try:
            rows = _read_csv_rows(self.products_path)
        except Exception as e:
            raise DataUnavailableError(PRODUCTS_TABLE, e) from e
        logger.debug(f"Loaded {len(rows)} product rows from {self.products_path}")
        return parse_product_rows(rows)


class SupabaseDataSource(MarketplaceDataSource):
    """Queries the hosted Supabase tables.

    All filtering is pushed down to the backend. Results are paged because
    PostgREST caps a single response at 1000 rows by default; pages are
    ordered by ``id`` so consecutive ranges neither overlap nor skip rows.

    When built from credentials the client is created on the first read, so
    a bad URL or key surfaces as ``DataUnavailableError`` like any other
    backend failure.
    """

    def __init__(
        self,
        client: Optional[Client] = None,
        url: Optional[str] = None,
        key: Optional[str] = None,
    ):
        if client is None and (not url or not key):
            raise ValueError("Either a Supabase client or both url and key are required")
        self.client = client
        self.url = url
        self.key = key

    def _get_client(self) -> Client:
        if self.client is None:
            self.client = create_client(self.url, self.key)
        return self.client

    def _fetch_rows(
        self,
        table: str,
        eq: Optional[Dict[str, Any]] = None,
        not_null: Optional[str] = None,
        since: Optional[datetime] = None,
    ) -> List[Dict[str, Any]]:
        rows: List[Dict[str, Any]] = []
        start = 0
        try:
            client = self._get_client()
            while True:
                query = client.table(table).select("*")
                for column, value in (eq or {}).items():
                    query = query.eq(column, value)
                if not_null is not None:
                    query = query.not_.is_(not_null, "null")
                if since is not None:
                    query = query.gte("timestamp", since.isoformat())
                query = query.order(SUPABASE_ORDER_COLUMN)
                response = query.range(start, start + SUPABASE_PAGE_SIZE - 1).execute()
                page = response.data or []
                rows.extend(page)
                if len(page) < SUPABASE_PAGE_SIZE:
                    break
                start += SUPABASE_PAGE_SIZE
        except Exception as e:
            logger.error(
                "Supabase query failed",
                extra={"table": table, "error": str(e), "error_type": type(e).__name__},
            )
            raise DataUnavailableError(table, e) from e

        logger.debug(f"Fetched {len(rows)} rows from {table}")
        return rows

    def fetch_recent_activity(self, user_id: str, since: datetime) -> List[ActivityEvent]:
        rows = self._fetch_rows(ACTIVITY_TABLE, eq={"user_id": user_id}, since=since)
        return parse_activity_rows(rows)

    def fetch_stall_activity(self, stall_id: str, since: datetime) -> List[ActivityEvent]:
        rows = self._fetch_rows(ACTIVITY_TABLE, eq={"stall_id": stall_id}, since=since)
        return parse_activity_rows(rows)

    def fetch_product_activity(self, since: datetime) -> List[ActivityEvent]:
        rows = self._fetch_rows(ACTIVITY_TABLE, not_null="product_id", since=since)
        return parse_activity_rows(rows)

    def fetch_all_products(self) -> List[Product]:
        return parse_product_rows(self._fetch_rows(PRODUCTS_TABLE))

    def fetch_products_by_seller(self, seller_id: str) -> List[Product]:
        return parse_product_rows(self._fetch_rows(PRODUCTS_TABLE, eq={"seller_id": seller_id}))


"""FastAPI dependencies shared by the routers."""

import logging
from functools import lru_cache

from fastapi import Depends

from src.api.config import Settings, get_settings
from src.recommender.sources import CsvDataSource, MarketplaceDataSource, SupabaseDataSource

logger = logging.getLogger(__name__)


@lru_cache
def _supabase_source(url: str, key: str) -> SupabaseDataSource:
    logger.info("Creating Supabase client", extra={"supabase_url": url})
    return SupabaseDataSource(url=url, key=key)


def get_data_source(settings: Settings = Depends(get_settings)) -> MarketplaceDataSource:
    """Data source selected by ``DATA_BACKEND``.

    Tests replace this dependency with an in-memory source.
    """
    if settings.DATA_BACKEND == "supabase":
        return _supabase_source(settings.SUPABASE_URL, settings.SUPABASE_KEY)
    return CsvDataSource(settings.DATA_DIR)

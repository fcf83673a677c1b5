"""Shared fixtures for building activity and catalog snapshots."""

from datetime import datetime

import pytest

from tests.factories import NOW, make_product


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def pottery_catalog():
    """The three-product catalog used by the category affinity scenario."""
    return [
        make_product("A", title="Clay Pot", category="pottery", created_at="2026-03-01T00:00:00Z"),
        make_product("B", title="Clay Jar", category="pottery", created_at="2026-03-02T00:00:00Z"),
        make_product("C", title="Wood Spoon", category="wood", created_at="2026-03-03T00:00:00Z"),
    ]


@pytest.fixture
def client():
    """Test client with metrics reset and dependency overrides cleared afterwards."""
    from fastapi.testclient import TestClient

    from src.api.main import app
    from src.api.metrics import metrics_service

    metrics_service.reset()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    metrics_service.reset()


@pytest.fixture
def serve():
    """Serve the API from the given data source."""
    from src.api.deps import get_data_source
    from src.api.main import app

    def _serve(source):
        app.dependency_overrides[get_data_source] = lambda: source
        return source

    return _serve

"""Tests for the FastAPI application endpoints.

The data source dependency is replaced with an in-memory snapshot whose
events are relative to the real clock, since the API always ranks against
the current 30-day window.
"""

from datetime import datetime, timezone

import pytest

from src.recommender.sources import InMemoryDataSource
from tests.factories import make_product, search, stall_view, view


@pytest.fixture
def marketplace(pottery_catalog):
    now = datetime.now(timezone.utc)
    products = pottery_catalog + [
        make_product("D", title="Blue Pottery Vase", category="pottery", seller_id="s2"),
    ]
    activity = [
        view("A", user_id="u1", now=now),
        view("D", user_id="u2", now=now),
        search("vase", user_id="u3", now=now),
        stall_view("seller-1", user_id="u1", now=now),
        stall_view("seller-1", user_id="u2", now=now),
    ]
    return InMemoryDataSource(activity=activity, products=products)


def test_ping_endpoint(client):
    """Test that the /ping endpoint returns correct status and JSON."""
    response = client.get("/ping")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_recommend_endpoint_returns_products(client, serve, marketplace):
    """Test that /recommend/{user_id} returns ranked product cards."""
    serve(marketplace)

    response = client.get("/recommend/u1")

    assert response.status_code == 200
    data = response.json()
    assert data["user_id"] == "u1"
    assert data["scores"] is None
    assert [p["id"] for p in data["products"]] == ["B", "D"]
    assert data["products"][0] == {
        "id": "B",
        "title": "Clay Jar",
        "category": "pottery",
        "price": 10.0,
        "image_url": None,
        "created_at": "2026-03-02T00:00:00Z",
    }


def test_recommend_endpoint_with_explain(client, serve, marketplace):
    """Test that explain=true adds the score breakdown of returned products."""
    serve(marketplace)

    response = client.get("/recommend/u1?explain=true")

    assert response.status_code == 200
    scores = response.json()["scores"]
    assert scores["scores"]["B"] == pytest.approx(3.0)
    assert scores["signals"]["category"] == {"B": 2.0, "D": 2.0}
    assert set(scores["scores"]) == {"B", "D"}


def test_recommend_endpoint_search_only_user(client, serve, marketplace):
    """Test a user whose only activity is a search."""
    serve(marketplace)

    response = client.get("/recommend/u3")

    assert [p["id"] for p in response.json()["products"]] == ["D"]


def test_recommend_endpoint_top_n(client, serve, marketplace):
    """Test that top_n truncates the list."""
    serve(marketplace)

    response = client.get("/recommend/u1?top_n=1")

    assert [p["id"] for p in response.json()["products"]] == ["B"]


def test_recommend_endpoint_unknown_user(client, serve, marketplace):
    """Test that a user without activity gets an empty list, not an error."""
    serve(marketplace)

    response = client.get("/recommend/stranger")

    assert response.status_code == 200
    assert response.json()["products"] == []


def test_seller_analytics_endpoint(client, serve, marketplace):
    """Test the seller dashboard numbers."""
    serve(marketplace)

    response = client.get("/sellers/seller-1/analytics")

    assert response.status_code == 200
    assert response.json() == {
        "seller_id": "seller-1",
        "total_views": 2,
        "unique_visitors": 2,
        "top_products": [{"id": "A", "title": "Clay Pot", "views": 1}],
    }


def test_metrics_endpoint(client, serve, marketplace):
    """Test that recommendation requests are counted."""
    serve(marketplace)
    client.get("/recommend/u1")
    client.get("/recommend/stranger")

    response = client.get("/metrics")

    assert response.status_code == 200
    data = response.json()
    assert data["request_count"] == 2
    assert data["empty_count"] == 1
    assert data["degraded_count"] == 0
    for key in ("average_latency_ms", "min_latency_ms", "max_latency_ms"):
        assert data[key] >= 0


def test_request_id_is_echoed(client, serve, marketplace):
    """Test that a caller-supplied request id comes back on the response."""
    serve(marketplace)

    response = client.get("/recommend/u1", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"


def test_request_id_is_generated(client):
    """Test that a request id is generated when none is sent."""
    response = client.get("/ping")

    assert response.headers["X-Request-ID"]

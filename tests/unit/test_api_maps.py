"""
Unit tests for source map API endpoints.
"""

import pytest

# Skip tests if fastapi is not installed
pytest.importorskip("fastapi")

from fastapi.testclient import TestClient
from symbolicator.main import app
from symbolicator.models.cache import CachePolicy
from symbolicator.services.map_store import MapStore
from symbolicator.services.pipeline import get_report_assembler
from symbolicator.services.report_assembler import ReportAssembler


APP_URL = "https://cdn.example.com/app.min.js"
VENDOR_URL = "https://cdn.example.com/vendor.min.js"


@pytest.fixture
def assembler(fake_fetcher_factory, map_document, recording_transport):
    """Assembler over in-memory maps."""
    documents = {
        APP_URL: map_document("AAAAA,SACCC", sources=["app.ts"], names=["init", "render"]),
        VENDOR_URL: map_document("AAAA", sources=["vendor.ts"]),
    }
    store = MapStore(fake_fetcher_factory(documents), policy=CachePolicy.bounded(10))
    return ReportAssembler(store, recording_transport)


@pytest.fixture
def client(assembler):
    """Create test client with the pipeline replaced."""
    app.dependency_overrides[get_report_assembler] = lambda: assembler
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_resolve_position(client):
    """Test resolving a single position."""
    response = client.post("/maps/resolve", json={"script_url": APP_URL, "line": 1, "column": 10})

    assert response.status_code == 200
    data = response.json()
    assert data["source"] == "app.ts"
    assert data["line"] == 2
    assert data["column"] == 1
    assert data["name"] == "render"
    assert data["resolved"] is True


def test_resolve_map_unavailable(client):
    """Test resolving against a script without a map."""
    response = client.post(
        "/maps/resolve",
        json={"script_url": "https://cdn.example.com/missing.js", "line": 1, "column": 0},
    )

    assert response.status_code == 404
    assert "unavailable" in response.json()["detail"]


def test_resolve_position_unresolved(client):
    """Test a line with no segments."""
    response = client.post("/maps/resolve", json={"script_url": APP_URL, "line": 7, "column": 0})

    assert response.status_code == 404


def test_resolve_validates_position(client):
    """Test a zero line number is rejected."""
    response = client.post("/maps/resolve", json={"script_url": APP_URL, "line": 0, "column": 0})

    assert response.status_code == 422


def test_stats(client):
    """Test cache and resolution statistics."""
    client.post("/maps/resolve", json={"script_url": APP_URL, "line": 1, "column": 0})
    client.post("/maps/resolve", json={"script_url": APP_URL, "line": 1, "column": 3})

    response = client.get("/maps/stats")

    assert response.status_code == 200
    data = response.json()
    assert data["cache"]["policy"] == "max-entries"
    assert data["cache"]["entries"] == 1
    assert data["cache"]["decodes"] == 1
    assert data["cache"]["hits"] == 1
    assert data["resolution"]["reports_assembled"] == 0


def test_evict_single_entry(client, assembler):
    """Test evicting one script's map."""
    client.post("/maps/resolve", json={"script_url": APP_URL, "line": 1, "column": 0})
    client.post("/maps/resolve", json={"script_url": VENDOR_URL, "line": 1, "column": 0})

    response = client.delete("/maps/cache", params={"script_url": APP_URL})

    assert response.status_code == 200
    assert response.json() == {"evicted": 1, "script_url": APP_URL}
    assert APP_URL not in assembler.map_store
    assert VENDOR_URL in assembler.map_store


def test_evict_all(client, assembler):
    """Test clearing the cache."""
    client.post("/maps/resolve", json={"script_url": APP_URL, "line": 1, "column": 0})
    client.post("/maps/resolve", json={"script_url": VENDOR_URL, "line": 1, "column": 0})

    response = client.delete("/maps/cache")

    assert response.json() == {"evicted": 2, "script_url": None}
    assert len(assembler.map_store) == 0


def test_evict_missing_entry(client):
    """Test evicting a script that was never cached."""
    response = client.delete("/maps/cache", params={"script_url": APP_URL})

    assert response.json()["evicted"] == 0

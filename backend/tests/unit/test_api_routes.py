"""Unit tests for the FastAPI surface."""

import pytest
from fastapi.testclient import TestClient

from conftest import geosearch_item
from nearby.api import routes
from nearby.main import app
from nearby.services.enrichment import EnrichmentOrchestrator
from nearby.services.geosearch import GeosearchService
from nearby.services.image_resolver import ImageResolverService
from nearby.services.location import FixedLocationProvider
from nearby.services.place_details import PlaceDetailsService


@pytest.fixture
def client(monkeypatch, wikipedia):
    orchestrator = EnrichmentOrchestrator(
        geosearch=GeosearchService(wikipedia),
        details=PlaceDetailsService(wikipedia),
        images=ImageResolverService(wikipedia),
        location=FixedLocationProvider(None),
    )
    monkeypatch.setattr(routes, "_orchestrator", orchestrator)
    monkeypatch.setattr(routes, "_wikipedia_service", wikipedia)
    with TestClient(app) as test_client:
        yield test_client


class TestHealth:
    def test_health(self, client) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


class TestSessionRoutes:
    """Tests for starting and reading sessions."""

    def test_start_session_returns_places(self, client, fake_api) -> None:
        fake_api.geosearch_items = [
            geosearch_item(1, "Ferry Building", 120.0),
            geosearch_item(2, "Coit Tower", 1530.0),
        ]

        response = client.post("/api/session", json={"lat": 37.7749, "lng": -122.4194})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        session = body["session"]
        assert session["state"] == "loaded"
        assert [place["title"] for place in session["places"]] == ["Ferry Building", "Coit Tower"]
        assert session["places"][0]["distance_label"] == "120 m"
        assert session["places"][1]["distance_label"] == "1.5 km"
        assert session["places"][1]["first_letter"] == "C"
        assert session["places"][1]["article_url"] == "https://en.m.wikipedia.org/?curid=2"

    def test_no_results_message(self, client) -> None:
        body = client.post("/api/session", json={"lat": 0.0, "lng": 0.0}).json()
        assert body["success"] is True
        assert body["session"]["places"] == []
        assert body["session"]["message"] == "No places found nearby."

    def test_geosearch_failure(self, client, fake_api) -> None:
        fake_api.fail.add("geosearch")
        body = client.post("/api/session", json={"lat": 37.7749, "lng": -122.4194}).json()
        assert body["success"] is False
        assert body["session"]["state"] == "error"
        assert body["error"]["code"] == "NETWORK_ERROR"
        assert body["session"]["message"].startswith("Network error:")

    def test_invalid_coordinates(self, client, fake_api) -> None:
        body = client.post("/api/session", json={"lat": 123.0, "lng": 0.0}).json()
        assert body["success"] is False
        assert body["error"]["code"] == "INVALID_INPUT"
        assert fake_api.requests == []

    def test_half_coordinate_rejected(self, client) -> None:
        body = client.post("/api/session", json={"lat": 37.0}).json()
        assert body["success"] is False
        assert body["error"]["code"] == "INVALID_INPUT"

    def test_no_location_available(self, client, fake_api) -> None:
        body = client.post("/api/session", json={}).json()
        assert body["success"] is False
        assert body["error"]["code"] == "NO_LOCATION"
        assert fake_api.requests == []

    def test_get_session_before_discovery(self, client) -> None:
        body = client.get("/api/session").json()
        assert body["success"] is True
        assert body["session"]["state"] == "idle"
        assert body["session"]["generation"] == 0


class TestPlaceRoutes:
    def test_get_place(self, client, fake_api) -> None:
        fake_api.geosearch_items = [geosearch_item(1, "Ferry Building", 120.0)]
        client.post("/api/session", json={"lat": 37.7749, "lng": -122.4194})

        body = client.get("/api/places/1").json()

        assert body["success"] is True
        assert body["place"]["title"] == "Ferry Building"

    def test_unknown_place(self, client) -> None:
        response = client.get("/api/places/404")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

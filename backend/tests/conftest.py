"""Shared fixtures: a fake Wikipedia/Commons API behind httpx.MockTransport."""

from typing import Any

import httpx
import pytest

from nearby.services.wikipedia import WikipediaService

TEST_USER_AGENT = "NearbyTests/1.0 (tests@example.com)"


def geosearch_item(page_id: int, title: str, dist: float) -> dict[str, Any]:
    return {"pageid": page_id, "ns": 0, "title": title, "lat": 37.77, "lon": -122.41, "dist": dist, "primary": ""}


class FakeWikiAPI:
    """Routes requests by endpoint and records every one of them.

    Attributes:
        geosearch_items: Items returned by the geosearch endpoint.
        pages: ``query.pages`` content for the detail endpoint, keyed by id.
        search_results: Commons search result titles keyed by search term.
        fail: Endpoint kinds ("geosearch", "details", "search") that raise
            a connection error.
        failing_terms: Search terms that raise a connection error.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.geosearch_items: list[Any] = []
        self.pages: dict[str, dict] = {}
        self.search_results: dict[str, list[str]] = {}
        self.fail: set[str] = set()
        self.failing_terms: set[str] = set()
        self.raw_body: dict[str, bytes] = {}

    @staticmethod
    def kind_of(request: httpx.Request) -> str:
        params = request.url.params
        if params.get("list") == "geosearch":
            return "geosearch"
        if "pageids" in params:
            return "details"
        if params.get("list") == "search":
            return "search"
        return "unknown"

    def calls(self, kind: str) -> list[httpx.Request]:
        return [request for request in self.requests if self.kind_of(request) == kind]

    def searched_terms(self) -> list[str]:
        return [request.url.params["srsearch"] for request in self.calls("search")]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        kind = self.kind_of(request)
        if kind in self.fail:
            raise httpx.ConnectError("connection refused", request=request)
        if kind in self.raw_body:
            return httpx.Response(200, content=self.raw_body[kind])

        if kind == "geosearch":
            return httpx.Response(200, json={"batchcomplete": "", "query": {"geosearch": self.geosearch_items}})
        if kind == "details":
            requested = request.url.params["pageids"].split("|")
            pages = {page_id: self.pages[page_id] for page_id in requested if page_id in self.pages}
            return httpx.Response(200, json={"batchcomplete": "", "query": {"pages": pages}})
        if kind == "search":
            term = request.url.params["srsearch"]
            if term in self.failing_terms:
                raise httpx.ConnectError("connection reset", request=request)
            titles = self.search_results.get(term, [])
            return httpx.Response(
                200,
                json={"query": {"searchinfo": {"totalhits": len(titles)}, "search": [{"ns": 6, "title": t} for t in titles]}},
            )
        return httpx.Response(400, json={"error": {"code": "badrequest"}})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def fake_api() -> FakeWikiAPI:
    return FakeWikiAPI()


@pytest.fixture
def wikipedia(fake_api: FakeWikiAPI) -> WikipediaService:
    return WikipediaService(
        transport=fake_api.transport(),
        user_agent=TEST_USER_AGENT,
        max_retries=0,
        retry_delay=0,
    )

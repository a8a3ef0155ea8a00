"""Wikipedia/Wikimedia API client shared by the enrichment services.

Three endpoints are used, all through the MediaWiki action API:
- Wikipedia geosearch (places by coordinate)
- Wikipedia page details (extracts, page props, thumbnails)
- Wikimedia Commons full-text search in the File namespace

Architecture:
- Shared httpx client with connection pooling
- Every request goes through the HTTP response cache when one is given
- Semaphore-based rate limiting (max 3 concurrent requests by default)
- Retry with backoff on transient failures, then typed errors
"""

import asyncio
import logging
from typing import Any
from urllib.parse import quote

import httpx

from nearby.models import InvalidRequest, NetworkError, ParseError
from nearby.services.cache import CacheService, CachingTransport
from nearby.settings import settings

logger = logging.getLogger(__name__)

GEOSEARCH_RADIUS_METERS = 10000
GEOSEARCH_LIMIT = 24
THUMBNAIL_SIZE = 200
MEDIA_SEARCH_LIMIT = 10
FILE_NAMESPACE = 6
MAXLAG_SECONDS = 5


class WikipediaService:
    """Wikipedia/Wikimedia API client.

    Returns decoded JSON payloads; mapping them into places is left to the
    geosearch, detail and image services. Failures are raised as
    ``NetworkError`` (transport, HTTP status, exhausted retries) or
    ``ParseError`` (body is not a JSON object).
    """

    WIKIPEDIA_ACTION_API = "https://en.wikipedia.org/w/api.php"
    COMMONS_API = "https://commons.wikimedia.org/w/api.php"
    COMMONS_MEDIA_HOST = "https://commons.wikimedia.org/wiki"

    def __init__(
        self,
        cache: CacheService | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        user_agent: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        retry_delay: float = 1.5,
        max_concurrency: int | None = None,
    ) -> None:
        self._cache = cache
        self._transport = transport
        self._timeout = timeout if timeout is not None else settings.HTTP_TIMEOUT
        self._max_retries = max_retries if max_retries is not None else settings.MAX_RETRIES
        self._retry_delay = retry_delay
        self._headers = {
            "User-Agent": user_agent or settings.USER_AGENT,
            "Accept": "application/json",
        }
        self._client: httpx.AsyncClient | None = None
        self._semaphore = asyncio.Semaphore(max_concurrency or settings.MAX_CONCURRENT_REQUESTS)

    @property
    def headers(self) -> dict[str, str]:
        return dict(self._headers)

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the shared HTTP client."""
        if self._client is None or self._client.is_closed:
            transport = self._transport
            if self._cache is not None:
                transport = CachingTransport(self._cache, transport)
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                headers=self._headers,
                limits=httpx.Limits(max_connections=8, max_keepalive_connections=4),
                follow_redirects=True,
                transport=transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _request_json(self, url: str, params: dict[str, Any]) -> dict:
        """Make a GET request with retry on transient failures.

        Raises:
            NetworkError: Transport failure, error status, or retries exhausted.
            ParseError: The body is not a JSON object.
        """
        client = self._get_client()
        last_error: BaseException | None = None

        for attempt in range(self._max_retries + 1):
            try:
                async with self._semaphore:
                    response = await client.get(url, params=params)
                    response.raise_for_status()
                if response.headers.get("mediawiki-api-error") == "maxlag":
                    raise _MaxLagError(response.headers.get("retry-after", "?"))
            except (httpx.TimeoutException, httpx.ConnectError, _MaxLagError) as e:
                last_error = e
                if attempt < self._max_retries:
                    logger.info(f"[WIKI] Retry {attempt+1}/{self._max_retries} for {url}: {type(e).__name__}")
                    await asyncio.sleep(self._retry_delay)
                    continue
                raise NetworkError(e) from e
            except httpx.HTTPStatusError as e:
                last_error = e
                if e.response.status_code == 429 and attempt < self._max_retries:
                    await asyncio.sleep(self._retry_delay * 2)
                    continue
                raise NetworkError(e) from e
            except httpx.InvalidURL as e:
                raise InvalidRequest(str(e)) from e
            except httpx.HTTPError as e:
                raise NetworkError(e) from e

            try:
                data = response.json()
            except ValueError as e:
                raise ParseError(f"Response from {url} is not valid JSON") from e
            if not isinstance(data, dict):
                raise ParseError(f"Unexpected response type from {url}: {type(data).__name__}")
            return data

        raise NetworkError(last_error)

    async def geosearch(self, lat: float, lng: float) -> dict:
        """Query pages near a coordinate."""
        params = {
            "action": "query",
            "format": "json",
            "list": "geosearch",
            "gscoord": f"{lat}|{lng}",
            "gsradius": GEOSEARCH_RADIUS_METERS,
            "gslimit": GEOSEARCH_LIMIT,
            "maxlag": MAXLAG_SECONDS,
        }
        return await self._request_json(self.WIKIPEDIA_ACTION_API, params)

    async def page_details(self, page_ids: list[int]) -> dict:
        """Fetch extracts, short descriptions and thumbnails for pages in one call."""
        if not page_ids:
            raise InvalidRequest("page_ids cannot be empty")
        params = {
            "action": "query",
            "format": "json",
            "prop": "extracts|pageimages|pageprops",
            "exintro": 1,
            "explaintext": 1,
            "pageids": "|".join(str(page_id) for page_id in page_ids),
            "pithumbsize": THUMBNAIL_SIZE,
            "maxlag": MAXLAG_SECONDS,
        }
        return await self._request_json(self.WIKIPEDIA_ACTION_API, params)

    async def search_files(self, term: str) -> dict:
        """Full-text search in the Commons File namespace."""
        if not term.strip():
            raise InvalidRequest("search term cannot be empty")
        params = {
            "action": "query",
            "format": "json",
            "list": "search",
            "srsearch": term,
            "srnamespace": FILE_NAMESPACE,
            "srlimit": MEDIA_SEARCH_LIMIT,
        }
        return await self._request_json(self.COMMONS_API, params)

    def file_path_url(self, file_title: str, width: int = 300) -> str:
        """Build the direct image URL for a Commons file title.

        Spaces become underscores and everything but ``:`` is
        percent-encoded, so titles containing ``?``, ``&`` or ``#`` stay in
        the path.
        """
        path = quote(file_title.replace(" ", "_"), safe=":")
        return f"{self.COMMONS_MEDIA_HOST}/Special:FilePath/{path}?width={width}"


class _MaxLagError(Exception):
    """The API refused the request because replication lag is too high."""

    def __init__(self, retry_after: str) -> None:
        super().__init__(f"maxlag exceeded, retry after {retry_after}s")

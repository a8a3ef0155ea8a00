"""Cache entry and cache key helpers shared by both cache tiers."""

import time
from dataclasses import dataclass, field
from urllib.parse import urlencode

import httpx

# Only these request headers change what the server returns to us
RELEVANT_HEADERS = frozenset({"user-agent", "accept", "accept-language"})


@dataclass
class CacheEntry:
    """A stored response body plus the metadata needed to replay it."""

    body: bytes
    status_code: int = 200
    headers: dict[str, str] = field(default_factory=dict)
    stored_at: float = field(default_factory=time.time)

    @property
    def size(self) -> int:
        return len(self.body)

    @classmethod
    def from_response(cls, response: httpx.Response) -> "CacheEntry":
        """Build an entry from a response whose body has already been read."""
        headers = {}
        content_type = response.headers.get("content-type")
        if content_type:
            headers["content-type"] = content_type
        return cls(body=response.content, status_code=response.status_code, headers=headers)


def build_cache_key(request: httpx.Request) -> str:
    """Generate the canonical cache key for a request.

    Query parameters are sorted by name and only the relevant headers are
    included, so requests that differ only in parameter order or in
    irrelevant headers share one entry.

    Example:
        >>> build_cache_key(httpx.Request("GET", "https://example.org/w?b=2&a=1"))
        'GET https://example.org/w?a=1&b=2 |'
    """
    url = request.url
    origin = f"{url.scheme}://{url.host}"
    if url.port is not None:
        origin += f":{url.port}"
    query = urlencode(sorted(url.params.multi_items()))
    headers = sorted(
        (name.lower(), value)
        for name, value in request.headers.items()
        if name.lower() in RELEVANT_HEADERS
    )
    header_part = "&".join(f"{name}={value}" for name, value in headers)
    target = f"{origin}{url.path}"
    if query:
        target += f"?{query}"
    return f"{request.method} {target} |{(' ' + header_part) if header_part else ''}"

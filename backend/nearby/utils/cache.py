"""In-memory LRU cache bounded by total byte size.

Process-level tier of the HTTP response cache. Entries are evicted by
capacity only (least recently used first), never by age. Evicted entries are
handed back to the caller so they can be demoted to a slower tier.
"""

from collections import OrderedDict
from typing import Callable, Generic, TypeVar

V = TypeVar("V")


class LRUCache(Generic[V]):
    """Byte-bounded LRU cache.

    ``sizeof`` reports how many bytes a value accounts for. Values larger
    than the whole capacity are never stored.
    """

    def __init__(self, max_bytes: int, sizeof: Callable[[V], int] = len) -> None:  # type: ignore[assignment]
        self._cache: OrderedDict[str, V] = OrderedDict()
        self._max_bytes = max_bytes
        self._sizeof = sizeof
        self._total_bytes = 0

    def __contains__(self, key: str) -> bool:
        return key in self._cache

    def __len__(self) -> int:
        return len(self._cache)

    @property
    def total_bytes(self) -> int:
        return self._total_bytes

    @property
    def max_bytes(self) -> int:
        return self._max_bytes

    def keys(self) -> list[str]:
        """Keys from least to most recently used."""
        return list(self._cache)

    def get(self, key: str) -> V | None:
        if key not in self._cache:
            return None
        self._cache.move_to_end(key)
        return self._cache[key]

    def set(self, key: str, value: V) -> list[tuple[str, V]]:
        """Store ``value`` and return the entries evicted to make room.

        A value that cannot fit at all is returned as evicted itself.
        """
        size = self._sizeof(value)
        if size > self._max_bytes:
            self.pop(key)
            return [(key, value)]

        if key in self._cache:
            self._total_bytes -= self._sizeof(self._cache[key])
            self._cache.move_to_end(key)
        self._cache[key] = value
        self._total_bytes += size

        evicted: list[tuple[str, V]] = []
        while self._total_bytes > self._max_bytes:
            old_key, old_value = self._cache.popitem(last=False)
            self._total_bytes -= self._sizeof(old_value)
            evicted.append((old_key, old_value))
        return evicted

    def pop(self, key: str) -> V | None:
        value = self._cache.pop(key, None)
        if value is not None:
            self._total_bytes -= self._sizeof(value)
        return value

    def clear(self) -> None:
        self._cache.clear()
        self._total_bytes = 0

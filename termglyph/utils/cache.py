"""LRU cache for per-aspect-ratio lookup tables.

Converters are shared between threads, so access is serialised by a lock.
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from typing import Callable, Hashable, TypeVar

T = TypeVar("T")


class LookupCache:
    """Small thread-safe LRU cache."""

    def __init__(self, max_size: int = 16) -> None:
        self._max_size = max_size
        self._cache: OrderedDict[Hashable, object] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: Hashable) -> object | None:
        """Get a cached value, or None if not present."""
        with self._lock:
            if key in self._cache:
                self._cache.move_to_end(key)
                return self._cache[key]
            return None

    def put(self, key: Hashable, value: object) -> None:
        with self._lock:
            if key in self._cache:
                self._cache.move_to_end(key)
            elif len(self._cache) >= self._max_size:
                self._cache.popitem(last=False)
            self._cache[key] = value

    def get_or_create(self, key: Hashable, factory: Callable[[], T]) -> T:
        """Return the cached value for ``key``, building it on a miss.

        The factory runs outside the lock; two racing misses may both build,
        and the later result wins.
        """
        value = self.get(key)
        if value is None:
            value = factory()
            self.put(key, value)
        return value  # type: ignore[return-value]

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    @property
    def size(self) -> int:
        return len(self._cache)

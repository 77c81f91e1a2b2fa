"""Keyed TTL cache with stale fallback.

Fresh reads honour the TTL; ``get_stale`` returns the last stored value
regardless of age so feeds can degrade to it when a refresh fails.
"""

import time
from typing import Callable, Generic, Hashable, Optional, TypeVar

V = TypeVar("V")


class TtlCache(Generic[V]):
    """Stores one value per key for *ttl_seconds*.

    Args:
        ttl_seconds: How long a stored value counts as fresh.
        clock: Monotonic time source in seconds (injectable for tests).
    """

    def __init__(
        self,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[Hashable, tuple[V, float]] = {}

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def get(self, key: Hashable) -> Optional[V]:
        """Return the value for *key* if it is still fresh, else ``None``."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, stored_at = entry
        if self._clock() - stored_at >= self._ttl:
            return None
        return value

    def get_stale(self, key: Hashable) -> Optional[V]:
        """Return the last value stored for *key*, however old."""
        entry = self._entries.get(key)
        return entry[0] if entry is not None else None

    def set(self, key: Hashable, value: V) -> None:
        self._entries[key] = (value, self._clock())

    def clear(self) -> None:
        self._entries.clear()

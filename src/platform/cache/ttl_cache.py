"""In-process key → (value, expiry) cache with lazy eviction and an explicit sweep."""

import time
from typing import Callable, Dict, Generic, Hashable, Optional, Tuple, TypeVar

from opentelemetry import trace


_K = TypeVar('_K', bound=Hashable)
_V = TypeVar('_V')

_MISSING = object()


class TTLCache(Generic[_K, _V]):
    """
    Expiry is absolute: each entry stores `clock() + ttl` at write time.

    - `get` evicts an expired entry on read (check-and-evict, no await in between)
    - `sweep` evicts every expired entry, run periodically by CacheSweeper
    - `clock` is injectable so expiry can be driven deterministically in tests
    """

    def __init__(
        self,
        *,
        name: str,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.name = name
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[_K, Tuple[_V, float]] = {}
        self.tracer = trace.get_tracer(__name__)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return self.get(key, _MISSING) is not _MISSING  # type: ignore[arg-type]

    def get(self, key: _K, default: Optional[_V] = None) -> Optional[_V]:
        entry = self._entries.get(key)
        if entry is None:
            return default

        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return default
        return value

    def set(self, key: _K, value: _V, *, ttl_seconds: Optional[float] = None) -> None:
        ttl = self._ttl_seconds if ttl_seconds is None else ttl_seconds
        self._entries[key] = (value, self._clock() + ttl)

    def add_if_absent(self, key: _K, value: _V) -> bool:
        """Returns False when a live entry already exists (used for event dedup)."""
        if key in self:
            return False
        self.set(key, value)
        return True

    def delete(self, key: _K) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def sweep(self) -> int:
        with self.tracer.start_as_current_span(
            'cache.sweep', attributes={'cache.name': self.name}
        ) as span:
            now = self._clock()
            expired = [key for key, (_, expires_at) in self._entries.items() if now >= expires_at]
            for key in expired:
                del self._entries[key]
            span.set_attribute('cache.evicted', len(expired))
            return len(expired)

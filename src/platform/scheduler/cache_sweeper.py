"""
Periodic sweep of the in-process TTL caches and of lapsed table holds.

Runs inside the app lifespan task group; lookups already evict lazily, the
sweep only bounds memory for keys that are never read again. Lapsed holds stop
blocking as soon as they pass `expires_at`; the sweep rewrites them to `expired`.
"""

from typing import Awaitable, Callable, Optional, Sequence

import anyio
from anyio.abc import TaskGroup

from src.platform.cache.ttl_cache import TTLCache
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.booking_metrics import metrics


class CacheSweeper:
    def __init__(
        self,
        *,
        caches: Sequence[TTLCache],
        interval_seconds: float,
        hold_expirer: Optional[Callable[[], Awaitable[int]]] = None,
    ) -> None:
        self._caches = list(caches)
        self._interval_seconds = interval_seconds
        self._hold_expirer = hold_expirer

    def sweep_once(self) -> int:
        total = 0
        for cache in self._caches:
            try:
                evicted = cache.sweep()
            except Exception as e:
                Logger.base.error(f'❌ [CacheSweeper] {cache.name} sweep failed: {e}')
                continue
            metrics.record_cache_eviction(cache=cache.name, count=evicted)
            total += evicted
        if total:
            Logger.base.debug(f'🧹 [CacheSweeper] Evicted {total} expired entries')
        return total

    async def expire_holds(self) -> int:
        if self._hold_expirer is None:
            return 0
        try:
            return await self._hold_expirer()
        except Exception as e:
            # Next tick retries; the loop must outlive a database outage
            Logger.base.error(f'❌ [CacheSweeper] Hold expiry failed: {e}')
            return 0

    async def run(self) -> None:
        Logger.base.info(
            f'🧹 [CacheSweeper] Started (interval={self._interval_seconds}s, '
            f'caches={[c.name for c in self._caches]}, holds={self._hold_expirer is not None})'
        )
        while True:
            await anyio.sleep(self._interval_seconds)
            self.sweep_once()
            await self.expire_holds()

    async def start(self, *, task_group: TaskGroup) -> None:
        task_group.start_soon(self.run)

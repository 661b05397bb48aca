"""
Fixed-window request counter per user id.

Each user gets ``max_requests`` requests per ``window_ms`` window. The
window opens on the first request and a request at or after
``reset_time`` opens a fresh one. Counters live in the injected store
and are never deleted.
"""

from __future__ import annotations

import logging
from typing import Callable

from config.settings import config
from database.models import RateLimitEntry, rate_limit_key
from database.store import KeyValueStore
from utils.schemas import now_ms

logger = logging.getLogger(__name__)


class RateLimiter:
    def __init__(
        self,
        store: KeyValueStore,
        *,
        max_requests: int = config.rate_limit_max_requests,
        window_ms: int = config.rate_limit_window_ms,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._store = store
        self.max_requests = max_requests
        self.window_ms = window_ms
        self._clock = clock

    async def check(self, user_id: str) -> bool:
        """Count one request for ``user_id``. Returns False when over the limit."""
        now = self._clock()
        key = rate_limit_key(user_id)
        raw = await self._store.get(key)
        entry = RateLimitEntry.model_validate(raw) if raw is not None else None

        if entry is None or now >= entry.reset_time:
            entry = RateLimitEntry(count=1, reset_time=now + self.window_ms)
            await self._store.set(key, entry.model_dump())
            return True

        if entry.count >= self.max_requests:
            logger.info(
                "Rate limit hit for user %s (%d requests, resets in %d ms)",
                user_id, entry.count, entry.reset_time - now,
            )
            return False

        entry.count += 1
        await self._store.set(key, entry.model_dump())
        return True

"""
Caches for generated narratives, owned by the caller of the insights engine.

Values are JSON strings; keys are built by the narrative service
(user + calendar day). The engine itself never touches a cache.
"""
import logging
import threading
import time
from typing import Callable, Dict, Optional, Protocol, Tuple

import redis

from app.config import settings

logger = logging.getLogger(__name__)


class NarrativeCache(Protocol):
    def get(self, key: str) -> Optional[str]:
        ...

    def put(self, key: str, value: str, ttl: int) -> None:
        ...


class InMemoryNarrativeCache:
    """Process-local cache with per-key expiry."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._items: Dict[str, Tuple[float, str]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            item = self._items.get(key)
            if item is None:
                return None
            expires_at, value = item
            if self._clock() >= expires_at:
                del self._items[key]
                return None
            return value

    def put(self, key: str, value: str, ttl: int) -> None:
        with self._lock:
            now = self._clock()
            # Keys are per user per day and are rarely read again once stale
            self._items = {
                k: item for k, item in self._items.items() if item[0] > now
            }
            self._items[key] = (now + ttl, value)


class RedisNarrativeCache:
    """
    Redis-backed cache shared across workers.

    Redis failures are logged and treated as a miss (get) or a skipped write
    (put), so narrative generation keeps working without the cache.
    """

    KEY_PREFIX = "insights:narrative:"

    def __init__(self, client: Optional[redis.Redis] = None):
        self.redis = client if client is not None else redis.from_url(settings.redis_url)

    def _key(self, key: str) -> str:
        return f"{self.KEY_PREFIX}{key}"

    def get(self, key: str) -> Optional[str]:
        try:
            value = self.redis.get(self._key(key))
        except redis.RedisError as e:
            logger.warning("Narrative cache read failed for %s: %s", key, e)
            return None
        if value is None:
            return None
        return value.decode("utf-8") if isinstance(value, bytes) else value

    def put(self, key: str, value: str, ttl: int) -> None:
        try:
            self.redis.set(self._key(key), value, ex=ttl)
        except redis.RedisError as e:
            logger.warning("Narrative cache write failed for %s: %s", key, e)

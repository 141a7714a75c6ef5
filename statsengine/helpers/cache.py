import copy
import logging
import threading
from typing import Any, Callable, Dict, Optional

from dogpile.cache import make_region
from dogpile.cache.api import NO_VALUE

from statsengine.helpers import settings
from statsengine.helpers.utils import content_hash


class ResultCache:
    """
    Advisory result cache on top of a dogpile.cache region.

    Keys are SHA-256 content hashes of (operation, data, options), so a hit
    is always a result for identical input. Eviction is the region's
    expiration time. Values are deep-copied on the way out so callers never
    share mutable state with the cache.
    """

    def __init__(
        self,
        backend: Optional[str] = None,
        expiration_time: Optional[int] = None,
        arguments: Optional[Dict[str, Any]] = None,
    ):
        self.backend = backend or settings.CACHE_BACKEND
        self.expiration_time = (
            expiration_time if expiration_time is not None else settings.CACHE_EXPIRATION
        )
        self.region = make_region().configure(
            backend=self.backend,
            expiration_time=self.expiration_time,
            arguments=arguments or {},
        )
        self.hits = 0
        self.misses = 0
        self._stats_lock = threading.Lock()

    def __str__(self) -> str:
        return f"ResultCache(backend={self.backend}, expiration_time={self.expiration_time})"

    @staticmethod
    def make_key(operation: str, data: Any, options: Any) -> str:
        return f"{operation}:{content_hash(operation, data, options)}"

    def get_or_create(self, key: str, creator: Callable[[], Any]) -> Any:
        """
        Return the cached value for key, computing it with creator on a miss.

        Concurrent callers of the same key wait on dogpile's per-key lock
        instead of computing twice.
        """
        computed = []

        def _create():
            computed.append(True)
            return creator()

        value = self.region.get_or_create(key, _create)
        with self._stats_lock:
            if computed:
                self.misses += 1
            else:
                self.hits += 1
        logging.debug(f"{self} - {'miss' if computed else 'hit'} {key[:48]}")
        return copy.deepcopy(value)

    def get(self, key: str) -> Optional[Any]:
        """
        Get from cache.
        :return: value or None if missing/expired
        """
        value = self.region.get(key)
        return None if value is NO_VALUE else copy.deepcopy(value)

    def set(self, key: str, value: Any) -> None:
        self.region.set(key, value)

    def delete(self, key: str) -> None:
        """
        Invalidate cache entry.
        """
        self.region.delete(key)

    def invalidate(self) -> None:
        """Drop every entry (hard invalidation of the region)."""
        self.region.invalidate(hard=True)

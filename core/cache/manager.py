"""Response cache manager.

Keeps successful provider responses in memory, keyed per provider by the exact request
(text, source language, target language). Nothing is persisted; contents live for the process.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from models.cache_models import CacheKey, CacheStatistics
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

__all__: list[str] = ["ResponseCacheManager"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class ResponseCacheManager:
    """In-memory cache of provider responses.

    The top-level mapping is keyed by provider name and guarded by a single lock. Critical
    sections only touch the mappings and counters, so every method is safe to call from the
    event loop or any other thread. There is no eviction and no expiry.
    """

    def __init__(self) -> None:
        self._entries: dict[str, dict[CacheKey, str]] = {}
        self._hits: int = 0
        self._misses: int = 0
        self._lock: threading.Lock = threading.Lock()
        logger.debug("ResponseCacheManager instance created")

    def get(self, provider: str, text: str, source: str, target: str) -> tuple[str, bool]:
        """Look up a cached response.

        Args:
            provider (str): Provider name.
            text (str): Source text exactly as sent.
            source (str): Resolved source language code.
            target (str): Resolved target language code.

        Returns:
            tuple[str, bool]: The cached translation and True, or an empty string and False.
        """
        key = CacheKey(provider, text, source, target)
        with self._lock:
            value: str | None = self._entries.get(provider, {}).get(key)
            if value is None:
                self._misses += 1
            else:
                self._hits += 1

        if value is None:
            logger.debug("Cache miss: provider='%s' %s->%s", provider, source, target)
            return "", False
        logger.debug("Cache hit: provider='%s' %s->%s", provider, source, target)
        return value, True

    def set(self, provider: str, text: str, source: str, target: str, value: str) -> None:
        """Store a response.

        Writing the value already stored for the key is a no-op. A different value replaces the
        stale one.
        """
        key = CacheKey(provider, text, source, target)
        with self._lock:
            bucket: dict[CacheKey, str] = self._entries.setdefault(provider, {})
            previous: str | None = bucket.get(key)
            if previous == value:
                return
            bucket[key] = value

        if previous is None:
            logger.debug("Response cached: provider='%s' %s->%s", provider, source, target)
        else:
            logger.info("Stale cache entry replaced: provider='%s' %s->%s", provider, source, target)

    def clear(self) -> None:
        """Drop every entry and reset the hit and miss counters in one step."""
        with self._lock:
            removed: int = sum(len(bucket) for bucket in self._entries.values())
            self._entries = {}
            self._hits = 0
            self._misses = 0
        logger.info("Response cache cleared (%d entries)", removed)

    def size(self) -> int:
        with self._lock:
            return sum(len(bucket) for bucket in self._entries.values())

    def statistics(self) -> CacheStatistics:
        """Return a snapshot of the cache usage.

        Returns:
            CacheStatistics: Entry count, hit and miss counters and entries per provider.
        """
        with self._lock:
            distribution: dict[str, int] = {name: len(bucket) for name, bucket in self._entries.items() if bucket}
            return CacheStatistics(
                total_entries=sum(distribution.values()),
                hits=self._hits,
                misses=self._misses,
                provider_distribution=distribution,
            )

"""Models for the in-memory response cache.

Defines the cache key and the statistics snapshot returned by the cache manager.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import NamedTuple

__all__: list[str] = ["CacheKey", "CacheStatistics"]


class CacheKey(NamedTuple):
    """Key of a cached translation.

    Values are compared by exact string equality; no normalization is applied.
    """

    provider: str
    text: str
    source: str
    target: str


@dataclass
class CacheStatistics:
    """Cache usage statistics.

    Attributes:
        total_entries (int): Total number of cached translations.
        hits (int): Lookups answered from the cache.
        misses (int): Lookups that found nothing.
        provider_distribution (dict[str, int]): Entries per provider (provider -> count).
    """

    total_entries: int = 0
    hits: int = 0
    misses: int = 0
    provider_distribution: dict[str, int] = field(default_factory=dict)

    @property
    def hit_rate(self) -> float:
        lookups: int = self.hits + self.misses
        if lookups == 0:
            return 0.0
        return self.hits / lookups

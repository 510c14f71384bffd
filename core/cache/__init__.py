"""Response cache package.

Provides in-memory caching of provider responses.
"""

from __future__ import annotations

from core.cache.manager import ResponseCacheManager

__all__: list[str] = ["ResponseCacheManager"]

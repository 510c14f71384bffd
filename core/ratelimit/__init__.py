"""Per-provider rate limiting package."""

from __future__ import annotations

from core.ratelimit.manager import RateLimitManager, RateWindow

__all__: list[str] = ["RateLimitManager", "RateWindow"]

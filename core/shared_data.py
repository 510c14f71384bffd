"""Shared data management for multitrans components.

This module defines the SharedData class, a container for the service objects shared by the
orchestration components: configuration, response cache, rate limiter and translation manager.
Components receive these objects explicitly instead of reaching for module-level singletons.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from core.cache.manager import ResponseCacheManager
from core.ratelimit.manager import RateLimitManager
from core.trans.manager import TransManager

if TYPE_CHECKING:
    from config.loader import Config


__all__: list[str] = ["SharedData"]


@dataclass
class SharedData:
    _config: Config = field()
    _cache_manager: ResponseCacheManager = field(init=False)
    _rate_limit_manager: RateLimitManager = field(init=False)
    _trans_manager: TransManager = field(init=False)

    async def async_init(self) -> None:
        self._cache_manager = ResponseCacheManager()
        self._rate_limit_manager = RateLimitManager(
            default_max_requests=self.config.RATE_LIMIT.MAX_REQUESTS,
            default_window_seconds=self.config.RATE_LIMIT.WINDOW,
        )
        self._trans_manager = TransManager(self.config, self._cache_manager, self._rate_limit_manager)
        await self._trans_manager.initialize()

    @property
    def config(self) -> Config:
        return self._config

    @property
    def cache_manager(self) -> ResponseCacheManager:
        return self._cache_manager

    @property
    def rate_limit_manager(self) -> RateLimitManager:
        return self._rate_limit_manager

    @property
    def trans_manager(self) -> TransManager:
        return self._trans_manager

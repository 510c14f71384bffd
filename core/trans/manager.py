from __future__ import annotations

import asyncio
from contextlib import suppress
from typing import TYPE_CHECKING

from core.trans.aggregator import ResultAggregator
from core.trans.dispatcher import Dispatcher, RetryPolicy, TimeoutPolicy
from core.trans.engines import HttpProviderAdapter  # noqa: F401
from core.trans.interface import (
    NotSupportedLanguagesError,
    ProviderAdapter,
    TranslateExceptionError,
    UnknownAdapterError,
)
from core.trans.language import SUPPORTED_LANGUAGES
from core.trans.prober import HealthProber
from utils.excludable_queue import ExcludableQueue
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Sequence

    from config.loader import Config
    from core.cache.manager import ResponseCacheManager
    from core.ratelimit.manager import RateLimitManager
    from models.event_models import TransEvent, TranslationFailed, TranslationSucceeded
    from models.provider_models import ProviderDescriptor


__all__: list[str] = ["TransManager"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class TransManager:
    """Orchestration facade over the prober, the dispatcher and the result aggregator.

    Lifecycle: initialize() builds adapters and rate limits, start() runs the aggregator
    consumer, probe_providers() selects the active providers, translate() fans submissions out
    and shutdown() drains events and releases adapters.

    Attributes:
        events (ExcludableQueue[TransEvent]): Event stream from provider tasks to the aggregator.
        aggregator (ResultAggregator): Single consumer of the event stream.
    """

    def __init__(
        self,
        config: Config,
        cache_manager: ResponseCacheManager,
        rate_limit_manager: RateLimitManager,
        *,
        adapters: dict[str, ProviderAdapter] | None = None,
    ) -> None:
        """Initialize the TransManager with the given configuration and shared services.

        Args:
            config (Config): Application configuration, including the provider descriptors.
            cache_manager (ResponseCacheManager): Shared response cache.
            rate_limit_manager (RateLimitManager): Shared rate limiter.
            adapters (dict[str, ProviderAdapter] | None): Pre-built adapter instances keyed by adapter
                name. Missing adapters are created from the registry during initialize().
        """
        self.config: Config = config
        self.cache_manager: ResponseCacheManager = cache_manager
        self.rate_limit_manager: RateLimitManager = rate_limit_manager
        self._adapters: dict[str, ProviderAdapter] = dict(adapters or {})
        self._descriptors: list[ProviderDescriptor] = list(config.PROVIDER_DESCRIPTORS)
        self._configured: list[ProviderDescriptor] = []
        self._active: list[ProviderDescriptor] = []
        self._submission_id: int = 0
        self._consumer: asyncio.Task[None] | None = None

        self.events: ExcludableQueue[TransEvent] = ExcludableQueue()
        self.aggregator: ResultAggregator = ResultAggregator()
        self.prober: HealthProber = HealthProber(
            self._adapters,
            timeout=config.PROBE.TIMEOUT,
            stagger=config.PROBE.STAGGER,
        )
        self.dispatcher: Dispatcher = Dispatcher(
            cache=cache_manager,
            limiter=rate_limit_manager,
            adapters=self._adapters,
            retry_policy=RetryPolicy(
                max_attempts=config.RETRY.MAX_ATTEMPTS,
                base_delay=config.RETRY.BASE_DELAY,
                max_delay=config.RETRY.MAX_DELAY,
            ),
            timeout_policy=TimeoutPolicy(
                base=config.TIMEOUT.BASE,
                medium=config.TIMEOUT.MEDIUM,
                long=config.TIMEOUT.LONG,
                medium_threshold=config.TIMEOUT.MEDIUM_THRESHOLD,
                long_threshold=config.TIMEOUT.LONG_THRESHOLD,
            ),
            fallback_language=config.TRANSLATION.FALLBACK_LANGUAGE,
            alternate_language=config.TRANSLATION.ALTERNATE_LANGUAGE,
        )
        logger.debug("Registered provider adapters: %s", ProviderAdapter.registered)

    async def initialize(self) -> None:
        """Create adapter instances and install per-provider rate limits.

        Providers whose adapter cannot be created are skipped. Until probe_providers() runs,
        every configured provider is active.
        """
        logger.info("TransManager initialization started")
        self._configured = []
        for descriptor in self._descriptors:
            if descriptor.adapter not in self._adapters:
                try:
                    self._adapters[descriptor.adapter] = ProviderAdapter.create(descriptor.adapter)
                except UnknownAdapterError as err:
                    logger.critical("Provider '%s' skipped: %s", descriptor.name, err)
                    continue

            self.rate_limit_manager.configure(
                descriptor.name,
                descriptor.max_requests if descriptor.max_requests is not None else self.config.RATE_LIMIT.MAX_REQUESTS,
                descriptor.window_seconds if descriptor.window_seconds is not None else self.config.RATE_LIMIT.WINDOW,
            )
            self._configured.append(descriptor)
            logger.info("Translation provider configured: '%s'", descriptor.name)

        self._active = list(self._configured)

    def update_providers(self, descriptors: Sequence[ProviderDescriptor]) -> None:
        """Replace the provider configuration.

        Call initialize() and probe_providers() afterwards; the active set is empty until then.
        """
        self._descriptors = list(descriptors)
        self._configured = []
        self._active = []
        logger.info("Provider configuration replaced (%d providers)", len(self._descriptors))

    def fetch_provider_names(self) -> list[str]:
        """Get the names of the active providers, in configuration order."""
        return [descriptor.name for descriptor in self._active]

    async def start(self) -> None:
        """Start the aggregator consumer task if it is not running."""
        if self._consumer is not None and not self._consumer.done():
            logger.debug("Aggregator consumer already running")
            return
        self._consumer = asyncio.create_task(self.aggregator.consume(self.events), name="result-aggregator")

    async def drain(self) -> None:
        """Wait until the aggregator has applied every queued event."""
        if self._consumer is None or self._consumer.done():
            return
        await self.events.join()

    async def probe_providers(self) -> list[str]:
        """Probe every configured provider and keep the available ones active.

        Returns:
            list[str]: Names of the available providers, in configuration order.
        """
        self._active = await self.prober.run(self._configured, self.events.put)
        return self.fetch_provider_names()

    async def translate(self, text: str, target: str | None = None) -> list[TranslationSucceeded | TranslationFailed]:
        """Translate text with every active provider concurrently.

        Args:
            text (str): Text to translate. Blank text is ignored.
            target (str | None): Target language code. None uses TRANSLATION.TARGET_LANGUAGE.

        Returns:
            list[TranslationSucceeded | TranslationFailed]: One terminal outcome per active provider.

        Raises:
            NotSupportedLanguagesError: If the target language is not supported.
            TranslateExceptionError: If no provider is active.
        """
        if not text.strip():
            logger.debug("Ignoring blank submission")
            return []

        selected: str = (target or self.config.TRANSLATION.TARGET_LANGUAGE).lower()
        if selected not in SUPPORTED_LANGUAGES:
            msg: str = f"Unsupported target language '{selected}'. Supported: {', '.join(SUPPORTED_LANGUAGES)}"
            raise NotSupportedLanguagesError(msg)

        if not self._active:
            msg = "No translation providers currently available"
            raise TranslateExceptionError(msg)

        self._submission_id += 1
        return await self.dispatcher.dispatch(self._submission_id, self._active, text, selected, self.events.put)

    async def shutdown(self) -> None:
        """Drain pending events, stop the aggregator and close every adapter."""
        logger.info("TransManager shutdown started")
        await self.drain()
        if self._consumer is not None and not self._consumer.done():
            self._consumer.cancel()
            with suppress(asyncio.CancelledError):
                await self._consumer
        self._consumer = None
        dropped: int = await self.events.clear()
        if dropped:
            logger.warning("Dropped %d unprocessed events", dropped)

        for name, adapter in self._adapters.items():
            try:
                await adapter.close()
            except Exception as err:  # noqa: BLE001
                logger.error("Error closing adapter '%s': %s", name, err)
        logger.info("TransManager shutdown completed")

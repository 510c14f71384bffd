"""Startup health probe fan-out.

Every configured provider is probed concurrently, with start times staggered by configuration
order. Outcomes are reported as they arrive and the set of available providers gates what the
dispatcher may use until the next probe run.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Final

from models.event_models import ProbeOutcome, ProbeResolved, ProbingCompleted, ProbingStarted
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import AsyncIterator, Awaitable, Callable, Mapping, Sequence

    from core.trans.interface import ProviderAdapter
    from models.event_models import TransEvent
    from models.provider_models import ProviderDescriptor
    from models.translation_models import ProbeResult

__all__: list[str] = ["HealthProber"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

DEFAULT_PROBE_TIMEOUT: Final[float] = 5.0
DEFAULT_PROBE_STAGGER: Final[float] = 0.3


class HealthProber:
    """Probes providers and reports which ones answer with HTTP 200.

    Attributes:
        timeout (float): Per-provider probe timeout in seconds.
        stagger (float): Delay between consecutive probe starts in seconds.
    """

    def __init__(
        self,
        adapters: Mapping[str, ProviderAdapter],
        *,
        timeout: float = DEFAULT_PROBE_TIMEOUT,
        stagger: float = DEFAULT_PROBE_STAGGER,
    ) -> None:
        """Initialize the prober.

        Args:
            adapters (Mapping[str, ProviderAdapter]): Adapter instances keyed by adapter name.
            timeout (float): Per-provider probe timeout in seconds.
            stagger (float): Delay between consecutive probe starts in seconds.
        """
        self._adapters: Mapping[str, ProviderAdapter] = adapters
        self.timeout: float = timeout
        self.stagger: float = stagger

    async def _probe_one(self, index: int, descriptor: ProviderDescriptor) -> ProbeOutcome:
        """Probe a single provider; never raises."""
        if index and self.stagger > 0:
            await asyncio.sleep(index * self.stagger)

        adapter: ProviderAdapter | None = self._adapters.get(descriptor.adapter)
        if adapter is None:
            return ProbeOutcome(name=descriptor.name, url=descriptor.url, error=f"No adapter '{descriptor.adapter}'")

        credential: str = descriptor.resolve_credential()
        if credential:
            descriptor = descriptor.with_credential(credential)

        try:
            async with asyncio.timeout(self.timeout):
                result: ProbeResult = await adapter.probe(descriptor, self.timeout)
        except TimeoutError:
            msg: str = f"Probe timed out after {self.timeout:g}s"
            return ProbeOutcome(name=descriptor.name, url=descriptor.url, error=msg)
        except Exception as err:  # noqa: BLE001
            logger.warning("Probe of '%s' raised %r", descriptor.name, err)
            return ProbeOutcome(name=descriptor.name, url=descriptor.url, error=str(err) or err.__class__.__name__)

        return ProbeOutcome(name=descriptor.name, url=result.url, status=result.status, error=result.error)

    async def probe_all(self, descriptors: Sequence[ProviderDescriptor]) -> AsyncIterator[ProbeOutcome]:
        """Probe every provider concurrently and yield outcomes in completion order.

        Exactly one outcome is yielded per descriptor. Leaving the iteration early cancels the
        probes that are still running.

        Args:
            descriptors (Sequence[ProviderDescriptor]): Providers in configuration order.

        Yields:
            ProbeOutcome: One outcome per provider, as soon as it resolves.
        """
        tasks: list[asyncio.Task[ProbeOutcome]] = [
            asyncio.create_task(self._probe_one(index, descriptor), name=f"probe-{descriptor.name}")
            for index, descriptor in enumerate(descriptors)
        ]
        try:
            for next_done in asyncio.as_completed(tasks):
                yield await next_done
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()

    async def run(
        self,
        descriptors: Sequence[ProviderDescriptor],
        emit: Callable[[TransEvent], Awaitable[None]],
    ) -> list[ProviderDescriptor]:
        """Probe providers and report the run as events.

        ProbingStarted comes first, then one ProbeResolved per provider in completion order and a
        final ProbingCompleted.

        Args:
            descriptors (Sequence[ProviderDescriptor]): Providers in configuration order.
            emit (Callable[[TransEvent], Awaitable[None]]): Event sink, typically the event queue's put().

        Returns:
            list[ProviderDescriptor]: Available providers, in configuration order.
        """
        total: int = len(descriptors)
        logger.info("Probing %d providers", total)
        available: set[str] = set()
        resolved: int = 0
        await emit(ProbingStarted(providers=tuple(d.name for d in descriptors), total=total))

        async for outcome in self.probe_all(descriptors):
            resolved += 1
            if outcome.is_available:
                available.add(outcome.name)
                logger.info("[%d/%d] %s available", resolved, total, outcome.name)
            else:
                logger.info(
                    "[%d/%d] %s unavailable (status=%d, error='%s')",
                    resolved,
                    total,
                    outcome.name,
                    outcome.status,
                    outcome.error,
                )
            await emit(ProbeResolved(outcome=outcome, total=total))

        result: list[ProviderDescriptor] = [descriptor for descriptor in descriptors if descriptor.name in available]
        await emit(ProbingCompleted(available=tuple(d.name for d in result), total=total))
        logger.info("Probing completed: %d of %d providers available", len(result), total)
        return result

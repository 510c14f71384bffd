"""Result aggregator and progress tracker.

The aggregator is the only writer of provider state. It applies events one at a time, either
from its consumer task reading the event queue or synchronously through apply(), so many
concurrent provider completions never race on the same map. The presentation layer only sees
immutable snapshots.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

from models.event_models import (
    ProbeResolved,
    ProbingCompleted,
    ProbingStarted,
    ProviderStatus,
    RetryScheduled,
    TranslationDispatched,
    TranslationFailed,
    TranslationSucceeded,
)
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable

    from models.event_models import TransEvent

__all__: list[str] = ["AggregateView", "ProviderView", "ResultAggregator"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

PROGRESS_PENDING: Final[float] = 0.0
PROGRESS_RETRYING: Final[float] = 0.5
PROGRESS_DONE: Final[float] = 1.0

PROBING_TEXT: Final[str] = "Probing..."
TRANSLATING_TEXT: Final[str] = "Translating..."
RETRY_TEXT: Final[str] = "Retrying... (attempt {attempt}/{max_attempts})"


@dataclass(frozen=True)
class ProviderView:
    """Read-only state of one provider.

    Attributes:
        name (str): Provider name.
        status (ProviderStatus): Latest status.
        display (str): Text to show: the translation, a placeholder or a diagnostic.
        progress (float): 0.0 translating or failed, 0.5 retrying, 1.0 succeeded.
        attempt (int): Latest attempt number reported for the current submission.
        max_attempts (int): Attempt limit of the current submission.
        from_cache (bool): Whether the displayed translation came from the cache.
        kind (str): Failure kind name of a failed translation, empty otherwise.
    """

    name: str
    status: ProviderStatus
    display: str = ""
    progress: float = PROGRESS_PENDING
    attempt: int = 0
    max_attempts: int = 0
    from_cache: bool = False
    kind: str = ""


@dataclass(frozen=True)
class AggregateView:
    """Read-only snapshot of everything the presentation layer may show."""

    available: tuple[str, ...]
    probing_done: bool
    probes_resolved: int
    probes_total: int
    submission_id: int
    translations_completed: int
    translations_dispatched: int
    providers: tuple[ProviderView, ...]

    def provider(self, name: str) -> ProviderView | None:
        for view in self.providers:
            if view.name == name:
                return view
        return None


@dataclass
class _ProviderSlot:
    name: str
    status: ProviderStatus = ProviderStatus.IDLE
    display: str = ""
    progress: float = PROGRESS_PENDING
    attempt: int = 0
    max_attempts: int = 0
    from_cache: bool = False
    kind: str = ""

    def freeze(self) -> ProviderView:
        return ProviderView(
            name=self.name,
            status=self.status,
            display=self.display,
            progress=self.progress,
            attempt=self.attempt,
            max_attempts=self.max_attempts,
            from_cache=self.from_cache,
            kind=self.kind,
        )


@dataclass
class _State:
    available: list[str] = field(default_factory=list)
    probing_done: bool = False
    probes_resolved: int = 0
    probes_total: int = 0
    probe_order: list[str] = field(default_factory=list)
    submission_id: int = 0
    translations_completed: int = 0
    translations_dispatched: int = 0
    completed_providers: set[str] = field(default_factory=set)
    slots: dict[str, _ProviderSlot] = field(default_factory=dict)


class ResultAggregator:
    """Single consumer of the event stream.

    Per provider the latest event wins. Events of a submission older than the newest one seen
    are stale and ignored, so a slow answer to an earlier request never overwrites the current one.
    """

    def __init__(self) -> None:
        self._state: _State = _State()
        self._listeners: list[Callable[[TransEvent], None]] = []

    def subscribe(self, listener: Callable[[TransEvent], None]) -> None:
        """Register a callback invoked after each applied event."""
        self._listeners.append(listener)

    def _slot(self, name: str) -> _ProviderSlot:
        slot: _ProviderSlot | None = self._state.slots.get(name)
        if slot is None:
            slot = _ProviderSlot(name=name)
            self._state.slots[name] = slot
        return slot

    async def consume(self, queue: asyncio.Queue[TransEvent]) -> None:
        """Apply events from the queue until the task is cancelled."""
        logger.info("Result aggregator started")
        try:
            while True:
                event: TransEvent = await queue.get()
                try:
                    self.apply(event)
                finally:
                    queue.task_done()
        except asyncio.CancelledError:
            logger.info("Result aggregator stopped")
            raise

    def apply(self, event: TransEvent) -> None:
        """Apply a single event to the aggregate state."""
        match event:
            case ProbingStarted():
                self._on_probing_started(event)
            case ProbeResolved():
                self._on_probe_resolved(event)
            case ProbingCompleted():
                self._on_probing_completed(event)
            case TranslationDispatched():
                self._on_dispatched(event)
            case RetryScheduled():
                self._on_retry(event)
            case TranslationSucceeded():
                self._on_succeeded(event)
            case TranslationFailed():
                self._on_failed(event)
            case _:
                logger.warning("Ignoring unknown event: %r", event)
                return

        for listener in self._listeners:
            try:
                listener(event)
            except Exception:
                logger.exception("Listener failed for %r", event)

    def _on_probing_started(self, event: ProbingStarted) -> None:
        state: _State = self._state
        state.available = []
        state.probing_done = False
        state.probes_resolved = 0
        state.probes_total = event.total
        state.probe_order = list(event.providers)
        for name in event.providers:
            slot: _ProviderSlot = self._slot(name)
            slot.status = ProviderStatus.PROBING
            slot.display = PROBING_TEXT
            slot.progress = PROGRESS_PENDING
        logger.debug("Probing started for %d providers", event.total)

    def _on_probe_resolved(self, event: ProbeResolved) -> None:
        state: _State = self._state
        if state.probing_done:
            # First outcome of a new probe run.
            state.available = []
            state.probing_done = False
            state.probes_resolved = 0
        state.probes_total = event.total
        state.probes_resolved += 1

        slot: _ProviderSlot = self._slot(event.outcome.name)
        if event.outcome.is_available:
            slot.status = ProviderStatus.AVAILABLE
            slot.display = "available"
            if event.outcome.name not in state.available:
                state.available.append(event.outcome.name)
        else:
            slot.status = ProviderStatus.UNAVAILABLE
            slot.display = event.outcome.error or f"HTTP {event.outcome.status}"
        logger.debug("Probe resolved %d/%d: %s", state.probes_resolved, state.probes_total, event.outcome)

    def _on_probing_completed(self, event: ProbingCompleted) -> None:
        state: _State = self._state
        state.available = list(event.available)
        state.probes_total = event.total
        state.probing_done = True

    def _is_stale(self, submission_id: int) -> bool:
        if submission_id < self._state.submission_id:
            logger.debug("Ignoring event of stale submission %d", submission_id)
            return True
        return False

    def _on_dispatched(self, event: TranslationDispatched) -> None:
        state: _State = self._state
        if self._is_stale(event.submission_id):
            return
        if event.submission_id > state.submission_id:
            state.submission_id = event.submission_id
            state.translations_dispatched = 0
            state.translations_completed = 0
            state.completed_providers = set()

        state.translations_dispatched += 1
        slot: _ProviderSlot = self._slot(event.provider)
        slot.status = ProviderStatus.TRANSLATING
        slot.display = TRANSLATING_TEXT
        slot.progress = PROGRESS_PENDING
        slot.attempt = 0
        slot.max_attempts = event.max_attempts
        slot.from_cache = False
        slot.kind = ""

    def _on_retry(self, event: RetryScheduled) -> None:
        if self._is_stale(event.submission_id):
            return
        slot: _ProviderSlot = self._slot(event.provider)
        slot.status = ProviderStatus.RETRYING
        slot.display = RETRY_TEXT.format(attempt=event.attempt, max_attempts=event.max_attempts)
        slot.progress = PROGRESS_RETRYING
        slot.attempt = event.attempt
        slot.max_attempts = event.max_attempts

    def _complete(self, provider: str) -> None:
        state: _State = self._state
        if provider not in state.completed_providers:
            state.completed_providers.add(provider)
            state.translations_completed += 1

    def _on_succeeded(self, event: TranslationSucceeded) -> None:
        if self._is_stale(event.submission_id):
            return
        slot: _ProviderSlot = self._slot(event.provider)
        slot.status = ProviderStatus.SUCCEEDED
        slot.display = event.text
        slot.progress = PROGRESS_DONE
        slot.attempt = event.attempts
        slot.from_cache = event.from_cache
        slot.kind = ""
        self._complete(event.provider)

    def _on_failed(self, event: TranslationFailed) -> None:
        if self._is_stale(event.submission_id):
            return
        slot: _ProviderSlot = self._slot(event.provider)
        slot.status = ProviderStatus.FAILED
        slot.display = event.diagnostic
        slot.progress = PROGRESS_PENDING
        slot.attempt = event.attempts
        slot.kind = event.kind
        self._complete(event.provider)

    @property
    def probing_done(self) -> bool:
        return self._state.probing_done

    @property
    def is_translating(self) -> bool:
        return self._state.translations_completed < self._state.translations_dispatched

    @property
    def probe_progress(self) -> float:
        """Fraction of resolved probes, 1.0 once probing has completed."""
        state: _State = self._state
        if state.probing_done:
            return 1.0
        if state.probes_total == 0:
            return 0.0
        return state.probes_resolved / state.probes_total

    @property
    def translation_progress(self) -> float:
        state: _State = self._state
        if state.translations_dispatched == 0:
            return 0.0
        return state.translations_completed / state.translations_dispatched

    def snapshot(self) -> AggregateView:
        """Return an immutable view of the current state.

        Providers are listed available-first, then the other probed providers in configuration
        order, then any remaining ones by name.
        """
        state: _State = self._state
        ordered: list[str] = [name for name in state.available if name in state.slots]
        ordered += [name for name in state.probe_order if name in state.slots and name not in ordered]
        ordered += sorted(name for name in state.slots if name not in ordered)
        return AggregateView(
            available=tuple(state.available),
            probing_done=state.probing_done,
            probes_resolved=state.probes_resolved,
            probes_total=state.probes_total,
            submission_id=state.submission_id,
            translations_completed=state.translations_completed,
            translations_dispatched=state.translations_dispatched,
            providers=tuple(state.slots[name].freeze() for name in ordered),
        )

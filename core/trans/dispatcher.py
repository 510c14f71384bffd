"""Retry-aware dispatcher.

A submission is fanned out as one asyncio task per active provider. Each task resolves the
languages, consults the cache, asks the rate limiter for admission, calls the provider adapter
under a size-scaled timeout and retries retryable failures with exponential backoff. Progress
is reported only through immutable events, so tasks never touch presentation state.

Task states: Pending -> InFlight -> Success | RetryScheduled | Failed, RetryScheduled -> InFlight.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeAlias

from core.trans.errors import FailureKind, ProviderError, format_diagnostic, is_retryable
from core.trans.language import resolve_languages
from models.event_models import (
    RetryScheduled,
    TranslationDispatched,
    TranslationFailed,
    TranslationSucceeded,
)
from models.translation_models import RetryState, TranslationTask
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Awaitable, Callable, Mapping, Sequence

    from core.cache.manager import ResponseCacheManager
    from core.ratelimit.manager import RateLimitManager
    from core.trans.interface import ProviderAdapter
    from models.event_models import TransEvent
    from models.provider_models import ProviderDescriptor

__all__: list[str] = ["Dispatcher", "RetryPolicy", "TimeoutPolicy"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

TerminalEvent: TypeAlias = TranslationSucceeded | TranslationFailed
Emit: TypeAlias = "Callable[[TransEvent], Awaitable[None]]"


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt limit and exponential backoff.

    Attributes:
        max_attempts (int): Network calls allowed per task, including the first.
        base_delay (float): Delay before the second attempt in seconds. 0 disables backoff.
        max_delay (float): Upper bound of any delay in seconds.
    """

    max_attempts: int = 3
    base_delay: float = 0.5
    max_delay: float = 4.0

    def backoff(self, attempt: int) -> float:
        """Return the delay to wait before the given attempt number (2 or later)."""
        if self.base_delay <= 0:
            return 0.0
        return min(self.base_delay * 2 ** max(attempt - 2, 0), self.max_delay)


@dataclass(frozen=True)
class TimeoutPolicy:
    """Request timeout scaled by input size.

    Attributes:
        base (float): Timeout for short texts in seconds.
        medium (float): Timeout for texts longer than medium_threshold characters.
        long (float): Timeout for texts longer than long_threshold characters.
        medium_threshold (int): Character count above which medium applies.
        long_threshold (int): Character count above which long applies.
    """

    base: float = 15.0
    medium: float = 30.0
    long: float = 45.0
    medium_threshold: int = 500
    long_threshold: int = 1500

    def for_text(self, text: str) -> float:
        if len(text) > self.long_threshold:
            return self.long
        if len(text) > self.medium_threshold:
            return self.medium
        return self.base


class Dispatcher:
    """Runs translation tasks against providers and reports their progress as events."""

    def __init__(
        self,
        *,
        cache: ResponseCacheManager,
        limiter: RateLimitManager,
        adapters: Mapping[str, ProviderAdapter],
        retry_policy: RetryPolicy | None = None,
        timeout_policy: TimeoutPolicy | None = None,
        fallback_language: str = "en",
        alternate_language: str = "ru",
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            cache (ResponseCacheManager): Shared response cache.
            limiter (RateLimitManager): Shared rate limiter.
            adapters (Mapping[str, ProviderAdapter]): Adapter instances keyed by adapter name.
            retry_policy (RetryPolicy | None): Attempt limit and backoff. None uses the defaults.
            timeout_policy (TimeoutPolicy | None): Size-scaled timeouts. None uses the defaults.
            fallback_language (str): Target used when the text is already in the selected language.
            alternate_language (str): Target used when the fallback is also the text's language.
            sleep (Callable[[float], Awaitable[None]]): Backoff sleep, replaceable in tests.
        """
        self._cache: ResponseCacheManager = cache
        self._limiter: RateLimitManager = limiter
        self._adapters: Mapping[str, ProviderAdapter] = adapters
        self.retry_policy: RetryPolicy = retry_policy or RetryPolicy()
        self.timeout_policy: TimeoutPolicy = timeout_policy or TimeoutPolicy()
        self.fallback_language: str = fallback_language
        self.alternate_language: str = alternate_language
        self._sleep: Callable[[float], Awaitable[None]] = sleep

    async def dispatch(
        self,
        submission_id: int,
        descriptors: Sequence[ProviderDescriptor],
        text: str,
        selected: str,
        emit: Emit,
    ) -> list[TerminalEvent]:
        """Translate text with every given provider concurrently.

        Args:
            submission_id (int): Identifier of this submission.
            descriptors (Sequence[ProviderDescriptor]): Active providers.
            text (str): Text to translate.
            selected (str): Target language chosen by the user.
            emit (Emit): Event sink.

        Returns:
            list[TerminalEvent]: One terminal event per provider, in the order of descriptors.
        """
        logger.info("Submission %d: dispatching to %d providers", submission_id, len(descriptors))
        tasks: list[asyncio.Task[TerminalEvent]] = [
            asyncio.create_task(
                self.run_task(submission_id, descriptor, text, selected, emit),
                name=f"translate-{submission_id}-{descriptor.name}",
            )
            for descriptor in descriptors
        ]
        return list(await asyncio.gather(*tasks))

    async def run_task(
        self,
        submission_id: int,
        descriptor: ProviderDescriptor,
        text: str,
        selected: str,
        emit: Emit,
    ) -> TerminalEvent:
        """Run one provider's task to a terminal state.

        Unexpected exceptions are logged and reported as an UNKNOWN failure, so one provider's
        task never aborts another's.
        """
        retry = RetryState(max_attempts=self.retry_policy.max_attempts)
        try:
            return await self._run(submission_id, descriptor, text, selected, retry, emit)
        except Exception as err:
            logger.exception("Unexpected error in the task of '%s'", descriptor.name)
            error = ProviderError(descriptor.name, FailureKind.UNKNOWN, f"Unexpected error: {err!r}")
            event = TranslationFailed(
                submission_id=submission_id,
                provider=descriptor.name,
                kind=error.kind.value,
                diagnostic=format_diagnostic(error, will_retry=False),
                attempts=retry.attempt,
            )
            retry.clear()
            await emit(event)
            return event

    async def _run(  # noqa: PLR0913
        self,
        submission_id: int,
        descriptor: ProviderDescriptor,
        text: str,
        selected: str,
        retry: RetryState,
        emit: Emit,
    ) -> TerminalEvent:
        source, target = resolve_languages(
            text, selected, fallback=self.fallback_language, alternate=self.alternate_language
        )
        task = TranslationTask(
            submission_id=submission_id, descriptor=descriptor, text=text, source=source, target=target, retry=retry
        )
        await emit(
            TranslationDispatched(
                submission_id=submission_id,
                provider=task.provider,
                source=source,
                target=target,
                max_attempts=retry.max_attempts,
            )
        )

        if source == target:
            msg: str = f"Source and target language are both '{source}'"
            return await self._fail(task, ProviderError(task.provider, FailureKind.LANGUAGE_CONFLICT, msg), emit)

        cached, found = self._cache.get(task.provider, text, source, target)
        if found:
            return await self._succeed(task, cached, emit, from_cache=True)

        credential: str = descriptor.resolve_credential()
        if descriptor.requires_credential and not credential:
            msg = f"No API key configured (set api_key or {descriptor.credential_env_var})"
            return await self._fail(task, ProviderError(task.provider, FailureKind.UNAUTHORIZED, msg), emit)
        call_descriptor: ProviderDescriptor = descriptor.with_credential(credential) if credential else descriptor

        adapter: ProviderAdapter | None = self._adapters.get(descriptor.adapter)
        if adapter is None:
            msg = f"No adapter instance for '{descriptor.adapter}'"
            return await self._fail(task, ProviderError(task.provider, FailureKind.UNKNOWN, msg), emit)

        timeout: float = self.timeout_policy.for_text(text)
        while True:
            if not self._limiter.try_acquire(task.provider):
                window = self._limiter.window(task.provider)
                msg = f"Local rate limit reached ({window.max_requests} requests / {window.window_seconds:g}s)"
                return await self._fail(task, ProviderError(task.provider, FailureKind.RATE_LIMIT_EXCEEDED, msg), emit)

            retry.advance()
            logger.debug("'%s': attempt %d/%d", task.provider, retry.attempt, retry.max_attempts)
            try:
                async with asyncio.timeout(timeout):
                    translated: str = await adapter.translate(call_descriptor, text, source, target, timeout)
            except ProviderError as err:
                error: ProviderError = err
            except TimeoutError:
                error = ProviderError(task.provider, FailureKind.TIMEOUT, f"Request timed out after {timeout:g}s")
            else:
                self._cache.set(task.provider, text, source, target, translated)
                return await self._succeed(task, translated, emit, from_cache=False)

            if retry.exhausted or not is_retryable(error.kind, descriptor.retry_on):
                return await self._fail(task, error, emit)

            next_attempt: int = retry.attempt + 1
            delay: float = self.retry_policy.backoff(next_attempt)
            logger.warning(
                "'%s': %s, retrying (attempt %d/%d) in %.2fs",
                task.provider,
                error.kind.value,
                next_attempt,
                retry.max_attempts,
                delay,
            )
            await emit(
                RetryScheduled(
                    submission_id=submission_id,
                    provider=task.provider,
                    attempt=next_attempt,
                    max_attempts=retry.max_attempts,
                    delay=delay,
                    kind=error.kind.value,
                    message=format_diagnostic(error, will_retry=True),
                )
            )
            if delay > 0:
                await self._sleep(delay)

    async def _succeed(self, task: TranslationTask, text: str, emit: Emit, *, from_cache: bool) -> TranslationSucceeded:
        event = TranslationSucceeded(
            submission_id=task.submission_id,
            provider=task.provider,
            text=text,
            attempts=task.retry.attempt,
            from_cache=from_cache,
        )
        logger.info(
            "'%s': translation completed (%s > %s)%s",
            task.provider,
            task.source,
            task.target,
            " from cache" if from_cache else "",
        )
        task.retry.clear()
        await emit(event)
        return event

    async def _fail(self, task: TranslationTask, error: ProviderError, emit: Emit) -> TranslationFailed:
        event = TranslationFailed(
            submission_id=task.submission_id,
            provider=task.provider,
            kind=error.kind.value,
            diagnostic=format_diagnostic(error, will_retry=False),
            attempts=task.retry.attempt,
        )
        logger.error("'%s': translation failed after %d attempts: %r", task.provider, event.attempts, error)
        task.retry.clear()
        await emit(event)
        return event

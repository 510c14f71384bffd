"""Tests for Dispatcher.

Tests the per-provider task lifecycle: language resolution, cache use, credentials, rate
limiting, retry with backoff and the failure taxonomy.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

from core.trans.dispatcher import Dispatcher, RetryPolicy, TimeoutPolicy
from core.trans.errors import FailureKind, ProviderError
from models.event_models import RetryScheduled, TranslationDispatched, TranslationFailed, TranslationSucceeded

if TYPE_CHECKING:
    from collections.abc import Callable

    from core.cache.manager import ResponseCacheManager
    from core.ratelimit.manager import RateLimitManager
    from models.provider_models import ProviderDescriptor
    from tests.core.trans.conftest import EventLog, ScriptedAdapter


class SleepRecorder:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def sleeper() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def dispatcher(
    cache: ResponseCacheManager, limiter: RateLimitManager, adapter: ScriptedAdapter, sleeper: SleepRecorder
) -> Dispatcher:
    return Dispatcher(
        cache=cache,
        limiter=limiter,
        adapters={"fake": adapter},
        retry_policy=RetryPolicy(max_attempts=3, base_delay=0.5, max_delay=4.0),
        fallback_language="en",
        alternate_language="ru",
        sleep=sleeper,
    )


def test_backoff_doubles_and_is_capped() -> None:
    policy = RetryPolicy(max_attempts=6, base_delay=0.5, max_delay=1.5)

    assert [policy.backoff(attempt) for attempt in range(2, 6)] == [0.5, 1.0, 1.5, 1.5]
    assert RetryPolicy(base_delay=0).backoff(2) == 0.0


def test_timeout_scales_with_text_length() -> None:
    policy = TimeoutPolicy()

    assert policy.for_text("a" * 500) == 15.0
    assert policy.for_text("a" * 501) == 30.0
    assert policy.for_text("a" * 1500) == 30.0
    assert policy.for_text("a" * 1501) == 45.0


@pytest.mark.asyncio
async def test_dispatch_mixed_outcomes(
    dispatcher: Dispatcher,
    adapter: ScriptedAdapter,
    event_log: EventLog,
    sleeper: SleepRecorder,
    make_descriptor: Callable[..., ProviderDescriptor],
) -> None:
    """A succeeds at once, B recovers from two timeouts, C is rejected with 401 on every attempt."""
    adapter.script("A", "hallo")
    adapter.script(
        "B",
        ProviderError("B", FailureKind.TIMEOUT, "Request timed out after 15s"),
        ProviderError("B", FailureKind.TIMEOUT, "Request timed out after 15s"),
        "hallo",
    )
    adapter.script("C", ProviderError("C", FailureKind.UNAUTHORIZED, "Invalid or missing API key", 401))
    descriptors = [make_descriptor("A"), make_descriptor("B"), make_descriptor("C")]

    results = await dispatcher.dispatch(1, descriptors, "hello", "de", event_log)

    assert [event.provider for event in results] == ["A", "B", "C"]
    a, b, c = results
    assert isinstance(a, TranslationSucceeded)
    assert (a.text, a.attempts, a.from_cache) == ("hallo", 1, False)
    assert isinstance(b, TranslationSucceeded)
    assert (b.text, b.attempts) == ("hallo", 3)
    assert isinstance(c, TranslationFailed)
    assert c.kind == "UNAUTHORIZED"
    assert c.attempts == 3
    assert "Suggestion: Check your API key configuration" in c.diagnostic
    assert c.diagnostic.endswith("Manual intervention required")
    assert [len(adapter.calls_for(name)) for name in ("A", "B", "C")] == [1, 3, 3]

    retries: list[RetryScheduled] = [event for event in event_log.of_type(RetryScheduled) if event.provider == "B"]
    assert [(event.attempt, event.max_attempts) for event in retries] == [(2, 3), (3, 3)]
    assert all(event.kind == "TIMEOUT" for event in retries)
    assert "Will retry automatically" in retries[0].message
    assert sorted(sleeper.delays) == [0.5, 0.5, 1.0, 1.0]

    dispatched: list[TranslationDispatched] = event_log.of_type(TranslationDispatched)
    assert {(event.provider, event.source, event.target) for event in dispatched} == {
        ("A", "en", "de"),
        ("B", "en", "de"),
        ("C", "en", "de"),
    }


@pytest.mark.asyncio
async def test_every_task_emits_exactly_one_terminal_event(
    dispatcher: Dispatcher,
    adapter: ScriptedAdapter,
    event_log: EventLog,
    make_descriptor: Callable[..., ProviderDescriptor],
) -> None:
    adapter.script("B", ProviderError("B", FailureKind.TIMEOUT, "Request timed out after 15s"))
    descriptors = [make_descriptor("A"), make_descriptor("B")]

    await dispatcher.dispatch(7, descriptors, "Hello", "ru", event_log)

    for name in ("A", "B"):
        events = event_log.for_provider(name)
        terminal = [event for event in events if isinstance(event, TranslationSucceeded | TranslationFailed)]
        assert len(terminal) == 1
        assert events[0] == next(e for e in events if isinstance(e, TranslationDispatched))
        assert events[-1] is terminal[0]
        assert all(event.submission_id == 7 for event in events)


@pytest.mark.asyncio
async def test_retry_stops_after_max_attempts(
    dispatcher: Dispatcher,
    adapter: ScriptedAdapter,
    event_log: EventLog,
    make_descriptor: Callable[..., ProviderDescriptor],
) -> None:
    adapter.script("A", ProviderError("A", FailureKind.SERVER_ERROR, "Server error (HTTP 500)", 500))

    (result,) = await dispatcher.dispatch(1, [make_descriptor("A")], "Hello", "ru", event_log)

    assert isinstance(result, TranslationFailed)
    assert result.kind == "SERVER_ERROR"
    assert result.attempts == 3
    assert len(adapter.calls) == 3
    assert len(event_log.of_type(RetryScheduled)) == 2


@pytest.mark.asyncio
async def test_retry_on_list_replaces_default_kinds(
    dispatcher: Dispatcher,
    adapter: ScriptedAdapter,
    event_log: EventLog,
    make_descriptor: Callable[..., ProviderDescriptor],
) -> None:
    adapter.script("C", ProviderError("C", FailureKind.UNAUTHORIZED, "Invalid or missing API key", 401))

    (result,) = await dispatcher.dispatch(1, [make_descriptor("C", retry_on=["TIMEOUT"])], "Hello", "ru", event_log)

    assert isinstance(result, TranslationFailed)
    assert result.kind == "UNAUTHORIZED"
    assert result.attempts == 1
    assert len(adapter.calls) == 1
    assert event_log.of_type(RetryScheduled) == []


@pytest.mark.asyncio
async def test_not_found_is_retried_by_default(
    dispatcher: Dispatcher,
    adapter: ScriptedAdapter,
    event_log: EventLog,
    make_descriptor: Callable[..., ProviderDescriptor],
) -> None:
    adapter.script("A", ProviderError("A", FailureKind.NOT_FOUND, "Service endpoint not found", 404), "Привет")

    (result,) = await dispatcher.dispatch(1, [make_descriptor("A")], "Hello", "ru", event_log)

    assert isinstance(result, TranslationSucceeded)
    assert result.attempts == 2


@pytest.mark.asyncio
async def test_remote_rate_limit_is_not_retried(
    dispatcher: Dispatcher,
    adapter: ScriptedAdapter,
    event_log: EventLog,
    make_descriptor: Callable[..., ProviderDescriptor],
) -> None:
    adapter.script("A", ProviderError("A", FailureKind.RATE_LIMIT_EXCEEDED, "Rate limit exceeded by the provider", 429))

    (result,) = await dispatcher.dispatch(1, [make_descriptor("A")], "Hello", "ru", event_log)

    assert isinstance(result, TranslationFailed)
    assert result.kind == "RATE_LIMIT_EXCEEDED"
    assert result.attempts == 1


@pytest.mark.asyncio
async def test_cached_response_skips_the_network(
    dispatcher: Dispatcher,
    adapter: ScriptedAdapter,
    cache: ResponseCacheManager,
    event_log: EventLog,
    make_descriptor: Callable[..., ProviderDescriptor],
) -> None:
    descriptor: ProviderDescriptor = make_descriptor("A")
    adapter.script("A", "Привет")

    first = await dispatcher.dispatch(1, [descriptor], "Hello", "ru", event_log)
    second = await dispatcher.dispatch(2, [descriptor], "Hello", "ru", event_log)

    assert len(adapter.calls) == 1
    assert cache.get("A", "Hello", "en", "ru") == ("Привет", True)
    assert isinstance(second[0], TranslationSucceeded)
    assert second[0].text == first[0].text == "Привет"
    assert second[0].from_cache is True
    assert second[0].attempts == 0


@pytest.mark.asyncio
async def test_failures_are_not_cached(
    dispatcher: Dispatcher,
    adapter: ScriptedAdapter,
    cache: ResponseCacheManager,
    event_log: EventLog,
    make_descriptor: Callable[..., ProviderDescriptor],
) -> None:
    adapter.script("A", ProviderError("A", FailureKind.FORBIDDEN, "Access forbidden", 403))

    await dispatcher.dispatch(1, [make_descriptor("A")], "Hello", "ru", event_log)

    assert cache.size() == 0


@pytest.mark.asyncio
async def test_local_rate_limit_rejects_without_calling_provider(
    dispatcher: Dispatcher,
    adapter: ScriptedAdapter,
    limiter: RateLimitManager,
    event_log: EventLog,
    make_descriptor: Callable[..., ProviderDescriptor],
) -> None:
    limiter.configure("A", 2, 60.0)
    descriptor: ProviderDescriptor = make_descriptor("A")

    results = [
        (await dispatcher.dispatch(n, [descriptor], text, "ru", event_log))[0]
        for n, text in enumerate(("one", "two", "three"), start=1)
    ]

    assert [type(result) for result in results] == [TranslationSucceeded, TranslationSucceeded, TranslationFailed]
    failed = results[2]
    assert isinstance(failed, TranslationFailed)
    assert failed.kind == "RATE_LIMIT_EXCEEDED"
    assert failed.attempts == 0
    assert "Local rate limit reached (2 requests / 60s)" in failed.diagnostic
    assert len(adapter.calls) == 2


@pytest.mark.asyncio
async def test_every_retry_attempt_consumes_rate_limit(
    dispatcher: Dispatcher,
    adapter: ScriptedAdapter,
    limiter: RateLimitManager,
    event_log: EventLog,
    make_descriptor: Callable[..., ProviderDescriptor],
) -> None:
    limiter.configure("A", 2, 60.0)
    adapter.script("A", ProviderError("A", FailureKind.TIMEOUT, "Request timed out after 15s"))

    (result,) = await dispatcher.dispatch(1, [make_descriptor("A")], "Hello", "ru", event_log)

    assert isinstance(result, TranslationFailed)
    assert result.kind == "RATE_LIMIT_EXCEEDED"
    assert result.attempts == 2
    assert len(adapter.calls) == 2


@pytest.mark.asyncio
async def test_missing_credential_fails_before_any_request(
    dispatcher: Dispatcher,
    adapter: ScriptedAdapter,
    event_log: EventLog,
    make_descriptor: Callable[..., ProviderDescriptor],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    descriptor: ProviderDescriptor = make_descriptor(
        "OPENAI", headers={"Authorization": "Bearer YOUR_OPENAI_KEY"}, requires_credential=True
    )

    (result,) = await dispatcher.dispatch(1, [descriptor], "Hello", "ru", event_log)

    assert isinstance(result, TranslationFailed)
    assert result.kind == "UNAUTHORIZED"
    assert "No API key configured (set api_key or OPENAI_API_KEY)" in result.diagnostic
    assert adapter.calls == []


@pytest.mark.asyncio
async def test_credential_from_environment_is_injected(
    dispatcher: Dispatcher,
    adapter: ScriptedAdapter,
    event_log: EventLog,
    make_descriptor: Callable[..., ProviderDescriptor],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
    descriptor: ProviderDescriptor = make_descriptor(
        "OPENAI", headers={"Authorization": "Bearer YOUR_OPENAI_KEY"}, requires_credential=True
    )

    (result,) = await dispatcher.dispatch(1, [descriptor], "Hello", "ru", event_log)

    assert isinstance(result, TranslationSucceeded)
    assert adapter.calls[0].headers == {"Authorization": "Bearer sk-env"}
    assert descriptor.headers == {"Authorization": "Bearer YOUR_OPENAI_KEY"}


@pytest.mark.asyncio
async def test_text_in_target_language_is_translated_to_fallback(
    dispatcher: Dispatcher,
    adapter: ScriptedAdapter,
    event_log: EventLog,
    make_descriptor: Callable[..., ProviderDescriptor],
) -> None:
    await dispatcher.dispatch(1, [make_descriptor("A")], "Привет мир", "ru", event_log)

    assert (adapter.calls[0].source, adapter.calls[0].target) == ("ru", "en")


@pytest.mark.asyncio
async def test_language_conflict_fails_without_request(
    cache: ResponseCacheManager,
    limiter: RateLimitManager,
    adapter: ScriptedAdapter,
    event_log: EventLog,
    make_descriptor: Callable[..., ProviderDescriptor],
) -> None:
    dispatcher = Dispatcher(
        cache=cache, limiter=limiter, adapters={"fake": adapter}, fallback_language="en", alternate_language="en"
    )

    (result,) = await dispatcher.dispatch(1, [make_descriptor("A")], "Hello world", "en", event_log)

    assert isinstance(result, TranslationFailed)
    assert result.kind == "LANGUAGE_CONFLICT"
    assert result.attempts == 0
    assert adapter.calls == []


@pytest.mark.asyncio
async def test_undetected_source_is_sent_as_auto(
    dispatcher: Dispatcher,
    adapter: ScriptedAdapter,
    event_log: EventLog,
    make_descriptor: Callable[..., ProviderDescriptor],
) -> None:
    await dispatcher.dispatch(1, [make_descriptor("A")], "こんにちは", "ru", event_log)

    assert (adapter.calls[0].source, adapter.calls[0].target) == ("auto", "ru")


@pytest.mark.asyncio
async def test_unexpected_exception_is_isolated(
    dispatcher: Dispatcher,
    adapter: ScriptedAdapter,
    event_log: EventLog,
    make_descriptor: Callable[..., ProviderDescriptor],
) -> None:
    adapter.script("A", KeyError("broken"))

    a, b = await dispatcher.dispatch(1, [make_descriptor("A"), make_descriptor("B")], "Hello", "ru", event_log)

    assert isinstance(a, TranslationFailed)
    assert a.kind == "UNKNOWN"
    assert "Unexpected error" in a.diagnostic
    assert isinstance(b, TranslationSucceeded)


@pytest.mark.asyncio
async def test_unknown_adapter_fails_task(
    dispatcher: Dispatcher,
    event_log: EventLog,
    make_descriptor: Callable[..., ProviderDescriptor],
) -> None:
    (result,) = await dispatcher.dispatch(1, [make_descriptor("A", adapter="missing")], "Hello", "ru", event_log)

    assert isinstance(result, TranslationFailed)
    assert result.kind == "UNKNOWN"


@pytest.mark.asyncio
async def test_long_text_gets_longer_timeout(
    dispatcher: Dispatcher,
    adapter: ScriptedAdapter,
    event_log: EventLog,
    make_descriptor: Callable[..., ProviderDescriptor],
) -> None:
    await dispatcher.dispatch(1, [make_descriptor("A")], "word " * 400, "ru", event_log)

    assert adapter.calls[0].timeout == 45.0


@pytest.mark.asyncio
async def test_hanging_provider_is_cut_off_by_the_timeout(
    cache: ResponseCacheManager,
    limiter: RateLimitManager,
    adapter: ScriptedAdapter,
    event_log: EventLog,
    make_descriptor: Callable[..., ProviderDescriptor],
) -> None:
    dispatcher = Dispatcher(
        cache=cache,
        limiter=limiter,
        adapters={"fake": adapter},
        retry_policy=RetryPolicy(max_attempts=2, base_delay=0),
        timeout_policy=TimeoutPolicy(base=0.05),
    )
    adapter.translate_delays = {"SLOW": 3600.0}

    slow, fast = await asyncio.wait_for(
        dispatcher.dispatch(1, [make_descriptor("SLOW"), make_descriptor("FAST")], "Hello", "ru", event_log),
        timeout=2.0,
    )

    assert isinstance(slow, TranslationFailed)
    assert slow.kind == "TIMEOUT"
    assert slow.attempts == 2
    assert "Request timed out after 0.05s" in slow.diagnostic
    assert len(adapter.calls_for("SLOW")) == 2
    assert isinstance(fast, TranslationSucceeded)
    (retry,) = event_log.of_type(RetryScheduled)
    assert (retry.provider, retry.kind) == ("SLOW", "TIMEOUT")

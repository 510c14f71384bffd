"""Shared fakes for the translation orchestration tests."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import pytest

from core.cache.manager import ResponseCacheManager
from core.ratelimit.manager import RateLimitManager
from core.trans.interface import ProviderAdapter
from models.provider_models import ProviderDescriptor
from models.translation_models import ProbeResult

if TYPE_CHECKING:
    from collections.abc import Callable

    from models.event_models import TransEvent


@dataclass
class AdapterCall:
    provider: str
    text: str
    source: str
    target: str
    timeout: float
    headers: dict[str, str] = field(default_factory=dict)


class ScriptedAdapter(ProviderAdapter):
    """Adapter whose answers are scripted per provider.

    translate() consumes the provider's script in order and repeats the last entry. A string
    entry is returned, an exception entry is raised, after waiting `translate_delays` seconds.
    probe() answers from `probes` after `probe_delays` seconds, defaulting to HTTP 200.
    """

    def __init__(self) -> None:
        self.scripts: dict[str, list[Any]] = {}
        self.probes: dict[str, ProbeResult | BaseException] = {}
        self.probe_delays: dict[str, float] = {}
        self.translate_delays: dict[str, float] = {}
        self.calls: list[AdapterCall] = []
        self.probed: list[str] = []
        self.closed: bool = False

    @staticmethod
    def fetch_adapter_name() -> str:
        return ""

    def script(self, provider: str, *outcomes: Any) -> None:
        self.scripts[provider] = list(outcomes)

    def calls_for(self, provider: str) -> list[AdapterCall]:
        return [call for call in self.calls if call.provider == provider]

    async def probe(self, descriptor: ProviderDescriptor, timeout: float) -> ProbeResult:
        _ = timeout
        self.probed.append(descriptor.name)
        await asyncio.sleep(self.probe_delays.get(descriptor.name, 0))
        default = ProbeResult(url=descriptor.url, status=200)
        result: ProbeResult | BaseException = self.probes.get(descriptor.name, default)
        if isinstance(result, BaseException):
            raise result
        return result

    async def translate(
        self, descriptor: ProviderDescriptor, text: str, source: str, target: str, timeout: float
    ) -> str:
        self.calls.append(AdapterCall(descriptor.name, text, source, target, timeout, dict(descriptor.headers)))
        script: list[Any] = self.scripts.get(descriptor.name, [f"{descriptor.name}:{text}"])
        outcome: Any = script.pop(0) if len(script) > 1 else script[0]
        await asyncio.sleep(self.translate_delays.get(descriptor.name, 0))
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def close(self) -> None:
        self.closed = True


class EventLog:
    """Async event sink collecting everything it receives."""

    def __init__(self) -> None:
        self.events: list[TransEvent] = []

    async def __call__(self, event: TransEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: type) -> list[Any]:
        return [event for event in self.events if isinstance(event, event_type)]

    def for_provider(self, provider: str) -> list[Any]:
        return [event for event in self.events if getattr(event, "provider", None) == provider]


@pytest.fixture
def adapter() -> ScriptedAdapter:
    return ScriptedAdapter()


@pytest.fixture
def event_log() -> EventLog:
    return EventLog()


@pytest.fixture
def cache() -> ResponseCacheManager:
    return ResponseCacheManager()


@pytest.fixture
def limiter() -> RateLimitManager:
    return RateLimitManager()


@pytest.fixture
def make_descriptor() -> Callable[..., ProviderDescriptor]:
    def _make(name: str, **overrides: Any) -> ProviderDescriptor:
        values: dict[str, Any] = {"name": name, "url": f"https://{name.lower()}.test/translate", "adapter": "fake"}
        values.update(overrides)
        return ProviderDescriptor.from_dict(values)

    return _make

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from core.trans.prober import HealthProber
from models.event_models import ProbeOutcome, ProbeResolved, ProbingCompleted, ProbingStarted
from models.translation_models import ProbeResult

if TYPE_CHECKING:
    from collections.abc import Callable

    from models.provider_models import ProviderDescriptor
    from tests.core.trans.conftest import EventLog, ScriptedAdapter


@pytest.fixture
def prober(adapter: ScriptedAdapter) -> HealthProber:
    return HealthProber({"fake": adapter}, timeout=0.5, stagger=0)


def test_probe_outcome_availability() -> None:
    assert ProbeOutcome(name="A", url="u", status=200).is_available is True
    assert ProbeOutcome(name="A", url="u", status=200, error="reset").is_available is False
    assert ProbeOutcome(name="A", url="u", status=404).is_available is False
    assert ProbeOutcome(name="A", url="u").is_available is False


@pytest.mark.asyncio
async def test_run_keeps_only_http_200_in_config_order(
    prober: HealthProber,
    adapter: ScriptedAdapter,
    event_log: EventLog,
    make_descriptor: Callable[..., ProviderDescriptor],
) -> None:
    """Completion order differs from config order; the available list follows config order."""
    adapter.probe_delays = {"A": 0.05, "B": 0.0, "C": 0.02, "D": 0.0}
    adapter.probes = {
        "B": ProbeResult(url="b", status=503),
        "D": ProbeResult(url="d", error="The server is not running, or the port is closed."),
    }
    descriptors = [make_descriptor(name) for name in ("A", "B", "C", "D")]

    available: list[ProviderDescriptor] = await prober.run(descriptors, event_log)

    assert [descriptor.name for descriptor in available] == ["A", "C"]
    assert event_log.events[0] == ProbingStarted(providers=("A", "B", "C", "D"), total=4)
    resolved: list[ProbeResolved] = event_log.of_type(ProbeResolved)
    assert len(resolved) == 4
    assert all(event.total == 4 for event in resolved)
    assert resolved[-1].outcome.name == "A"
    assert isinstance(event_log.events[-1], ProbingCompleted)
    assert event_log.events[-1] == ProbingCompleted(available=("A", "C"), total=4)


@pytest.mark.asyncio
async def test_probe_timeout_marks_provider_unavailable(
    adapter: ScriptedAdapter,
    event_log: EventLog,
    make_descriptor: Callable[..., ProviderDescriptor],
) -> None:
    prober = HealthProber({"fake": adapter}, timeout=0.05, stagger=0)
    adapter.probe_delays = {"SLOW": 1.0}

    available = await prober.run([make_descriptor("SLOW"), make_descriptor("FAST")], event_log)

    assert [descriptor.name for descriptor in available] == ["FAST"]
    resolved: list[ProbeResolved] = event_log.of_type(ProbeResolved)
    outcomes: dict[str, ProbeOutcome] = {event.outcome.name: event.outcome for event in resolved}
    slow: ProbeOutcome = outcomes["SLOW"]
    assert slow.error == "Probe timed out after 0.05s"
    assert slow.status == 0


@pytest.mark.asyncio
async def test_probe_exception_is_reported_as_outcome(
    prober: HealthProber,
    adapter: ScriptedAdapter,
    event_log: EventLog,
    make_descriptor: Callable[..., ProviderDescriptor],
) -> None:
    adapter.probes = {"A": RuntimeError("adapter bug")}

    available = await prober.run([make_descriptor("A")], event_log)

    assert available == []
    (resolved,) = event_log.of_type(ProbeResolved)
    assert resolved.outcome.error == "adapter bug"


@pytest.mark.asyncio
async def test_unknown_adapter_is_unavailable(
    prober: HealthProber,
    adapter: ScriptedAdapter,
    event_log: EventLog,
    make_descriptor: Callable[..., ProviderDescriptor],
) -> None:
    available = await prober.run([make_descriptor("A", adapter="missing")], event_log)

    assert available == []
    assert adapter.probed == []
    assert event_log.events[-1] == ProbingCompleted(available=(), total=1)


@pytest.mark.asyncio
async def test_empty_provider_list_completes_immediately(prober: HealthProber, event_log: EventLog) -> None:
    assert await prober.run([], event_log) == []
    assert event_log.events == [ProbingStarted(providers=(), total=0), ProbingCompleted(available=(), total=0)]


@pytest.mark.asyncio
async def test_probe_all_yields_one_outcome_per_provider(
    prober: HealthProber,
    make_descriptor: Callable[..., ProviderDescriptor],
) -> None:
    descriptors = [make_descriptor("A"), make_descriptor("B")]
    outcomes: list[ProbeOutcome] = [outcome async for outcome in prober.probe_all(descriptors)]

    assert sorted(outcome.name for outcome in outcomes) == ["A", "B"]
    assert all(outcome.status == 200 for outcome in outcomes)

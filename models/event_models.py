"""Immutable events exchanged between provider tasks and the result aggregator.

Provider tasks only ever create events; the aggregator is the single consumer that turns them
into provider state.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Final, TypeAlias

__all__: list[str] = [
    "HTTP_OK",
    "ProbeOutcome",
    "ProbeResolved",
    "ProbingCompleted",
    "ProbingStarted",
    "ProviderStatus",
    "RetryScheduled",
    "TransEvent",
    "TranslationDispatched",
    "TranslationFailed",
    "TranslationSucceeded",
]

HTTP_OK: Final[int] = 200


class ProviderStatus(StrEnum):
    """Lifecycle state of a provider as seen by the presentation layer."""

    IDLE = "idle"
    PROBING = "probing"
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"
    TRANSLATING = "translating"
    RETRYING = "retrying"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class ProbeOutcome:
    """Result of probing one provider.

    Attributes:
        name (str): Provider name.
        url (str): Probed URL.
        status (int): HTTP status code, 0 when no response was received.
        error (str): Transport or adapter error message, empty on a clean response.
    """

    name: str
    url: str
    status: int = 0
    error: str = ""

    @property
    def is_available(self) -> bool:
        return self.status == HTTP_OK and not self.error


@dataclass(frozen=True)
class ProbingStarted:
    """Emitted before the first probe of a run, listing the providers in configuration order."""

    providers: tuple[str, ...]
    total: int


@dataclass(frozen=True)
class ProbeResolved:
    outcome: ProbeOutcome
    total: int


@dataclass(frozen=True)
class ProbingCompleted:
    """Emitted exactly once, after every configured provider has resolved."""

    available: tuple[str, ...]
    total: int


@dataclass(frozen=True)
class TranslationDispatched:
    submission_id: int
    provider: str
    source: str
    target: str
    max_attempts: int


@dataclass(frozen=True)
class RetryScheduled:
    """A retryable failure occurred and the next attempt is scheduled after delay seconds.

    Attributes:
        attempt (int): Number of the upcoming attempt.
    """

    submission_id: int
    provider: str
    attempt: int
    max_attempts: int
    delay: float
    kind: str
    message: str = ""


@dataclass(frozen=True)
class TranslationSucceeded:
    submission_id: int
    provider: str
    text: str
    attempts: int
    from_cache: bool = False


@dataclass(frozen=True)
class TranslationFailed:
    submission_id: int
    provider: str
    kind: str
    diagnostic: str
    attempts: int


TransEvent: TypeAlias = (
    ProbingStarted
    | ProbeResolved
    | ProbingCompleted
    | TranslationDispatched
    | RetryScheduled
    | TranslationSucceeded
    | TranslationFailed
)

"""Models for translation tasks.

Defines the per-task retry bookkeeping, the task itself and the raw result of a provider probe.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from models.provider_models import ProviderDescriptor

__all__: list[str] = ["ProbeResult", "RetryState", "TranslationTask"]


@dataclass
class RetryState:
    """Attempt bookkeeping of one translation task.

    Attributes:
        max_attempts (int): Upper bound of network calls for the task.
        attempt (int): 1-based number of the network call in progress, 0 before the first call.
    """

    max_attempts: int
    attempt: int = 0

    @property
    def exhausted(self) -> bool:
        return self.attempt >= self.max_attempts

    def advance(self) -> int:
        """Move to the next attempt.

        Returns:
            int: The new attempt number.

        Raises:
            RuntimeError: If every attempt has already been used.
        """
        if self.exhausted:
            msg: str = f"Attempt limit exceeded: {self.attempt}/{self.max_attempts}"
            raise RuntimeError(msg)
        self.attempt += 1
        return self.attempt

    def clear(self) -> None:
        self.attempt = 0


@dataclass
class TranslationTask:
    """One (submission, provider) unit of work, owned by a single dispatcher coroutine.

    Attributes:
        submission_id (int): Identifier of the user submission this task belongs to.
        descriptor (ProviderDescriptor): The provider to call.
        text (str): Text to translate.
        source (str): Resolved source language code ("auto" when undetected).
        target (str): Resolved target language code.
        retry (RetryState): Attempt bookkeeping.
    """

    submission_id: int
    descriptor: ProviderDescriptor
    text: str
    source: str
    target: str
    retry: RetryState = field(default_factory=lambda: RetryState(max_attempts=1))

    @property
    def provider(self) -> str:
        return self.descriptor.name


@dataclass(frozen=True)
class ProbeResult:
    """Raw answer of a provider probe.

    Attributes:
        url (str): URL that was probed.
        status (int): HTTP status code, 0 when no response was received.
        error (str): Transport error message, empty when a response was received.
    """

    url: str
    status: int = 0
    error: str = ""

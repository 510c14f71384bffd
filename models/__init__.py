"""Data models for multitrans.

This package contains dataclass definitions for configuration, provider descriptors,
cache keys, translation tasks and the events consumed by the result aggregator.
"""

from __future__ import annotations

from models.cache_models import CacheKey, CacheStatistics
from models.config_models import Config
from models.event_models import (
    ProbeOutcome,
    ProbeResolved,
    ProbingCompleted,
    ProviderStatus,
    RetryScheduled,
    TranslationDispatched,
    TranslationFailed,
    TranslationSucceeded,
)
from models.provider_models import ProviderDescriptor
from models.translation_models import ProbeResult, RetryState, TranslationTask

__all__: list[str] = [
    "CacheKey",
    "CacheStatistics",
    "Config",
    "ProbeOutcome",
    "ProbeResolved",
    "ProbeResult",
    "ProbingCompleted",
    "ProviderDescriptor",
    "ProviderStatus",
    "RetryScheduled",
    "RetryState",
    "TranslationDispatched",
    "TranslationFailed",
    "TranslationSucceeded",
    "TranslationTask",
]

"""Translation orchestration.

This package probes the configured providers, dispatches each submission to every available
provider with retry and rate limiting, and folds the resulting events into a view.
"""

from core.trans.aggregator import AggregateView, ProviderView, ResultAggregator
from core.trans.dispatcher import Dispatcher, RetryPolicy, TimeoutPolicy
from core.trans.errors import FailureKind, ProviderError
from core.trans.interface import (
    NotSupportedLanguagesError,
    ProviderAdapter,
    TranslateExceptionError,
    UnknownAdapterError,
)
from core.trans.manager import TransManager
from core.trans.prober import HealthProber

__all__: list[str] = [
    "AggregateView",
    "Dispatcher",
    "FailureKind",
    "HealthProber",
    "NotSupportedLanguagesError",
    "ProviderAdapter",
    "ProviderError",
    "ProviderView",
    "ResultAggregator",
    "RetryPolicy",
    "TimeoutPolicy",
    "TransManager",
    "TranslateExceptionError",
    "UnknownAdapterError",
]

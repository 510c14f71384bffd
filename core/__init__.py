"""Core orchestration components for multitrans.

This package contains the shared service container, the response cache, the rate limiter and
the translation orchestration (probing, dispatching and result aggregation).
"""

from core.shared_data import SharedData
from core.version import VERSION

__all__: list[str] = [
    "VERSION",
    "SharedData",
]

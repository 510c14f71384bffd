"""Configuration data models for multitrans.

Each dataclass mirrors one section of multitrans.ini. Field names match the INI keys and the
default value of every field also fixes the type the loader coerces the INI string into.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from models.provider_models import ProviderDescriptor

__all__: list[str] = [
    "Config",
    # "General",
    # "Probe",
    # "RateLimit",
    # "Retry",
    # "Timeout",
    # "Translation",
]


@dataclass
class General:
    DEBUG: bool = False
    LOG_FILE: str = ""
    SCRIPT_NAME: str = ""


@dataclass
class Translation:
    TARGET_LANGUAGE: str = "ru"
    FALLBACK_LANGUAGE: str = "en"
    ALTERNATE_LANGUAGE: str = "ru"
    PROVIDERS_FILE: str = ""
    PROVIDERS: list[str] = field(default_factory=list)
    API_KEYS: dict[str, str] = field(default_factory=dict)


@dataclass
class Probe:
    TIMEOUT: float = 5.0
    STAGGER: float = 0.3


@dataclass
class Retry:
    MAX_ATTEMPTS: int = 3
    BASE_DELAY: float = 0.5
    MAX_DELAY: float = 4.0


@dataclass
class RateLimit:
    MAX_REQUESTS: int = 10
    WINDOW: float = 60.0


@dataclass
class Timeout:
    BASE: float = 15.0
    MEDIUM: float = 30.0
    LONG: float = 45.0
    MEDIUM_THRESHOLD: int = 500
    LONG_THRESHOLD: int = 1500


@dataclass
class Config:
    GENERAL: General = field(default_factory=General)
    TRANSLATION: Translation = field(default_factory=Translation)
    PROBE: Probe = field(default_factory=Probe)
    RETRY: Retry = field(default_factory=Retry)
    RATE_LIMIT: RateLimit = field(default_factory=RateLimit)
    TIMEOUT: Timeout = field(default_factory=Timeout)
    # Filled by the loader from PROVIDERS_FILE or the built-in defaults; not an INI section.
    PROVIDER_DESCRIPTORS: list[ProviderDescriptor] = field(default_factory=list)

"""Configuration loading and validation for multitrans.

This package provides utilities for loading, parsing, and validating configuration
settings from the multitrans.ini file, and the built-in provider descriptors.
"""

from config.loader import (
    ConfigFileNotFoundError,
    ConfigFormatError,
    ConfigLoader,
    ConfigTypeError,
    ConfigValueError,
    InternalError,
)
from config.providers import DEFAULT_PROVIDERS, default_providers

__all__: list[str] = [
    "DEFAULT_PROVIDERS",
    "ConfigFileNotFoundError",
    "ConfigFormatError",
    "ConfigLoader",
    "ConfigTypeError",
    "ConfigValueError",
    "InternalError",
    "default_providers",
]

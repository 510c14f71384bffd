"""This module defines the abstract base class for provider adapters and the translation error base.

An adapter knows how to talk to one kind of provider. The orchestration core only ever calls
probe() and translate() on it, so no provider-specific branching lives outside the adapters.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, ClassVar

from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from models.provider_models import ProviderDescriptor
    from models.translation_models import ProbeResult

__all__: list[str] = [
    "NotSupportedLanguagesError",
    "ProviderAdapter",
    "TranslateExceptionError",
    "UnknownAdapterError",
]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class TranslateExceptionError(Exception):
    """An error occurred during the translation process."""


class NotSupportedLanguagesError(TranslateExceptionError):
    """An unsupported language code was specified."""


class UnknownAdapterError(TranslateExceptionError):
    """A provider descriptor names an adapter that is not registered."""


class ProviderAdapter(ABC):
    """Abstract base class for provider adapters.

    Subclasses are registered automatically under the name returned by fetch_adapter_name(),
    and provider descriptors select their adapter by that name.

    Attributes:
        registered (ClassVar[dict[str, type[ProviderAdapter]]]): Registered adapter classes keyed by name.
    """

    registered: ClassVar[dict[str, type[ProviderAdapter]]] = {}

    def __init_subclass__(cls, **kwargs) -> None:
        """Register the subclass under its adapter name.

        Subclasses returning an empty name are not registered, which lets tests and helpers
        define private adapters.

        Raises:
            ValueError: If another adapter is already registered under the same name.
        """
        super().__init_subclass__(**kwargs)
        name: str = cls.fetch_adapter_name()
        if not isinstance(name, str) or name == "":
            return

        if name in cls.registered:
            msg: str = f"A provider adapter with the name '{name}' is already registered."
            raise ValueError(msg)

        cls.registered[name] = cls
        logger.debug("Provider adapter registered: '%s' -> %s", name, cls.__name__)

    @classmethod
    def create(cls, name: str) -> ProviderAdapter:
        """Instantiate the adapter registered under name.

        Raises:
            UnknownAdapterError: If no adapter is registered under name.
        """
        adapter_cls: type[ProviderAdapter] | None = cls.registered.get(name)
        if adapter_cls is None:
            msg: str = f"No provider adapter registered under '{name}'. Registered: {sorted(cls.registered)}"
            raise UnknownAdapterError(msg)
        return adapter_cls()

    @staticmethod
    @abstractmethod
    def fetch_adapter_name() -> str:
        """Fetch the distinguished name of the adapter.

        Called during class registration in __init_subclass__, so the implementation must be
        available at subclass definition time.

        Returns:
            str: The adapter name.
        """
        raise NotImplementedError

    @abstractmethod
    async def probe(self, descriptor: ProviderDescriptor, timeout: float) -> ProbeResult:
        """Send a lightweight request to check whether the provider answers.

        Must not raise for transport failures; they are reported through ProbeResult.error.

        Args:
            descriptor (ProviderDescriptor): Provider to probe.
            timeout (float): Total timeout in seconds.

        Returns:
            ProbeResult: Probed URL, HTTP status and error message.
        """
        raise NotImplementedError

    @abstractmethod
    async def translate(
        self, descriptor: ProviderDescriptor, text: str, source: str, target: str, timeout: float
    ) -> str:
        """Translate text with the provider.

        Args:
            descriptor (ProviderDescriptor): Provider to call, with credentials already injected.
            text (str): Text to translate.
            source (str): Source language code.
            target (str): Target language code.
            timeout (float): Total timeout in seconds.

        Returns:
            str: The translated text.

        Raises:
            ProviderError: For every failure, classified into a FailureKind.
        """
        raise NotImplementedError

    @abstractmethod
    async def close(self) -> None:
        """Release resources held by the adapter."""
        raise NotImplementedError

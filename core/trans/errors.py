"""Failure taxonomy, HTTP status classification and user-facing diagnostics.

Every failure of a provider call is described by a ProviderError carrying a FailureKind. Whether
a kind is retried comes from the default taxonomy below, optionally replaced per provider by the
descriptor's retry_on list. Suggestions come from lookup tables, never from branching in callers.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, Final

from core.trans.interface import TranslateExceptionError
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Iterable

__all__: list[str] = [
    "DEFAULT_RETRYABLE",
    "FailureKind",
    "ProviderError",
    "classify_status",
    "format_diagnostic",
    "is_retryable",
    "suggestion_for",
]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class FailureKind(StrEnum):
    TIMEOUT = "TIMEOUT"
    NETWORK_ERROR = "NETWORK_ERROR"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    SERVER_ERROR = "SERVER_ERROR"
    SERVICE_DOWN = "SERVICE_DOWN"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    LANGUAGE_CONFLICT = "LANGUAGE_CONFLICT"
    UNKNOWN = "UNKNOWN"


# Remote 401/403 answers are retried up to the attempt limit; a missing local credential is not.
DEFAULT_RETRYABLE: Final[frozenset[FailureKind]] = frozenset(
    {
        FailureKind.TIMEOUT,
        FailureKind.NETWORK_ERROR,
        FailureKind.SERVER_ERROR,
        FailureKind.SERVICE_DOWN,
        FailureKind.NOT_FOUND,
        FailureKind.UNAUTHORIZED,
        FailureKind.FORBIDDEN,
    }
)

_DEFAULT_SUGGESTIONS: Final[dict[FailureKind, str]] = {
    FailureKind.TIMEOUT: "Check your internet connection or try again",
    FailureKind.NETWORK_ERROR: "Check your internet connection",
    FailureKind.RATE_LIMIT_EXCEEDED: "Wait a moment before trying again",
    FailureKind.SERVER_ERROR: "Service is experiencing issues, try again later",
    FailureKind.SERVICE_DOWN: "Service is down for maintenance, try again later",
    FailureKind.UNAUTHORIZED: "Check your API key configuration",
    FailureKind.FORBIDDEN: "API key may be invalid or service unavailable",
    FailureKind.NOT_FOUND: "Service may be temporarily unavailable",
    FailureKind.LANGUAGE_CONFLICT: "Check source and target language settings",
    FailureKind.UNKNOWN: "Try a different service or check input text",
}

_PROVIDER_SUGGESTIONS: Final[dict[tuple[str, FailureKind], str]] = {
    ("OPENAI", FailureKind.UNAUTHORIZED): "Get your API key from https://platform.openai.com/account/api-keys",
    ("OPENAI", FailureKind.RATE_LIMIT_EXCEEDED): "OpenAI has usage limits. Check your account quota or upgrade plan",
    ("OPENROUTER", FailureKind.UNAUTHORIZED): "Get your API key from https://openrouter.ai/keys",
    ("OPENROUTER", FailureKind.RATE_LIMIT_EXCEEDED): "OpenRouter rate limits apply. Wait or upgrade your plan",
    ("OPENROUTER", FailureKind.NETWORK_ERROR): "Large text may cause issues. Try shorter text or check network",
    ("GOOGLE", FailureKind.RATE_LIMIT_EXCEEDED): "Google Translate has rate limits. Try again in a few minutes",
    ("DEEPL", FailureKind.UNAUTHORIZED): "DeepL requires a valid API key for advanced features",
    ("REVERSO", FailureKind.RATE_LIMIT_EXCEEDED): "Reverso limits requests. Wait before trying again",
    ("REVERSO2", FailureKind.RATE_LIMIT_EXCEEDED): "Reverso limits requests. Wait before trying again",
    ("MYMEMORY", FailureKind.RATE_LIMIT_EXCEEDED): "MyMemory has daily limits for anonymous users",
    ("LINGVA", FailureKind.SERVER_ERROR): "Lingva is a community service. Try again later",
}

_STATUS_KINDS: Final[dict[int, tuple[FailureKind, str]]] = {
    401: (FailureKind.UNAUTHORIZED, "Invalid or missing API key"),
    403: (FailureKind.FORBIDDEN, "Access forbidden"),
    404: (FailureKind.NOT_FOUND, "Service endpoint not found"),
    429: (FailureKind.RATE_LIMIT_EXCEEDED, "Rate limit exceeded by the provider"),
    503: (FailureKind.SERVICE_DOWN, "Service temporarily unavailable"),
}


class ProviderError(TranslateExceptionError):
    """The only exception that crosses the adapter boundary.

    Attributes:
        provider (str): Provider name.
        kind (FailureKind): Classified failure kind.
        message (str): Short description of the issue.
        status_code (int): HTTP status code, 0 when no response was received.
    """

    def __init__(self, provider: str, kind: FailureKind, message: str, status_code: int = 0) -> None:
        self.provider: str = provider
        self.kind: FailureKind = kind
        self.message: str = message
        self.status_code: int = status_code
        super().__init__(f"{provider}: {message}")

    def __repr__(self) -> str:
        return (
            f"ProviderError(provider={self.provider!r}, kind={self.kind.value!r}, "
            f"message={self.message!r}, status_code={self.status_code!r})"
        )


def classify_status(provider: str, status: int) -> ProviderError:
    """Map a non-success HTTP status to a ProviderError.

    401, 403, 404, 429 and 503 have dedicated kinds, other 5xx codes are SERVER_ERROR and any
    remaining code is UNKNOWN.
    """
    logger.debug("Classifying HTTP %d from '%s'", status, provider)
    known: tuple[FailureKind, str] | None = _STATUS_KINDS.get(status)
    if known is not None:
        kind, message = known
        return ProviderError(provider, kind, message, status)
    if 500 <= status < 600:  # noqa: PLR2004
        return ProviderError(provider, FailureKind.SERVER_ERROR, f"Server error (HTTP {status})", status)
    return ProviderError(provider, FailureKind.UNKNOWN, f"HTTP error {status}", status)


def is_retryable(kind: FailureKind, retry_on: Iterable[str] | None = None) -> bool:
    """Tell whether a failure kind is retried.

    Args:
        kind (FailureKind): The failure kind.
        retry_on (Iterable[str] | None): Per-provider list of retried kind names. None uses DEFAULT_RETRYABLE.

    Returns:
        bool: True if the kind is retried.
    """
    if retry_on is None:
        return kind in DEFAULT_RETRYABLE
    return kind.value in {name.upper() for name in retry_on}


def suggestion_for(provider: str, kind: FailureKind) -> str:
    return _PROVIDER_SUGGESTIONS.get((provider.upper(), kind), _DEFAULT_SUGGESTIONS[kind])


def format_diagnostic(error: ProviderError, *, will_retry: bool) -> str:
    """Render a multi-line diagnostic for display.

    Args:
        error (ProviderError): The classified failure.
        will_retry (bool): Whether another attempt follows.

    Returns:
        str: Kind, provider, issue and suggestion lines, followed by the retry outlook.
    """
    outlook: str = "Will retry automatically" if will_retry else "Manual intervention required"
    return (
        f"{error.kind.value} Error\n"
        f"Service: {error.provider}\n"
        f"Issue: {error.message}\n"
        f"Suggestion: {suggestion_for(error.provider, error.kind)}\n"
        f"{outlook}"
    )

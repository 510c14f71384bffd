"""Script-based language detection and source/target resolution."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Final, NamedTuple

from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

__all__: list[str] = [
    "AUTO",
    "LANGUAGE_NAMES",
    "SUPPORTED_LANGUAGES",
    "LanguagePair",
    "detect_language",
    "language_name",
    "resolve_languages",
]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

AUTO: Final[str] = "auto"

SUPPORTED_LANGUAGES: Final[tuple[str, ...]] = ("ru", "en", "de", "fr", "es", "it", "ja", "zh", "ko", "ar")

# English names, used when a provider takes a natural-language prompt.
LANGUAGE_NAMES: Final[dict[str, str]] = {
    "ru": "Russian",
    "en": "English",
    "de": "German",
    "fr": "French",
    "es": "Spanish",
    "it": "Italian",
    "ja": "Japanese",
    "zh": "Chinese",
    "ko": "Korean",
    "ar": "Arabic",
}

_IGNORED_PATTERN: Final[re.Pattern[str]] = re.compile(r"[\s.,;:!?()\-\"']")


class LanguagePair(NamedTuple):
    source: str
    target: str


def language_name(code: str) -> str:
    return LANGUAGE_NAMES.get(code, code)


def _is_latin(char: str) -> bool:
    return ("a" <= char <= "z") or ("A" <= char <= "Z")


def _is_cyrillic(char: str) -> bool:
    return ("а" <= char <= "я") or ("А" <= char <= "Я") or char in "ёЁ"


def detect_language(text: str) -> str:
    """Guess the source language from the script of the text.

    Whitespace and common punctuation are ignored. Latin letters vote for English, Cyrillic
    letters for Russian and any other letter for neither. Only a strict majority decides;
    ties, other-script majorities and texts without letters give "auto".

    Args:
        text (str): Text to inspect.

    Returns:
        str: "en", "ru" or "auto".
    """
    cleaned: str = _IGNORED_PATTERN.sub("", text)
    latin: int = 0
    cyrillic: int = 0
    other: int = 0
    for char in cleaned:
        if _is_latin(char):
            latin += 1
        elif _is_cyrillic(char):
            cyrillic += 1
        elif char.isalpha():
            other += 1

    if latin > cyrillic and latin > other:
        return "en"
    if cyrillic > latin and cyrillic > other:
        return "ru"
    return AUTO


def resolve_languages(
    text: str,
    selected: str,
    *,
    fallback: str = "en",
    alternate: str = "ru",
) -> LanguagePair:
    """Resolve the source and target language of a request.

    When the detected source equals the selected target, the roles flip and the text is
    translated into the fallback language, or into the alternate language when the fallback is
    that same language. An undetected source ("auto") always targets the selected language.

    Args:
        text (str): Text to translate.
        selected (str): Target language chosen by the user.
        fallback (str): Target used when the text is already in the selected language.
        alternate (str): Target used when the fallback is also the detected language.

    Returns:
        LanguagePair: The resolved (source, target) pair. Source may equal target only when
            fallback and alternate are both the detected language.
    """
    source: str = detect_language(text)
    target: str = selected
    if source != AUTO and source == selected:
        target = fallback if fallback != source else alternate
        logger.debug("Text already in '%s'; translating to '%s' instead", selected, target)
    return LanguagePair(source, target)

from __future__ import annotations

import json
import re
from typing import TYPE_CHECKING, Final, Literal, TypeAlias
from urllib.parse import quote

if TYPE_CHECKING:
    from collections.abc import Mapping

__all__: list[str] = ["StringUtils"]

EscapeMode: TypeAlias = Literal["url", "json", "none"]

PLACEHOLDER_PATTERN: Final[re.Pattern[str]] = re.compile(r"\{(\w+)\}")


class StringUtils:
    """Utility class for string manipulation and processing.

    Provides static methods for common string operations such as ensuring string type,
    compressing spaces and filling request templates.
    """

    @staticmethod
    def ensure_str(value: str | None) -> str:
        """Ensure that the value is a string, returning an empty string if None.

        Note: Does not use strip() to preserve significant whitespace.

        Args:
            value (str | None): The value to ensure as a string.

        Returns:
            str: The value as a string, or empty string if None.
        """
        if not isinstance(value, str):
            value = str(value) if value is not None else ""
        return value

    @staticmethod
    def compress_blanks(value: str) -> str:
        """Compress runs of whitespace into single spaces and strip both ends.

        Args:
            value (str): The string to compress.

        Returns:
            str: The compressed string.
        """
        value = StringUtils.ensure_str(value)
        return " ".join(value.split())

    @staticmethod
    def escape(value: str, mode: EscapeMode) -> str:
        """Escape a value for insertion into a URL or a JSON string literal.

        Args:
            value (str): The value to escape.
            mode (EscapeMode): "url" percent-encodes every reserved character, "json" escapes the
                value as the inside of a JSON string, "none" leaves it unchanged.

        Returns:
            str: The escaped value.
        """
        value = StringUtils.ensure_str(value)
        if mode == "url":
            return quote(value, safe="")
        if mode == "json":
            return json.dumps(value, ensure_ascii=False)[1:-1]
        return value

    @staticmethod
    def fill_template(template: str, values: Mapping[str, str], mode: EscapeMode = "none") -> str:
        """Replace {name} placeholders in a single pass.

        Placeholders without a value are left untouched, and inserted values are never scanned
        for further placeholders.

        Args:
            template (str): Template containing {name} placeholders.
            values (Mapping[str, str]): Placeholder values.
            mode (EscapeMode): How inserted values are escaped.

        Returns:
            str: The filled template.
        """

        def _substitute(match: re.Match[str]) -> str:
            key: str = match.group(1)
            if key not in values:
                return match.group(0)
            return StringUtils.escape(values[key], mode)

        return PLACEHOLDER_PATTERN.sub(_substitute, template)

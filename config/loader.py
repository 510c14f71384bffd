"""Configuration file loader and validator.

Handles reading, formatting, and validating settings from the INI configuration file, and
loading the provider descriptors from a JSON file or the built-in defaults.
Raises exceptions for any issues encountered during loading.
"""

from __future__ import annotations

import ast
import configparser
import json
from configparser import ConfigParser
from dataclasses import fields, replace
from pathlib import Path
from typing import TYPE_CHECKING, Any

from config.providers import default_providers
from core.trans.errors import FailureKind
from core.trans.language import SUPPORTED_LANGUAGES
from models.config_models import Config
from models.provider_models import ProviderDescriptor
from utils.file_utils import FileMissingError, FileUtils, UnsupportedFileFormatError
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable
    from dataclasses import Field as DataclassField
else:
    from dataclasses import Field as DataclassField

__all__: list[str] = [
    "Config",
    "ConfigFileNotFoundError",
    "ConfigFormatError",
    "ConfigLoader",
    "ConfigLoaderError",
    "ConfigTypeError",
    "ConfigValueError",
    "InternalError",
]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

# Sections of Config that are not read from the INI file.
_GENERATED_SECTIONS: frozenset[str] = frozenset({"PROVIDER_DESCRIPTORS"})


class InternalError(Exception):
    """An anomaly occurred in the internal process."""


class ConfigLoaderError(Exception):
    """An error occurred while processing the configuration file."""


class ConfigFileNotFoundError(ConfigLoaderError):
    """The specified configuration file does not exist."""


class ConfigFormatError(ConfigLoaderError):
    """The configuration file is not formatted correctly."""


class ConfigValueError(ConfigFormatError):
    """The configuration file contains an invalid value."""


class ConfigTypeError(ConfigFormatError):
    """The configuration file contains an invalid type."""


class ConfigLoader:
    """Handles loading and validation of configuration settings.

    This class reads the configuration file, applies formatting rules, loads the provider
    descriptors and validates the result.

    Args:
        config_filename (str): INI file name to load.
        script_name (str): Executing script name, used in error messaging.
        target (str | None): Optional override for TRANSLATION.TARGET_LANGUAGE.
        debug (bool): Optional override enabling GENERAL.DEBUG.

    Raises:
        ConfigFileNotFoundError: If the configuration file or the providers file does not exist.
        ConfigFormatError: If a file cannot be parsed or contains invalid values/types.
    """

    def __init__(
        self,
        *,
        config_filename: str,
        script_name: str,
        **args,
    ) -> None:
        config_path = Path(config_filename)
        msg: str
        if not config_path.exists():
            msg = (
                f"Configuration file '{config_filename}' not found. "
                f"Please create '{config_filename}' in the same directory as '{script_name}'."
            )
            raise ConfigFileNotFoundError(msg)

        parser: ConfigParser = ConfigParser()
        # Keep key case; sections and keys are upper case like the dataclass fields.
        parser.optionxform = str  # type: ignore[assignment,method-assign]

        try:
            parser.read(config_filename, encoding="utf-8")
        except configparser.Error as err:
            msg = f"Failed to parse configuration file '{config_filename}': {err}"
            raise ConfigFormatError(msg) from None

        self.config = Config()
        self.config.GENERAL.SCRIPT_NAME = script_name
        self._convert_settings(parser)
        # Apply command-line argument overrides
        if args.get("target") is not None:
            self.config.TRANSLATION.TARGET_LANGUAGE = args["target"]
        if args.get("debug", False):
            self.config.GENERAL.DEBUG = True
        self._validate_settings()
        self.config.PROVIDER_DESCRIPTORS = self._load_providers(config_path.parent)

    def _convert_settings(self, parser: ConfigParser) -> None:
        """Convert configuration settings from the parser to the Config object.

        Args:
            parser (ConfigParser): Parsed INI data.

        Raises:
            ConfigFormatError: If a value cannot be parsed or coerced to the expected type.
        """
        formatter = _ConfigFormatter(self.config, parser)
        for section in fields(self.config):
            if section.name in _GENERATED_SECTIONS:
                continue
            self._convert_section_field(parser, formatter, section)

    def _convert_section_field(
        self, parser: ConfigParser, formatter: _ConfigFormatter, section: DataclassField[Any]
    ) -> None:
        """Convert all fields in a configuration section.

        Args:
            parser (ConfigParser): Parsed INI data.
            formatter (_ConfigFormatter): Formatter used to coerce string values to typed values.
            section (Field[Any]): Target configuration section dataclass field.

        Raises:
            ConfigFormatError: If a value fails to format correctly.
        """
        for key in fields(getattr(self.config, section.name)):
            try:
                parser[section.name][key.name]
            except KeyError:
                logger.debug("Skipping undefined setting: '%s.%s'", section.name, key.name)
                continue

            formatted_value = formatter.apply_format(section, key)
            setattr(getattr(self.config, section.name), key.name, formatted_value)

    def _validate_settings(self) -> None:
        """Validate languages, limits and types of list/dict settings.

        Raises:
            ConfigFormatError: If validation fails for any setting.
        """
        try:
            self._validate_language("TRANSLATION", "TARGET_LANGUAGE")
            self._validate_language("TRANSLATION", "FALLBACK_LANGUAGE")
            self._validate_language("TRANSLATION", "ALTERNATE_LANGUAGE")
            self._validate_type("TRANSLATION", "PROVIDERS", list)
            self._validate_type("TRANSLATION", "API_KEYS", dict)
            self._validate_minimum("RETRY", "MAX_ATTEMPTS", 1)
            self._validate_minimum("RATE_LIMIT", "MAX_REQUESTS", 0)
            self._validate_positive("RATE_LIMIT", "WINDOW")
            self._validate_positive("PROBE", "TIMEOUT")
            self._validate_positive("TIMEOUT", "BASE")
        except (AttributeError, TypeError) as err:
            msg: str = f"Invalid configuration value: {err}"
            raise ConfigFormatError(msg) from None

    def _validate_language(self, section_name: str, key_name: str) -> None:
        """Normalize a language code to lower case and check it is supported.

        Raises:
            ConfigValueError: If the language is not supported.
        """
        value: str = getattr(getattr(self.config, section_name), key_name)
        field_name: str = f"{section_name}.{key_name}"
        if not isinstance(value, str):
            msg: str = f"Unsupported type used for '{field_name}': {type(value)}"
            raise ConfigTypeError(msg)

        normalized: str = value.strip().lower()
        if normalized not in SUPPORTED_LANGUAGES:
            msg = f"Unsupported language '{value}' for '{field_name}'. Supported: {', '.join(SUPPORTED_LANGUAGES)}"
            raise ConfigValueError(msg)
        setattr(getattr(self.config, section_name), key_name, normalized)

    def _validate_type(self, section_name: str, key_name: str, expected: type) -> None:
        value: Any = getattr(getattr(self.config, section_name), key_name)
        if not isinstance(value, expected):
            msg: str = f"Unsupported type used for '{section_name}.{key_name}': {type(value)}"
            raise ConfigTypeError(msg)

    def _validate_minimum(self, section_name: str, key_name: str, minimum: int) -> None:
        value: int = getattr(getattr(self.config, section_name), key_name)
        if value < minimum:
            msg: str = f"'{section_name}.{key_name}' must be at least {minimum}: {value}"
            raise ConfigValueError(msg)

    def _validate_positive(self, section_name: str, key_name: str) -> None:
        value: float = getattr(getattr(self.config, section_name), key_name)
        if value <= 0:
            msg: str = f"'{section_name}.{key_name}' must be positive: {value}"
            raise ConfigValueError(msg)

    def _load_providers(self, base_dir: Path) -> list[ProviderDescriptor]:
        """Load, filter and check the provider descriptors.

        Descriptors come from TRANSLATION.PROVIDERS_FILE (resolved relative to the INI file) or
        the built-in defaults. TRANSLATION.PROVIDERS, when not empty, selects providers by name
        and in that order. TRANSLATION.API_KEYS fills api_key for descriptors that have none.

        Args:
            base_dir (Path): Directory of the INI file.

        Returns:
            list[ProviderDescriptor]: The configured providers.

        Raises:
            ConfigFileNotFoundError: If the providers file does not exist.
            ConfigFormatError: If the providers file is malformed.
            ConfigValueError: If names are duplicated or unknown, or retry_on names an unknown kind.
        """
        translation = self.config.TRANSLATION
        descriptors: list[ProviderDescriptor]
        if translation.PROVIDERS_FILE:
            descriptors = self._read_providers_file(base_dir, translation.PROVIDERS_FILE)
        else:
            descriptors = default_providers()

        names: list[str] = [descriptor.name for descriptor in descriptors]
        duplicates: set[str] = {name for name in names if names.count(name) > 1}
        if duplicates:
            msg: str = f"Duplicate provider names: {sorted(duplicates)}"
            raise ConfigValueError(msg)

        if translation.PROVIDERS:
            by_name: dict[str, ProviderDescriptor] = {descriptor.name.upper(): descriptor for descriptor in descriptors}
            unknown: list[str] = [name for name in translation.PROVIDERS if name.upper() not in by_name]
            if unknown:
                msg = f"Unknown providers in 'TRANSLATION.PROVIDERS': {unknown}. Known: {names}"
                raise ConfigValueError(msg)
            descriptors = [by_name[name.upper()] for name in translation.PROVIDERS]

        api_keys: dict[str, str] = {name.upper(): key for name, key in translation.API_KEYS.items()}
        result: list[ProviderDescriptor] = []
        for descriptor in descriptors:
            self._validate_retry_on(descriptor)
            key: str | None = api_keys.get(descriptor.name.upper())
            if key and not descriptor.api_key:
                descriptor = replace(descriptor, api_key=key)  # noqa: PLW2901
            result.append(descriptor)

        logger.info("Providers configured: %s", [descriptor.name for descriptor in result])
        return result

    def _read_providers_file(self, base_dir: Path, filename: str) -> list[ProviderDescriptor]:
        path: Path = FileUtils.resolve_path(filename, base_dir=base_dir)

        msg: str
        try:
            FileUtils.require_file(path, [".json"])
        except FileMissingError as err:
            msg = f"Providers file '{path}' not found."
            raise ConfigFileNotFoundError(msg) from err
        except UnsupportedFileFormatError as err:
            msg = f"Providers file '{path}' is not a JSON file: {err}"
            raise ConfigFormatError(msg) from err

        try:
            entries: Any = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as err:
            msg = f"Failed to read providers file '{path}': {err}"
            raise ConfigFormatError(msg) from err

        if not isinstance(entries, list) or not all(isinstance(entry, dict) for entry in entries):
            msg = f"Providers file '{path}' must contain a list of objects"
            raise ConfigFormatError(msg)

        try:
            return [ProviderDescriptor.from_dict(entry) for entry in entries]
        except (KeyError, TypeError, ValueError) as err:
            msg = f"Invalid provider entry in '{path}': {err!r}"
            raise ConfigFormatError(msg) from err

    @staticmethod
    def _validate_retry_on(descriptor: ProviderDescriptor) -> None:
        if descriptor.retry_on is None:
            return
        known: set[str] = {kind.value for kind in FailureKind}
        unknown: list[str] = [name for name in descriptor.retry_on if name.upper() not in known]
        if unknown:
            msg: str = f"Unknown failure kinds in retry_on of '{descriptor.name}': {unknown}"
            raise ConfigValueError(msg)


class _ConfigFormatter:
    """Converts INI string values to typed Python objects (bool, int, float, str, list, dict)."""

    def __init__(self, config: Config, parser: ConfigParser) -> None:
        self.config: Config = config
        self.parser: ConfigParser = parser

    def apply_format(self, section: DataclassField[Any], key: DataclassField[Any]) -> Any:
        """Convert INI value to the expected Python type based on the Config field type.

        Args:
            section (DataclassField[Any]): Configuration section field containing the key.
            key (DataclassField[Any]): Target field within the section.

        Returns:
            Any: Parsed value coerced to the type declared in the config dataclass.

        Raises:
            ConfigValueError: If a value cannot be coerced to the expected type.
            ConfigFormatError: If literal evaluation fails due to invalid syntax.
            ConfigTypeError: If an unexpected type is encountered during coercion.
        """
        formatters: dict[
            type[bool | int | float], Callable[[DataclassField[Any], DataclassField[Any]], bool | int | float]
        ] = {
            bool: self.parse_as_boolean,
            int: self.parse_as_integer,
            float: self.parse_as_float,
        }

        formatter: Callable[[DataclassField[Any], DataclassField[Any]], bool | int | float] | None = formatters.get(
            type(getattr(getattr(self.config, section.name), key.name))
        )
        if formatter:
            try:
                return formatter(section, key)
            except ValueError as err:
                msg = f"Invalid value for {section.name}.{key.name}: {err}"
                raise ConfigValueError(msg) from err
            except TypeError as err:
                msg = f"Invalid value for {section.name}.{key.name}: {err}"
                raise ConfigTypeError(msg) from err

        value_str: str = self.parser[section.name][key.name]
        try:
            return ast.literal_eval(value_str)
        except ValueError as err:
            msg = f"Invalid literal for {section.name}.{key.name}: {value_str}"
            raise ConfigValueError(msg) from err
        except SyntaxError as err:
            msg = f"Invalid literal for {section.name}.{key.name}: {value_str}"
            raise ConfigFormatError(msg) from err

    def parse_as_float(self, section: DataclassField[Any], key: DataclassField[Any]) -> float:
        """Convert INI string to float."""
        value: str = self.parser.get(section.name, key.name)
        for char in ("'", '"', "%"):
            value = value.removeprefix(char).removesuffix(char)
        return float(value)

    def parse_as_integer(self, section: DataclassField[Any], key: DataclassField[Any]) -> int:
        """Convert INI string to integer."""
        value: str = self.parser.get(section.name, key.name)
        for char in ("'", '"', "%"):
            value = value.removeprefix(char).removesuffix(char)
        return int(float(value))

    def parse_as_boolean(self, section: DataclassField[Any], key: DataclassField[Any]) -> bool:
        """Convert INI string to boolean."""
        return self.parser.getboolean(section.name, key.name)

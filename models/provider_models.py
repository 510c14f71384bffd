"""Provider descriptor model.

A descriptor is the immutable, table-driven description of one HTTP translation provider:
where to send requests, how to fill the request templates and where to find the translated
text in the reply. Descriptors are decoded from JSON with dataclasses_json.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Final

from dataclasses_json import DataClassJsonMixin, dataclass_json

__all__: list[str] = ["CREDENTIAL_PLACEHOLDER", "GENERIC_KEY_PLACEHOLDER", "ProviderDescriptor"]

CREDENTIAL_PLACEHOLDER: Final[str] = "{credential}"
GENERIC_KEY_PLACEHOLDER: Final[str] = "YOUR_API_KEY"


@dataclass_json
@dataclass(frozen=True)
class ProviderDescriptor(DataClassJsonMixin):
    """Immutable description of a translation provider.

    Attributes:
        name (str): Unique provider name (e.g. "DEEPL").
        url (str): URL template. Supports {text}, {source}, {target}, {source_name} and {target_name}.
        method (str): HTTP method.
        headers (dict[str, str]): Header templates; values may contain a credential placeholder.
        body (str | None): JSON body template, or None for requests without a body.
        probe_url (str | None): URL used by the health probe. Defaults to the rendered translation URL.
        probe_body (str | None): Body sent by the health probe. Defaults to the rendered body template.
        response_path (str): Dotted path to the translation in the JSON reply (e.g. "choices.0.message.content").
            Empty means the raw reply body is the translation.
        language_codes (dict[str, str]): Per-provider overrides of language codes (e.g. {"en": "eng"}).
        language_case (str): "upper" to upper-case language codes, empty to keep them.
        plus_as_space (bool): Whether "+" in the extracted translation stands for a space.
        adapter (str): Registered adapter name used to talk to the provider.
        requires_credential (bool): Whether requests fail without a configured credential.
        api_key (str): Configured credential. Empty falls back to the <NAME>_API_KEY environment variable.
        max_requests (int | None): Requests allowed per rate window. None uses the global default.
        window_seconds (float | None): Rate window length in seconds. None uses the global default.
        retry_on (list[str] | None): Failure kind names retried for this provider. None uses the default taxonomy.
    """

    name: str
    url: str
    method: str = "POST"
    headers: dict[str, str] = field(default_factory=dict)
    body: str | None = None
    probe_url: str | None = None
    probe_body: str | None = None
    response_path: str = ""
    language_codes: dict[str, str] = field(default_factory=dict)
    language_case: str = ""
    plus_as_space: bool = False
    adapter: str = "http"
    requires_credential: bool = False
    api_key: str = field(default="", repr=False)
    max_requests: int | None = None
    window_seconds: float | None = None
    retry_on: list[str] | None = None

    @property
    def credential_env_var(self) -> str:
        """Name of the environment variable consulted when api_key is empty."""
        return f"{self.name.upper()}_API_KEY"

    @property
    def credential_placeholders(self) -> tuple[str, ...]:
        return (CREDENTIAL_PLACEHOLDER, GENERIC_KEY_PLACEHOLDER, f"YOUR_{self.name.upper()}_KEY")

    def resolve_credential(self) -> str:
        """Return the configured credential, or an empty string when none is configured."""
        return self.api_key or os.getenv(self.credential_env_var, "")

    def with_credential(self, key: str) -> ProviderDescriptor:
        """Return a copy whose header values have every credential placeholder replaced by key.

        The receiver is left untouched so a shared descriptor never leaks a credential into
        another request.

        Args:
            key (str): The credential to inject.

        Returns:
            ProviderDescriptor: A new descriptor with substituted headers.
        """
        headers: dict[str, str] = {}
        for header, value in self.headers.items():
            for placeholder in self.credential_placeholders:
                value = value.replace(placeholder, key)  # noqa: PLW2901
            headers[header] = value
        return replace(self, headers=headers)

    def map_language(self, code: str) -> str:
        """Translate a generic language code into the code this provider expects."""
        mapped: str = self.language_codes.get(code, code)
        if self.language_case == "upper":
            return mapped.upper()
        return mapped

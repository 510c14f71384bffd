from __future__ import annotations

import pytest

from models.provider_models import ProviderDescriptor


def _descriptor(**overrides) -> ProviderDescriptor:
    values: dict = {
        "name": "OPENAI",
        "url": "https://api.example.test/v1/chat",
        "headers": {"Authorization": "Bearer YOUR_OPENAI_KEY", "X-Key": "{credential}", "X-Other": "YOUR_API_KEY"},
        "requires_credential": True,
    }
    values.update(overrides)
    return ProviderDescriptor.from_dict(values)


def test_from_dict_applies_defaults() -> None:
    descriptor = ProviderDescriptor.from_dict({"name": "LINGVA", "url": "https://lingva.test/{text}"})

    assert descriptor.method == "POST"
    assert descriptor.headers == {}
    assert descriptor.body is None
    assert descriptor.adapter == "http"
    assert descriptor.requires_credential is False
    assert descriptor.max_requests is None
    assert descriptor.retry_on is None


def test_with_credential_replaces_every_placeholder_on_a_copy() -> None:
    descriptor: ProviderDescriptor = _descriptor()

    injected: ProviderDescriptor = descriptor.with_credential("sk-123")

    assert injected.headers == {"Authorization": "Bearer sk-123", "X-Key": "sk-123", "X-Other": "sk-123"}
    assert descriptor.headers["Authorization"] == "Bearer YOUR_OPENAI_KEY"


def test_resolve_credential_prefers_configured_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "from-env")

    assert _descriptor(api_key="configured").resolve_credential() == "configured"
    assert _descriptor().resolve_credential() == "from-env"

    monkeypatch.delenv("OPENAI_API_KEY")
    assert _descriptor().resolve_credential() == ""


def test_api_key_is_hidden_from_repr() -> None:
    assert "secret" not in repr(_descriptor(api_key="secret"))


def test_map_language() -> None:
    reverso: ProviderDescriptor = _descriptor(language_codes={"en": "eng", "ru": "rus"})
    deepl: ProviderDescriptor = _descriptor(language_case="upper")

    assert reverso.map_language("en") == "eng"
    assert reverso.map_language("de") == "de"
    assert deepl.map_language("ru") == "RU"


def test_descriptor_is_immutable() -> None:
    descriptor: ProviderDescriptor = _descriptor()

    with pytest.raises(AttributeError):
        descriptor.name = "OTHER"  # type: ignore[misc]

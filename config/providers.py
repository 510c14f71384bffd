"""Built-in provider descriptors.

Used when no PROVIDERS_FILE is configured. A providers file uses the same JSON shape: a list of
objects whose keys are the ProviderDescriptor field names.
"""

from __future__ import annotations

from typing import Any, Final

from models.provider_models import ProviderDescriptor

__all__: list[str] = ["DEFAULT_PROVIDERS", "default_providers"]

_JSON_HEADERS: Final[dict[str, str]] = {"Content-Type": "application/json"}

_REVERSO_CODES: Final[dict[str, str]] = {
    "en": "eng",
    "ru": "rus",
    "de": "ger",
    "fr": "fra",
    "es": "spa",
    "it": "ita",
    "ja": "jpn",
    "zh": "chi",
    "ko": "kor",
    "ar": "ara",
}

_CHAT_PROMPT: Final[str] = (
    "Translate '{text}' from {source_name} to {target_name}. Return only the translation, no additional text."
)

DEFAULT_PROVIDERS: Final[list[dict[str, Any]]] = [
    {
        "name": "GOOGLE",
        "url": "https://translate-serverless.vercel.app/api/translate",
        "method": "POST",
        "headers": _JSON_HEADERS,
        "body": '{"message":"{text}","from":"{source}","to":"{target}"}',
        "response_path": "translation.trans_result.dst",
    },
    {
        "name": "DEEPL",
        "url": "https://deeplx-vercel-phi.vercel.app/api/translate",
        "method": "POST",
        "headers": _JSON_HEADERS,
        "body": '{"text":"{text}","source_lang":"{source}","target_lang":"{target}"}',
        "response_path": "data",
        "language_case": "upper",
    },
    {
        "name": "REVERSO",
        "url": "https://api.reverso.net/translate/v1/translation",
        "method": "POST",
        "headers": _JSON_HEADERS,
        "body": '{"format":"text","from":"{source}","to":"{target}","input":"{text}"}',
        "response_path": "translation.0",
        "language_codes": _REVERSO_CODES,
    },
    {
        "name": "REVERSO2",
        "url": "https://api.reverso.net/translate/v1/translation",
        "method": "POST",
        "headers": _JSON_HEADERS,
        "body": (
            '{"format":"text","from":"{source}","to":"{target}","input":"{text}",'
            '"options":{"sentenceSplitter":true,"origin":"translation.web",'
            '"contextResults":false,"languageDetection":false}}'
        ),
        "response_path": "translation.0",
        "language_codes": _REVERSO_CODES,
    },
    {
        "name": "LINGVA",
        "url": "https://lingva.thedaviddelta.com/api/v1/{source}/{target}/{text}",
        "method": "GET",
        "response_path": "translation",
        "plus_as_space": True,
    },
    {
        "name": "MYMEMORY",
        "url": "https://api.mymemory.translated.net/get?q={text}&langpair={source}|{target}",
        "method": "GET",
        "response_path": "responseData.translatedText",
    },
    {
        "name": "OPENAI",
        "url": "https://api.openai.com/v1/chat/completions",
        "method": "POST",
        "headers": {**_JSON_HEADERS, "Authorization": "Bearer YOUR_OPENAI_KEY"},
        "body": (
            '{"model":"gpt-3.5-turbo","messages":[{"role":"user","content":"' + _CHAT_PROMPT + '"}]}'
        ),
        "response_path": "choices.0.message.content",
        "requires_credential": True,
    },
    {
        "name": "OPENROUTER",
        "url": "https://openrouter.ai/api/v1/chat/completions",
        "method": "POST",
        "headers": {**_JSON_HEADERS, "Authorization": "Bearer YOUR_OPENROUTER_KEY"},
        "body": (
            '{"model":"deepseek/deepseek-chat-v3.1:free","messages":[{"role":"user","content":"'
            + _CHAT_PROMPT
            + '"}]}'
        ),
        "response_path": "choices.0.message.content",
        "requires_credential": True,
    },
]


def default_providers() -> list[ProviderDescriptor]:
    """Build fresh descriptors for the built-in providers."""
    return [ProviderDescriptor.from_dict(entry) for entry in DEFAULT_PROVIDERS]

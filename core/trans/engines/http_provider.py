"""Table-driven HTTP provider adapter.

One adapter serves every JSON-over-HTTP provider: the descriptor supplies URL and body
templates, language code mapping and the path of the translation inside the reply.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Final

from core.trans.errors import FailureKind, ProviderError, classify_status
from core.trans.interface import ProviderAdapter
from core.trans.language import language_name
from handlers.async_comm import (
    AsyncCommError,
    AsyncCommInvalidContentTypeError,
    AsyncCommTimeoutError,
    AsyncHttp,
    HttpResponse,
)
from models.event_models import HTTP_OK
from models.translation_models import ProbeResult
from utils.logger_utils import LoggerUtils
from utils.string_utils import StringUtils

if TYPE_CHECKING:
    import logging

    from models.provider_models import ProviderDescriptor

__all__: list[str] = ["HttpProviderAdapter", "extract_path"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

PROBE_TEXT: Final[str] = "test"
PROBE_SOURCE: Final[str] = "en"
PROBE_TARGET: Final[str] = "de"

_MISSING: Final[object] = object()


def extract_path(data: Any, path: str) -> Any:
    """Follow a dotted path through nested dicts and lists.

    Numeric segments index into lists, other segments look up dict keys.

    Args:
        data (Any): Decoded JSON document.
        path (str): Dotted path such as "choices.0.message.content".

    Returns:
        Any: The value found, or the module's _MISSING sentinel when any segment is absent.
    """
    current: Any = data
    for segment in path.split("."):
        if isinstance(current, dict):
            current = current.get(segment, _MISSING)
        elif isinstance(current, list) and segment.isdigit() and int(segment) < len(current):
            current = current[int(segment)]
        else:
            return _MISSING
        if current is _MISSING:
            return _MISSING
    return current


class HttpProviderAdapter(ProviderAdapter):
    def __init__(self, http: AsyncHttp | None = None) -> None:
        self._http: AsyncHttp = http or AsyncHttp()

    @staticmethod
    def fetch_adapter_name() -> str:
        return "http"

    def _template_values(self, descriptor: ProviderDescriptor, text: str, source: str, target: str) -> dict[str, str]:
        return {
            "text": text,
            "source": descriptor.map_language(source),
            "target": descriptor.map_language(target),
            "source_name": language_name(source),
            "target_name": language_name(target),
        }

    def render_request(
        self, descriptor: ProviderDescriptor, text: str, source: str, target: str
    ) -> tuple[str, str | None]:
        """Fill the URL and body templates of a descriptor.

        URL values are percent-encoded and body values are escaped as JSON string content.

        Returns:
            tuple[str, str | None]: The request URL and body (None when the provider takes no body).
        """
        values: dict[str, str] = self._template_values(descriptor, text, source, target)
        url: str = StringUtils.fill_template(descriptor.url, values, "url")
        body: str | None = None
        if descriptor.body is not None:
            body = StringUtils.fill_template(descriptor.body, values, "json")
        return url, body

    async def probe(self, descriptor: ProviderDescriptor, timeout: float) -> ProbeResult:
        url, body = self.render_request(descriptor, PROBE_TEXT, PROBE_SOURCE, PROBE_TARGET)
        if descriptor.probe_url:
            url = descriptor.probe_url
        if descriptor.probe_body is not None:
            body = descriptor.probe_body

        logger.debug("Probing '%s' at %s", descriptor.name, url)
        try:
            response: HttpResponse = await self._http.request(
                descriptor.method, url=url, headers=descriptor.headers, data=body, total_timeout=timeout
            )
        except AsyncCommError as err:
            return ProbeResult(url=url, error=str(err))
        return ProbeResult(url=url, status=response.status)

    async def translate(
        self, descriptor: ProviderDescriptor, text: str, source: str, target: str, timeout: float
    ) -> str:
        url, body = self.render_request(descriptor, text, source, target)
        logger.debug("'%s': translating %d characters (%s > %s)", descriptor.name, len(text), source, target)

        try:
            response: HttpResponse = await self._http.request(
                descriptor.method, url=url, headers=descriptor.headers, data=body, total_timeout=timeout
            )
        except AsyncCommTimeoutError as err:
            msg: str = f"Request timed out after {timeout:g}s"
            raise ProviderError(descriptor.name, FailureKind.TIMEOUT, msg) from err
        except AsyncCommError as err:
            msg = f"Network error: {err}"
            raise ProviderError(descriptor.name, FailureKind.NETWORK_ERROR, msg) from err

        if response.status != HTTP_OK:
            raise classify_status(descriptor.name, response.status)

        return self._extract_translation(descriptor, response)

    def _extract_translation(self, descriptor: ProviderDescriptor, response: HttpResponse) -> str:
        """Pull the translation out of a successful reply.

        Falls back to the raw body when the reply is not JSON or the path is absent.

        Raises:
            ProviderError: NETWORK_ERROR if a JSON reply cannot be decoded.
        """
        if not descriptor.response_path:
            return response.text

        try:
            payload: Any = self._http.decode_response(response)
        except AsyncCommInvalidContentTypeError:
            logger.debug("'%s': unexpected content type '%s'", descriptor.name, response.content_type)
            return response.text
        except ValueError as err:
            msg: str = f"Failed to read response: {err}"
            raise ProviderError(descriptor.name, FailureKind.NETWORK_ERROR, msg) from err

        value: Any = extract_path(payload, descriptor.response_path)
        if not isinstance(value, str):
            logger.warning(
                "'%s': '%s' not found in the reply; using the raw body", descriptor.name, descriptor.response_path
            )
            return response.text

        if descriptor.plus_as_space:
            return StringUtils.compress_blanks(value.replace("+", " "))
        return value

    async def close(self) -> None:
        await self._http.close()
        logger.info("'%s' process termination", self.__class__.__name__)

"""Asynchronous HTTP communication utilities.

This module provides the aiohttp-based client used by the provider adapters. Unlike a plain
session with raise_for_status, the client hands every HTTP status back to the caller, because
providers classify error statuses themselves. Transport problems (timeouts, refused or reset
connections) are raised as AsyncCommError subclasses.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final, Literal, Self

import aiohttp
from aiohttp.client import ClientSession

from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable


__all__: list[str] = [
    "AsyncCommError",
    "AsyncCommInvalidContentTypeError",
    "AsyncCommTimeoutError",
    "AsyncHttp",
    "HttpResponse",
]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

HTTPMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]

CONNECT_TIMEOUT: Final[float] = 3.0


@dataclass(frozen=True)
class HttpResponse:
    """Status and undecoded body of an HTTP response.

    Attributes:
        status (int): HTTP status code.
        content_type (str): Media type of the body without parameters (e.g. "application/json").
        raw (bytes): Response body.
    """

    status: int
    content_type: str
    raw: bytes

    @property
    def text(self) -> str:
        return self.raw.decode("utf-8", errors="replace")


class AsyncHttp:
    """Asynchronous HTTP client for provider requests.

    The aiohttp session is created lazily on first use, so instances can be built outside a
    running event loop. Responses are returned with their status; decode_response() turns the
    body into Python data using handlers registered per content type.
    """

    def __init__(self) -> None:
        """Initialize the AsyncHttp client.

        The default handlers include:
            - "text/plain": Decodes bytes to a UTF-8 string.
            - "text/html": Decodes bytes to a UTF-8 string.
            - "application/json": Parses bytes as JSON.
        """
        logger.info("%s initializing", self.__class__.__name__)
        self.__session: ClientSession | None = None
        self.content_handlers: dict[str, Callable[[bytes], Any]] = {}

        self.add_handler("text/plain", lambda x: x.decode("utf-8"))
        self.add_handler("text/html", lambda x: x.decode("utf-8"))
        self.add_handler("application/json", lambda x: json.loads(x.decode("utf-8")))
        self.list_handlers()

    async def __aenter__(self) -> Self:
        logger.debug("%s entering context", self.__class__.__name__)
        self.initialize_session(suppress_already_log=True)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        _ = exc_type, exc_val, exc_tb
        logger.debug("%s exiting context", self.__class__.__name__)
        await self.close()

    def initialize_session(self, *, suppress_already_log: bool = False) -> None:
        """Create the aiohttp session if there is none or the previous one was closed.

        Must be called with a running event loop.

        Args:
            suppress_already_log (bool): If True, do not log when the session is already initialized.
        """
        if self.__session is None or self.__session.closed:
            self.__session = ClientSession(raise_for_status=False)
            logger.debug("%s session initialized", self.__class__.__name__)
        elif not suppress_already_log:
            logger.debug("%s session already initialized", self.__class__.__name__)

    @property
    def session(self) -> ClientSession:
        """Get the current aiohttp session, creating it on first use."""
        self.initialize_session(suppress_already_log=True)
        if self.__session is None:
            msg = "Session is not initialized"
            raise RuntimeError(msg)
        return self.__session

    @property
    def is_open(self) -> bool:
        return self.__session is not None and not self.__session.closed

    async def close(self) -> None:
        """Close the aiohttp session if it is open."""
        if self.__session and not self.__session.closed:
            await self.__session.close()
            logger.info("%s session closed", self.__class__.__name__)

    async def request(
        self,
        method: HTTPMethod | str,
        *,
        url: str,
        headers: dict[str, str] | None = None,
        data: str | bytes | None = None,
        total_timeout: float = 10.0,
    ) -> HttpResponse:
        """Perform an asynchronous HTTP request.

        Args:
            method (HTTPMethod | str): The HTTP method to use (GET, POST, etc.).
            url (str): The URL to send the request to.
            headers (dict[str, str] | None): Request headers.
            data (str | bytes | None): Request body, sent as-is.
            total_timeout (float): Total timeout for the request in seconds. 0 or less disables it.

        Returns:
            HttpResponse: The response status, content type and body.

        Raises:
            AsyncCommTimeoutError: If the request does not complete in time.
            AsyncCommError: If the connection fails or is dropped.
        """
        logger.debug("[%s] url=%s timeout=%s", method, url, total_timeout)
        if isinstance(data, str):
            data = data.encode("utf-8")

        if total_timeout <= 0:
            _timeout = aiohttp.ClientTimeout(total=None)
        elif total_timeout < CONNECT_TIMEOUT:
            # A connect timeout longer than the total would never apply.
            _timeout = aiohttp.ClientTimeout(total=total_timeout)
        else:
            _timeout = aiohttp.ClientTimeout(connect=CONNECT_TIMEOUT, total=total_timeout)

        try:
            async with self.session.request(
                method=method.upper(),
                url=url,
                headers=headers,
                data=data,
                timeout=_timeout,
            ) as resp:
                content_type: str = resp.headers.get("Content-Type", "").split(";")[0].strip()
                raw: bytes = await resp.read()
                logger.debug("[%s] url=%s status=%d content_type='%s'", method, url, resp.status, content_type)
                return HttpResponse(status=resp.status, content_type=content_type, raw=raw)

        except TimeoutError as err:
            logger.debug(err)
            msg = "Timeout due to a lack of response from the server."
            raise AsyncCommTimeoutError(msg) from err
        except ConnectionResetError as err:
            logger.debug(err)
            msg = "The connection to the server has been disconnected."
            raise AsyncCommError(msg) from err
        except aiohttp.ClientConnectorError as err:
            logger.debug(err)
            msg = "The server is not running, or the port is closed."
            raise AsyncCommError(msg) from err
        except aiohttp.ClientError as err:
            logger.debug(err)
            msg = f"HTTP client error: {err.__class__.__name__}"
            raise AsyncCommError(msg) from err

    def decode_response(self, resp: HttpResponse) -> Any:
        """Parse a response body according to its content type.

        Args:
            resp (HttpResponse): The response to decode.

        Returns:
            Any: The parsed data (str for text, JSON objects for JSON), or None for an empty body.

        Raises:
            AsyncCommInvalidContentTypeError: If no handler is registered for the content type.
            ValueError: If a handler fails to decode the body.
        """
        if not resp.raw:
            logger.debug("Received empty response")
            return None

        handler: Callable[[bytes], Any] | None = self.content_handlers.get(resp.content_type)
        if handler:
            return handler(resp.raw)

        msg: str = f"Unknown Content-Type '{resp.content_type}'"
        raise AsyncCommInvalidContentTypeError(msg)

    def add_handler(self, content_type: str, handler: Callable[[bytes], Any]) -> None:
        """Add a custom handler for a specific content type.

        Args:
            content_type (str): The content type to handle (e.g., "text/plain", "application/json").
            handler (Callable[[bytes], Any]): A function that takes bytes and returns the parsed data.
        """
        if self.content_handlers.get(content_type):
            logger.warning("Handler for content type '%s' already exists, replacing it", content_type)
        self.content_handlers[content_type] = handler
        logger.debug("Added handler for content type '%s'", content_type)

    def list_handlers(self) -> None:
        if not self.content_handlers:
            logger.info("No content type handlers registered")
            return
        logger.info("Handlers registered for content types '%s'", list(self.content_handlers.keys()))


class AsyncCommError(Exception):
    """Base class for asynchronous communication errors.

    Raised for transport failures such as refused or dropped connections. HTTP error statuses
    are not errors at this level; they are returned to the caller.
    """

    def __init__(self, msg: str | BaseException) -> None:
        self.msg: str = str(msg)
        super().__init__(self.msg)


class AsyncCommTimeoutError(AsyncCommError):
    """Error raised when a request does not complete within the specified timeout period."""


class AsyncCommInvalidContentTypeError(AsyncCommError):
    """Error raised when no handler is registered for the content type of a response."""

r"""Blocking and non-blocking transport on top of httpx.

Both ``send`` and ``send_async`` build the ``httpx.Request`` the same way
(``_build_http_request``), so a blocking call and a non-blocking call with
the same inputs put the same bytes on the wire. Non-2xx statuses are not
errors at this level: they come back as a ``RawReply`` for the pipeline to
classify.
"""

from __future__ import annotations

__all__ = ["Body", "RawReply", "normalize_body", "send", "send_async"]

import logging
from typing import IO, TYPE_CHECKING, Any, Union

import httpx

from typedhttp.utils.exceptions import translate_transport_error

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator
    from types import TracebackType

    from typedhttp.filters import OutgoingRequest

logger: logging.Logger = logging.getLogger(__name__)

Body = Union[str, bytes, bytearray, memoryview, IO[bytes]]


class RawReply:
    r"""Undecoded reply of a call: status code, headers and body.

    A ``RawReply`` owns the underlying connection when it was obtained in
    streaming mode (``response_type=RawReply``); release it with
    ``close()``/``aclose()`` or by using it as a context manager.

    Args:
        response: The ``httpx.Response`` to wrap.

    Example:
        ```pycon
        >>> import httpx
        >>> from typedhttp.transport import RawReply
        >>> reply = RawReply(httpx.Response(200, json={"ok": True}))
        >>> reply.status_code, reply.json()
        (200, {'ok': True})

        ```
    """

    def __init__(self, response: httpx.Response) -> None:
        self._response = response

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(status_code={self.status_code})"

    def __enter__(self) -> RawReply:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    async def __aenter__(self) -> RawReply:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    @property
    def response(self) -> httpx.Response:
        return self._response

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def headers(self) -> httpx.Headers:
        return self._response.headers

    @property
    def url(self) -> str:
        return str(self._response.url)

    @property
    def is_success(self) -> bool:
        return self._response.is_success

    @property
    def is_closed(self) -> bool:
        return self._response.is_closed

    @property
    def content(self) -> bytes:
        r"""The body bytes; the body must have been read already."""
        return self._response.content

    @property
    def text(self) -> str:
        return self._response.text

    def json(self, **kwargs: Any) -> Any:
        return self._response.json(**kwargs)

    def read(self) -> bytes:
        r"""Read the whole body (blocking) and return it."""
        return self._response.read()

    async def aread(self) -> bytes:
        r"""Read the whole body (non-blocking) and return it."""
        return await self._response.aread()

    def iter_bytes(self, chunk_size: int | None = None) -> Iterator[bytes]:
        return self._response.iter_bytes(chunk_size)

    def aiter_bytes(self, chunk_size: int | None = None) -> AsyncIterator[bytes]:
        return self._response.aiter_bytes(chunk_size)

    def close(self) -> None:
        self._response.close()

    async def aclose(self) -> None:
        await self._response.aclose()


def normalize_body(body: Body | None) -> bytes | None:
    r"""Turn any supported body form into bytes.

    Text is UTF-8 encoded, byte-like objects are copied and readable
    streams are read to the end.

    Example:
        ```pycon
        >>> import io
        >>> from typedhttp.transport import normalize_body
        >>> normalize_body('{"id":5}') == normalize_body(b'{"id":5}') == normalize_body(
        ...     io.BytesIO(b'{"id":5}')
        ... )
        True

        ```

    Raises:
        TypeError: If the body is of an unsupported type.
    """
    if body is None:
        return None
    if isinstance(body, str):
        return body.encode("utf-8")
    if isinstance(body, (bytes, bytearray, memoryview)):
        return bytes(body)
    if hasattr(body, "read"):
        data = body.read()
        return data.encode("utf-8") if isinstance(data, str) else bytes(data)
    msg = f"unsupported body type: {type(body).__name__}"
    raise TypeError(msg)


def _build_http_request(
    client: httpx.Client | httpx.AsyncClient, request: OutgoingRequest
) -> httpx.Request:
    return client.build_request(
        request.method,
        request.url,
        headers=request.headers,
        content=normalize_body(request.body),
    )


def send(client: httpx.Client, request: OutgoingRequest, *, stream: bool = False) -> RawReply:
    r"""Send a request and block until the reply is available.

    Args:
        client: The ``httpx.Client`` to send the request with.
        request: The outgoing request.
        stream: If ``True``, the body is left unread and must be released
            by the caller through the returned ``RawReply``.

    Returns:
        The reply, whatever its status code.

    Raises:
        RequestTimeoutError: If the request timed out.
        TransportError: If the request failed without a reply.
    """
    http_request = _build_http_request(client, request)
    logger.debug(f"Sending {request.method} request to {request.url}")
    try:
        response = client.send(http_request, stream=stream)
    except httpx.RequestError as exc:
        raise translate_transport_error(exc, method=request.method, url=request.url) from exc
    logger.debug(f"{request.method} request to {request.url} replied {response.status_code}")
    return RawReply(response)


async def send_async(
    client: httpx.AsyncClient, request: OutgoingRequest, *, stream: bool = False
) -> RawReply:
    r"""Send a request without blocking the event loop.

    Args:
        client: The ``httpx.AsyncClient`` to send the request with.
        request: The outgoing request.
        stream: If ``True``, the body is left unread and must be released
            by the caller through the returned ``RawReply``.

    Returns:
        The reply, whatever its status code.

    Raises:
        RequestTimeoutError: If the request timed out.
        TransportError: If the request failed without a reply.
    """
    http_request = _build_http_request(client, request)
    logger.debug(f"Sending {request.method} request to {request.url}")
    try:
        response = await client.send(http_request, stream=stream)
    except httpx.RequestError as exc:
        raise translate_transport_error(exc, method=request.method, url=request.url) from exc
    logger.debug(f"{request.method} request to {request.url} replied {response.status_code}")
    return RawReply(response)

r"""Typed service client.

This module provides ``ServiceClient``, the public surface of the
package. Each verb is available as a blocking method (``get``, ``post``,
``put``, ``delete``, ``patch``) and as a non-blocking coroutine
(``get_async``, ...). Every method accepts either a typed request, a
pydantic model, or a raw relative path plus an explicit body, and all of
them run through the same pipeline.
"""

from __future__ import annotations

__all__ = ["ServiceClient"]

import asyncio
import logging
from typing import TYPE_CHECKING, Any

import httpx

from typedhttp.codec import JsonCodec
from typedhttp.core.config import ClientConfig
from typedhttp.core.pipeline import CallPipeline
from typedhttp.core.validation import validate_base_url

if TYPE_CHECKING:
    from types import TracebackType
    from typing import Self

    from typedhttp.filters import (
        RequestFilter,
        ResponseFilter,
        ResultsFilter,
        ResultsFilterResponse,
    )
    from typedhttp.transport import Body

logger: logging.Logger = logging.getLogger(__name__)


class ServiceClient:
    r"""Client sending typed requests and returning typed responses.

    A typed request is a pydantic model. Its route is its ``__route__``
    class attribute, or ``{format}/reply/{ClassName}`` by default, and its
    response type is its ``__response_type__`` class attribute. A request
    without a response type is a fire and forget operation: the call runs
    normally and returns ``None``.

    GET and DELETE send the request fields in the query string; POST, PUT
    and PATCH send the JSON-encoded request in the body.

    The raw form takes a ``str`` relative path (see
    ``typedhttp.routes.path_for``) and an optional body given as text,
    bytes or a readable binary stream.

    ``response_type`` overrides the declared type. Besides models, it
    accepts ``str`` (reply text), ``bytes`` (reply content) and
    ``RawReply`` (the undecoded, still open reply, which the caller must
    close, for instance with a ``with`` block).

    ``headers`` are sent with every call. They are shared by all the calls
    of the client and are not synchronized: concurrent changes while calls
    are in flight follow last-write-wins.

    Args:
        base_url: The scheme, host, port and optional path prefix every
            relative path is resolved against.
        config: Optional ClientConfig instance. If ``None``, a default
            ClientConfig is used.
        client: Optional ``httpx.Client`` used by the blocking methods.
            If ``None``, a client is created with the configured timeout
            and closed by ``close()``.
        async_client: Optional ``httpx.AsyncClient`` used by the
            non-blocking methods. If ``None``, a client is created on the
            first non-blocking call and closed by ``aclose()``, or by
            ``close()`` when no event loop is running.
        codec: Optional codec. Defaults to ``JsonCodec``.

    Example:
        ```pycon
        >>> from typing import ClassVar
        >>> from pydantic import BaseModel
        >>> from typedhttp import ServiceClient
        >>> class Customer(BaseModel):
        ...     id: int
        ...
        >>> class GetCustomerResponse(BaseModel):
        ...     customer: Customer
        ...
        >>> class GetCustomer(BaseModel):
        ...     __response_type__: ClassVar[type] = GetCustomerResponse
        ...     customer_id: int
        ...
        >>> with ServiceClient("http://localhost:8080") as client:  # doctest: +SKIP
        ...     client.headers["X-Api-Version"] = "2"
        ...     response = client.get(GetCustomer(customer_id=5))
        ...

        ```
    """

    def __init__(
        self,
        base_url: str,
        *,
        config: ClientConfig | None = None,
        client: httpx.Client | None = None,
        async_client: httpx.AsyncClient | None = None,
        codec: JsonCodec | None = None,
    ) -> None:
        self._base_url = validate_base_url(base_url)
        self._config: ClientConfig = config or ClientConfig()
        self._codec = codec or JsonCodec()
        self._filters = self._config.to_filter_chain()
        self._pipeline = CallPipeline(
            base_url=self._base_url,
            codec=self._codec,
            filters=self._filters,
            fmt=self._config.format,
        )
        self._headers = httpx.Headers()
        self._owns_client = client is None
        self._client: httpx.Client = client or httpx.Client(timeout=self._config.timeout)
        self._owns_async_client = async_client is None
        self._async_client: httpx.AsyncClient | None = async_client

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(base_url={self._base_url!r})"

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit the context manager and close the httpx clients this
        client created."""
        self.close()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit the async context manager and close the httpx clients this
        client created."""
        await self.aclose()

    def close(self) -> None:
        r"""Close the httpx clients this client created.

        An async client created for the non-blocking methods can only be
        closed here when no event loop is running. Inside a running loop
        it is left open with a warning: use ``aclose()`` or ``async with``.
        """
        if self._has_open_async_client():
            try:
                asyncio.get_running_loop()
            except RuntimeError:
                asyncio.run(self._async_client.aclose())
            else:
                logger.warning(
                    "close() cannot close the httpx.AsyncClient inside a running event loop, "
                    "use aclose() or async with"
                )
        if self._owns_client:
            self._client.close()

    async def aclose(self) -> None:
        r"""Close the httpx clients this client created."""
        if self._has_open_async_client():
            await self._async_client.aclose()
        if self._owns_client:
            self._client.close()

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def headers(self) -> httpx.Headers:
        r"""Headers sent with every call. Setting a name that already
        exists replaces its value."""
        return self._headers

    @headers.setter
    def headers(self, headers: httpx.Headers | dict[str, str]) -> None:
        self._headers = httpx.Headers(headers)

    @property
    def request_filter(self) -> RequestFilter | None:
        return self._filters.request_filter

    @request_filter.setter
    def request_filter(self, handler: RequestFilter | None) -> None:
        self._filters.request_filter = handler

    @property
    def results_filter(self) -> ResultsFilter | None:
        return self._filters.results_filter

    @results_filter.setter
    def results_filter(self, handler: ResultsFilter | None) -> None:
        self._filters.results_filter = handler

    @property
    def results_filter_response(self) -> ResultsFilterResponse | None:
        return self._filters.results_filter_response

    @results_filter_response.setter
    def results_filter_response(self, handler: ResultsFilterResponse | None) -> None:
        self._filters.results_filter_response = handler

    @property
    def response_filter(self) -> ResponseFilter | None:
        return self._filters.response_filter

    @response_filter.setter
    def response_filter(self, handler: ResponseFilter | None) -> None:
        self._filters.response_filter = handler

    def resolve_url(self, method: str, request: Any) -> str:
        r"""Return the fully resolved URL a call would be sent to.

        Raises:
            EncodingError: If the typed request cannot be encoded.
        """
        return self._pipeline.prepare(method, request).url

    def send(
        self,
        method: str,
        request: Any,
        body: Body | None = None,
        *,
        response_type: Any = None,
    ) -> Any:
        r"""Send a call and block until its result is available.

        Args:
            method: The HTTP method.
            request: A typed request, or a ``str`` relative path.
            body: The explicit body of a raw call.
            response_type: The type to decode the reply into. Defaults to
                the type declared by the typed request.

        Returns:
            The decoded result, or ``None`` for fire and forget calls.

        Raises:
            EncodingError: If the typed request cannot be encoded.
            TransportError: If the call produced no reply.
            HttpStatusError: If the reply status code is not 2xx.
            DecodeError: If the reply cannot be decoded.
            FilterError: If a filter handler raises.
        """
        call = self._pipeline.prepare(
            method, request, body, response_type=response_type, headers=self._headers
        )
        return self._pipeline.execute(self._client, call)

    async def send_async(
        self,
        method: str,
        request: Any,
        body: Body | None = None,
        *,
        response_type: Any = None,
    ) -> Any:
        r"""Send a call without blocking the event loop.

        Same arguments, result and errors as ``send``.
        """
        call = self._pipeline.prepare(
            method, request, body, response_type=response_type, headers=self._headers
        )
        return await self._pipeline.execute_async(self._get_async_client(), call)

    def get(self, request: Any, body: Body | None = None, *, response_type: Any = None) -> Any:
        r"""Send a GET call (see ``send``)."""
        return self.send("GET", request, body, response_type=response_type)

    def post(self, request: Any, body: Body | None = None, *, response_type: Any = None) -> Any:
        r"""Send a POST call (see ``send``)."""
        return self.send("POST", request, body, response_type=response_type)

    def put(self, request: Any, body: Body | None = None, *, response_type: Any = None) -> Any:
        r"""Send a PUT call (see ``send``)."""
        return self.send("PUT", request, body, response_type=response_type)

    def delete(self, request: Any, body: Body | None = None, *, response_type: Any = None) -> Any:
        r"""Send a DELETE call (see ``send``)."""
        return self.send("DELETE", request, body, response_type=response_type)

    def patch(self, request: Any, body: Body | None = None, *, response_type: Any = None) -> Any:
        r"""Send a PATCH call (see ``send``)."""
        return self.send("PATCH", request, body, response_type=response_type)

    async def get_async(
        self, request: Any, body: Body | None = None, *, response_type: Any = None
    ) -> Any:
        r"""Send a GET call without blocking (see ``send_async``)."""
        return await self.send_async("GET", request, body, response_type=response_type)

    async def post_async(
        self, request: Any, body: Body | None = None, *, response_type: Any = None
    ) -> Any:
        r"""Send a POST call without blocking (see ``send_async``)."""
        return await self.send_async("POST", request, body, response_type=response_type)

    async def put_async(
        self, request: Any, body: Body | None = None, *, response_type: Any = None
    ) -> Any:
        r"""Send a PUT call without blocking (see ``send_async``)."""
        return await self.send_async("PUT", request, body, response_type=response_type)

    async def delete_async(
        self, request: Any, body: Body | None = None, *, response_type: Any = None
    ) -> Any:
        r"""Send a DELETE call without blocking (see ``send_async``)."""
        return await self.send_async("DELETE", request, body, response_type=response_type)

    async def patch_async(
        self, request: Any, body: Body | None = None, *, response_type: Any = None
    ) -> Any:
        r"""Send a PATCH call without blocking (see ``send_async``)."""
        return await self.send_async("PATCH", request, body, response_type=response_type)

    def _has_open_async_client(self) -> bool:
        return (
            self._owns_async_client
            and self._async_client is not None
            and not self._async_client.is_closed
        )

    def _get_async_client(self) -> httpx.AsyncClient:
        if self._async_client is None:
            logger.debug("Creating httpx.AsyncClient for non-blocking calls")
            self._async_client = httpx.AsyncClient(timeout=self._config.timeout)
        return self._async_client

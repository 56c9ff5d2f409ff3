r"""Call pipeline shared by the blocking and non-blocking call styles.

A call goes through the following stages:

1. ``prepare``: build the URL, the body and the per-call headers from a
   typed request or from a raw path and body.
2. ``before_send``: run the request filter, then the results filter. A
   result supplied by the results filter ends the call here.
3. Transport: ``execute`` sends with ``httpx.Client`` and blocks,
   ``execute_async`` awaits ``httpx.AsyncClient``. This is the only stage
   that differs between the two call styles.
4. ``after_send``: classify the status code, decode the reply, then run
   the results filter response and the response filter.
"""

from __future__ import annotations

__all__ = ["Call", "CallPipeline"]

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx

from typedhttp.exceptions import DecodeError
from typedhttp.filters import OutgoingRequest
from typedhttp.routes import build, build_raw, cache_key, response_type_of
from typedhttp.transport import RawReply, send, send_async
from typedhttp.utils.exceptions import build_status_error, translate_transport_error
from typedhttp.utils.structured_logging import log_structured

if TYPE_CHECKING:
    from typedhttp.codec import JsonCodec
    from typedhttp.filters import FilterChain
    from typedhttp.transport import Body

logger: logging.Logger = logging.getLogger(__name__)

_MISS = object()


@dataclass
class Call:
    r"""State of one call flowing through the pipeline.

    Attributes:
        request: The typed request, or the raw body for raw calls.
        response_type: The type the reply is decoded into; ``None`` for
            fire and forget calls.
        outgoing: The outgoing request (method, URL, headers, body).
    """

    request: Any
    response_type: Any
    outgoing: OutgoingRequest

    @property
    def method(self) -> str:
        return self.outgoing.method

    @property
    def url(self) -> str:
        return self.outgoing.url

    @property
    def stream(self) -> bool:
        return self.response_type is RawReply

    @property
    def cache_key(self) -> str:
        return cache_key(self.method, self.url)


class CallPipeline:
    r"""Run calls through request building, filters, transport and
    decoding.

    Args:
        base_url: The base URL every relative path is resolved against,
            ending with ``/``.
        codec: The codec used to encode requests and decode replies.
        filters: The filter chain of the client. It is read at each call
            so handlers set after construction are honoured.
        fmt: The format segment of the default route convention.
    """

    def __init__(
        self, *, base_url: str, codec: JsonCodec, filters: FilterChain, fmt: str = "json"
    ) -> None:
        self.base_url = base_url
        self.codec = codec
        self.filters = filters
        self.fmt = fmt

    def prepare(
        self,
        method: str,
        request: Any,
        body: Body | None = None,
        *,
        response_type: Any = None,
        headers: httpx.Headers | None = None,
    ) -> Call:
        r"""Build the call of a typed request, or of a raw path and body.

        Args:
            method: The HTTP method.
            request: A typed request, or a ``str`` relative path for the
                raw form.
            body: The explicit body of the raw form.
            response_type: The type to decode the reply into. Defaults to
                the type declared by the typed request.
            headers: The client level headers. They are copied, never
                modified.

        Raises:
            EncodingError: If the typed request cannot be encoded.
            TypeError: If a body is given along with a typed request.
        """
        if isinstance(request, str):
            built = build_raw(
                method,
                request,
                body,
                base_url=self.base_url,
                content_type=self.codec.content_type,
            )
            call_request = body
        else:
            if body is not None:
                msg = "an explicit body is only accepted with a raw path"
                raise TypeError(msg)
            built = build(method, request, base_url=self.base_url, fmt=self.fmt, codec=self.codec)
            call_request = request
            if response_type is None:
                response_type = response_type_of(request)

        call_headers = httpx.Headers(headers)
        call_headers.setdefault("Accept", self.codec.content_type)
        if built.content_type is not None:
            call_headers.setdefault("Content-Type", built.content_type)
        return Call(
            request=call_request,
            response_type=response_type,
            outgoing=OutgoingRequest(built.method, built.url, call_headers, built.body),
        )

    def before_send(self, call: Call) -> Any:
        r"""Run the request filter and the results filter.

        Returns:
            The result supplied by the results filter, coerced to the
            response type, or a sentinel meaning the call must go to the
            network.

        Raises:
            FilterError: If a handler raises.
            DecodeError: If the supplied result cannot be coerced.
        """
        self.filters.apply_request_filter(call.outgoing)
        cached = self.filters.apply_results_filter(
            call.response_type, call.method, call.url, call.request
        )
        if cached is None:
            return _MISS
        log_structured(
            logger,
            logging.DEBUG,
            f"{call.method} request to {call.url} served by results filter",
            cache_key=call.cache_key,
        )
        return self.coerce(cached, call.response_type)

    def after_send(self, call: Call, reply: RawReply) -> Any:
        r"""Classify, decode and run the post-receive filters.

        The body of a non-2xx reply must have been read.

        Raises:
            HttpStatusError: If the reply status code is not 2xx.
            DecodeError: If the reply cannot be decoded.
            FilterError: If the response filter raises.
        """
        log_structured(
            logger,
            logging.DEBUG,
            f"{call.method} request to {call.url} completed",
            status_code=reply.status_code,
            cache_key=call.cache_key,
        )
        if not reply.is_success:
            raise build_status_error(
                reply.response, method=call.method, url=call.url, codec=self.codec
            )
        try:
            result = self.decode(call, reply)
        except DecodeError as exc:
            exc.method, exc.url = call.method, call.url
            raise
        self.filters.apply_results_filter_response(
            reply, result, call.method, call.url, call.request
        )
        self.filters.apply_response_filter(result, reply, call.method, call.url)
        return result

    def execute(self, client: httpx.Client, call: Call) -> Any:
        r"""Run a prepared call, blocking until its result is available."""
        cached = self.before_send(call)
        if cached is not _MISS:
            return cached
        reply = send(client, call.outgoing, stream=call.stream)
        if not call.stream:
            return self.after_send(call, reply)
        # the caller owns a streamed reply only once it is returned
        try:
            if not reply.is_success:
                reply.read()
            return self.after_send(call, reply)
        except httpx.RequestError as exc:
            reply.close()
            raise translate_transport_error(exc, method=call.method, url=call.url) from exc
        except BaseException:
            reply.close()
            raise

    async def execute_async(self, client: httpx.AsyncClient, call: Call) -> Any:
        r"""Run a prepared call without blocking the event loop."""
        cached = self.before_send(call)
        if cached is not _MISS:
            return cached
        reply = await send_async(client, call.outgoing, stream=call.stream)
        if not call.stream:
            return self.after_send(call, reply)
        try:
            if not reply.is_success:
                await reply.aread()
            return self.after_send(call, reply)
        except httpx.RequestError as exc:
            await reply.aclose()
            raise translate_transport_error(exc, method=call.method, url=call.url) from exc
        except BaseException:
            await reply.aclose()
            raise

    def decode(self, call: Call, reply: RawReply) -> Any:
        r"""Decode a successful reply into the response type of a call."""
        response_type = call.response_type
        if response_type is None:
            return None
        if response_type is RawReply:
            return reply
        if response_type is bytes:
            return reply.content
        if response_type is str:
            return reply.text
        return self.codec.decode(reply.content, response_type)

    def coerce(self, value: Any, response_type: Any) -> Any:
        r"""Interpret a result supplied by the results filter as the
        response type, keeping the same object when it already has that
        type."""
        if response_type is None:
            return None
        if _is_instance(value, response_type):
            return value
        if response_type is RawReply:
            msg = f"results filter returned {type(value).__name__}, expected RawReply"
            raise DecodeError(msg)
        return self.codec.convert(value, response_type)


def _is_instance(value: Any, tp: Any) -> bool:
    try:
        return isinstance(value, tp)
    except TypeError:
        return False

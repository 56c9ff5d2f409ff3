r"""Filter chain: the four ordered extension points of a call.

The filter chain lets users hook into the call pipeline, for instance to
add headers, serve results from a cache or record replies:

- ``request_filter``: called with the ``OutgoingRequest`` before anything
  else, may add or overwrite headers.
- ``results_filter``: called next with ``(response_type, method, url,
  request)``. A non-``None`` return value is used as the result and the
  network call is skipped.
- ``results_filter_response``: called after a successful network call
  with ``(raw_reply, result, method, url, request)``, typically to
  populate a cache.
- ``response_filter``: called last with ``(result, raw_reply)``.

Each extension point holds at most one handler and the invocation order
is fixed: request filter, results filter, then (unless short-circuited)
transport, results filter response and response filter.

Example:
    ```pycon
    >>> from typedhttp import ServiceClient
    >>> cache = {}
    >>> def results_filter(response_type, method, url, request):
    ...     return cache.get(f"{method} {url}")
    ...
    >>> def results_filter_response(raw_reply, result, method, url, request):
    ...     cache[f"{method} {url}"] = result
    ...
    >>> client = ServiceClient("http://localhost:8080")  # doctest: +SKIP
    >>> client.results_filter = results_filter  # doctest: +SKIP
    >>> client.results_filter_response = results_filter_response  # doctest: +SKIP

    ```
"""

from __future__ import annotations

__all__ = [
    "FilterChain",
    "OutgoingRequest",
    "RequestFilter",
    "ResponseFilter",
    "ResultsFilter",
    "ResultsFilterResponse",
]

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Optional

import httpx

from typedhttp.exceptions import FilterError
from typedhttp.utils.exceptions import wrap_filter_error

if TYPE_CHECKING:
    from typedhttp.transport import Body, RawReply

logger: logging.Logger = logging.getLogger(__name__)

RequestFilter = Callable[["OutgoingRequest"], None]
ResultsFilter = Callable[[Any, str, str, Any], Optional[Any]]
ResultsFilterResponse = Callable[["RawReply", Any, str, str, Any], None]
ResponseFilter = Callable[[Any, "RawReply"], None]


class OutgoingRequest:
    r"""The outgoing call handed to the request filter.

    ``method`` and ``url`` are fixed once the request is built; the
    headers and the body can be changed by the request filter. The
    headers are a per-call copy: changing them never affects the client
    level headers.

    Args:
        method: The HTTP method.
        url: The resolved URL.
        headers: The per-call headers.
        body: The body payload, if any.
    """

    __slots__ = ("_method", "_url", "body", "headers")

    def __init__(
        self,
        method: str,
        url: str,
        headers: httpx.Headers,
        body: Body | None = None,
    ) -> None:
        self._method = method
        self._url = url
        self.headers = headers
        self.body = body

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(method={self._method!r}, url={self._url!r})"

    @property
    def method(self) -> str:
        return self._method

    @property
    def url(self) -> str:
        return self._url


@dataclass
class FilterChain:
    r"""The handlers registered on the four extension points.

    Attributes:
        request_filter: Optional handler called with the outgoing request.
        results_filter: Optional handler that can supply a result without
            a network call.
        results_filter_response: Optional handler called with the reply
            and the decoded result of a network call.
        response_filter: Optional handler called with the decoded result
            and the reply.
        on_filter_error: Optional callback receiving the ``FilterError``
            of a failed ``results_filter_response`` handler.
    """

    request_filter: RequestFilter | None = None
    results_filter: ResultsFilter | None = None
    results_filter_response: ResultsFilterResponse | None = None
    response_filter: ResponseFilter | None = None
    on_filter_error: Callable[[Exception], None] | None = field(default=None, repr=False)

    def apply_request_filter(self, request: OutgoingRequest) -> None:
        r"""Run the request filter.

        Raises:
            FilterError: If the handler raises.
        """
        if self.request_filter is None:
            return
        try:
            self.request_filter(request)
        except FilterError:
            raise
        except Exception as exc:
            raise wrap_filter_error(
                exc, hook="request_filter", method=request.method, url=request.url
            ) from exc

    def apply_results_filter(self, response_type: Any, method: str, url: str, request: Any) -> Any:
        r"""Run the results filter and return its value, ``None`` meaning
        that the call must go to the network.

        Raises:
            FilterError: If the handler raises.
        """
        if self.results_filter is None:
            return None
        try:
            return self.results_filter(response_type, method, url, request)
        except FilterError:
            raise
        except Exception as exc:
            raise wrap_filter_error(exc, hook="results_filter", method=method, url=url) from exc

    def apply_results_filter_response(
        self, raw_reply: RawReply, result: Any, method: str, url: str, request: Any
    ) -> None:
        r"""Run the results filter response.

        A failure of the handler does not fail the call: it is logged and
        passed to ``on_filter_error`` if set.
        """
        if self.results_filter_response is None:
            return
        try:
            self.results_filter_response(raw_reply, result, method, url, request)
        except Exception as exc:
            error = wrap_filter_error(exc, hook="results_filter_response", method=method, url=url)
            logger.warning(f"Ignoring failure of {error.hook}: {exc}", exc_info=exc)
            if self.on_filter_error is not None:
                try:
                    self.on_filter_error(error)
                except Exception as report_exc:
                    logger.warning(
                        f"on_filter_error failed while reporting {error.hook}: {report_exc}",
                        exc_info=report_exc,
                    )

    def apply_response_filter(
        self, result: Any, raw_reply: RawReply, method: str, url: str
    ) -> None:
        r"""Run the response filter.

        Raises:
            FilterError: If the handler raises.
        """
        if self.response_filter is None:
            return
        try:
            self.response_filter(result, raw_reply)
        except FilterError:
            raise
        except Exception as exc:
            raise wrap_filter_error(exc, hook="response_filter", method=method, url=url) from exc

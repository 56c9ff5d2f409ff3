r"""Exception translation utilities.

This module converts httpx exceptions and non-2xx replies into the
client's exception hierarchy, so callers never have to handle httpx
exceptions directly.
"""

from __future__ import annotations

__all__ = ["build_status_error", "translate_transport_error", "wrap_filter_error"]

import logging
from typing import TYPE_CHECKING, Any

import httpx

from typedhttp.exceptions import (
    FilterError,
    HttpStatusError,
    RequestTimeoutError,
    TransportError,
)

if TYPE_CHECKING:
    from typedhttp.codec import JsonCodec

logger: logging.Logger = logging.getLogger(__name__)


def translate_transport_error(exc: Exception, *, method: str, url: str) -> TransportError:
    r"""Translate an httpx request exception into a ``TransportError``.

    Args:
        exc: The exception raised by httpx (typically a subclass of
            ``httpx.RequestError`` or ``httpx.StreamError``).
        method: The HTTP method name (e.g., "GET", "POST").
        url: The URL that was requested.

    Returns:
        A ``RequestTimeoutError`` for timeouts, a ``TransportError``
        otherwise. The original exception is kept as the cause.

    Example:
        ```pycon
        >>> import httpx
        >>> from typedhttp.utils.exceptions import translate_transport_error
        >>> err = translate_transport_error(
        ...     httpx.ReadTimeout("timed out"), method="GET", url="http://localhost/"
        ... )
        >>> type(err).__name__
        'RequestTimeoutError'

        ```
    """
    if isinstance(exc, httpx.TimeoutException):
        logger.debug(f"{method} request to {url} timed out: {exc}")
        return RequestTimeoutError(
            f"{method} request to {url} timed out", method=method, url=url, cause=exc
        )
    error_type = type(exc).__name__
    logger.debug(f"{method} request to {url} encountered {error_type}: {exc}")
    return TransportError(
        f"{method} request to {url} failed: {exc}", method=method, url=url, cause=exc
    )


def build_status_error(
    response: httpx.Response,
    *,
    method: str,
    url: str,
    codec: JsonCodec,
) -> HttpStatusError:
    r"""Build the ``HttpStatusError`` of a non-2xx reply.

    The body of the reply must have been read. It is parsed as JSON when
    possible and attached as ``error_body``.

    Args:
        response: The non-2xx reply.
        method: The HTTP method name (e.g., "GET", "POST").
        url: The URL that was requested.
        codec: The codec used to parse the error body.

    Returns:
        The error describing the reply.
    """
    logger.debug(f"{method} request to {url} failed with status {response.status_code}")
    error_body: Any = codec.try_parse(response.content)
    return HttpStatusError(
        f"{method} request to {url} failed with status {response.status_code}",
        method=method,
        url=url,
        status_code=response.status_code,
        response=response,
        error_body=error_body,
    )


def wrap_filter_error(exc: Exception, *, hook: str, method: str, url: str) -> FilterError:
    r"""Wrap an exception raised by a filter hook into a ``FilterError``.

    ``FilterError`` instances are returned unchanged so a nested hook
    failure is not wrapped twice.
    """
    if isinstance(exc, FilterError):
        return exc
    return FilterError(
        f"{hook} failed for {method} request to {url}: {exc}",
        hook=hook,
        method=method,
        url=url,
        cause=exc,
    )

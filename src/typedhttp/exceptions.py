r"""Exception hierarchy raised by the typed service client.

Every failure raised by a call derives from ``ServiceClientError`` so
callers can catch the whole family, while the subclasses keep the
different failure kinds apart:

- ``EncodingError``: the request could not be turned into a query string
  or a body. Raised before any network attempt.
- ``TransportError``: the request did not produce a reply (connection
  failure, stream interruption). ``RequestTimeoutError`` is the timeout
  flavour.
- ``HttpStatusError``: the server replied with a non-2xx status.
- ``DecodeError``: a 2xx reply could not be decoded into the declared type.
- ``FilterError``: a user-supplied filter hook raised.
"""

from __future__ import annotations

__all__ = [
    "DecodeError",
    "EncodingError",
    "FilterError",
    "HttpStatusError",
    "RequestTimeoutError",
    "ServiceClientError",
    "TransportError",
]

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    import httpx


class ServiceClientError(Exception):
    r"""Base class of all the errors raised by ``ServiceClient``.

    Args:
        message: A descriptive error message.
        method: The HTTP method of the failed call, if known.
        url: The resolved URL of the failed call, if known.
        cause: The underlying exception, if any.

    Example:
        ```pycon
        >>> from typedhttp.exceptions import ServiceClientError
        >>> exc = ServiceClientError("boom", method="GET", url="http://localhost/")
        >>> exc.method, exc.url
        ('GET', 'http://localhost/')

        ```
    """

    def __init__(
        self,
        message: str,
        *,
        method: str | None = None,
        url: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.method = method
        self.url = url
        self.cause = cause


class EncodingError(ServiceClientError):
    r"""Raised when a request cannot be encoded into query parameters or
    a body."""


class TransportError(ServiceClientError):
    r"""Raised when the network call fails without producing a reply."""


class RequestTimeoutError(TransportError):
    r"""Raised when the network call exceeds the configured timeout."""


class HttpStatusError(ServiceClientError):
    r"""Raised when the server replies with a non-2xx status code.

    Args:
        message: A descriptive error message.
        method: The HTTP method of the failed call.
        url: The resolved URL of the failed call.
        status_code: The HTTP status code of the reply.
        response: The ``httpx.Response`` of the reply.
        error_body: The decoded JSON error body, or ``None`` if the body
            is empty or not JSON.

    Example:
        ```pycon
        >>> from typedhttp.exceptions import HttpStatusError
        >>> exc = HttpStatusError(
        ...     "GET request to http://localhost/ failed with status 404",
        ...     method="GET",
        ...     url="http://localhost/",
        ...     status_code=404,
        ...     error_body={"responseStatus": {"errorCode": "NotFound", "message": "Gone"}},
        ... )
        >>> exc.error_code, exc.error_message
        ('NotFound', 'Gone')

        ```
    """

    def __init__(
        self,
        message: str,
        *,
        method: str,
        url: str,
        status_code: int,
        response: httpx.Response | None = None,
        error_body: Any = None,
    ) -> None:
        super().__init__(message, method=method, url=url)
        self.status_code = status_code
        self.response = response
        self.error_body = error_body

    @property
    def response_status(self) -> dict[str, Any] | None:
        r"""The ``responseStatus`` error envelope of the error body, if
        any."""
        if not isinstance(self.error_body, dict):
            return None
        for key in ("responseStatus", "ResponseStatus", "response_status"):
            status = self.error_body.get(key)
            if isinstance(status, dict):
                return status
        return None

    @property
    def error_code(self) -> str | None:
        status = self.response_status
        if status is None:
            return None
        return status.get("errorCode", status.get("ErrorCode"))

    @property
    def error_message(self) -> str | None:
        status = self.response_status
        if status is None:
            return None
        return status.get("message", status.get("Message"))


class DecodeError(ServiceClientError):
    r"""Raised when a successful reply cannot be decoded into the declared
    response type."""


class FilterError(ServiceClientError):
    r"""Raised when a user-supplied filter hook fails.

    Args:
        message: A descriptive error message.
        hook: The name of the extension point whose handler failed
            (e.g. ``"request_filter"``).
        method: The HTTP method of the call.
        url: The resolved URL of the call.
        cause: The exception raised by the handler.
    """

    def __init__(
        self,
        message: str,
        *,
        hook: str,
        method: str | None = None,
        url: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, method=method, url=url, cause=cause)
        self.hook = hook

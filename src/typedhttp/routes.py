r"""Request builder: turn a typed request into a URL and an optional body.

A request is a pydantic model. Its relative path is taken from the
``__route__`` class attribute when present (``{name}`` placeholders are
filled from the request's serialized fields), otherwise it follows the
``{format}/reply/{ClassName}`` convention.

Verbs without a body (GET, DELETE, HEAD, OPTIONS) carry the request's
fields in the query string. Verbs with a body (POST, PUT, PATCH) carry
the codec-encoded request in the body and only the path in the URL.

Example:
    ```pycon
    >>> from pydantic import BaseModel
    >>> from typedhttp.codec import JsonCodec
    >>> from typedhttp.routes import build
    >>> class GetCustomer(BaseModel):
    ...     customer_id: int
    ...
    >>> built = build("GET", GetCustomer(customer_id=5), base_url="http://localhost:8080/")
    >>> built.url
    'http://localhost:8080/json/reply/GetCustomer?customer_id=5'
    >>> built = build("POST", GetCustomer(customer_id=5), base_url="http://localhost:8080/")
    >>> built.url, built.body
    ('http://localhost:8080/json/reply/GetCustomer', b'{"customer_id":5}')

    ```
"""

from __future__ import annotations

__all__ = [
    "BODY_METHODS",
    "BuiltRequest",
    "build",
    "build_raw",
    "cache_key",
    "join_url",
    "path_for",
    "response_type_of",
    "to_get_url",
    "to_post_url",
    "to_query_params",
    "to_url",
]

import json
import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import httpx

from typedhttp.codec import JsonCodec
from typedhttp.exceptions import EncodingError

if TYPE_CHECKING:
    from typedhttp.transport import Body

logger: logging.Logger = logging.getLogger(__name__)

# Verbs whose request is sent in the body instead of the query string
BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})

_PLACEHOLDER = re.compile(r"\{([^{}]+)\}")

_DEFAULT_CODEC = JsonCodec()


@dataclass(frozen=True)
class BuiltRequest:
    r"""The outgoing call derived from a typed or raw request.

    Attributes:
        method: The upper-cased HTTP method.
        url: The fully resolved URL, query string included.
        body: The body payload, or ``None`` for verbs without a body.
        content_type: The content type of the body, if any.
    """

    method: str
    url: str
    body: Body | None = None
    content_type: str | None = None


def cache_key(method: str, url: str) -> str:
    r"""Return the cache key identifying one logical call.

    Example:
        ```pycon
        >>> from typedhttp.routes import cache_key
        >>> cache_key("GET", "http://localhost/json/reply/GetCustomer?customerId=5")
        'GET http://localhost/json/reply/GetCustomer?customerId=5'

        ```
    """
    return f"{method.upper()} {url}"


def response_type_of(request: Any) -> Any:
    r"""Return the response type declared by a request class through its
    ``__response_type__`` attribute, or ``None`` for fire and forget
    operations."""
    return getattr(type(request), "__response_type__", None)


def path_for(request: Any, *, fmt: str = "json") -> str:
    r"""Return the relative path of a request, without query string.

    This is the path to use with the raw overloads of the client.

    Raises:
        EncodingError: If a route placeholder has no matching field.
    """
    return to_url(request, "POST", fmt=fmt)


def to_url(request: Any, method: str, *, fmt: str = "json", codec: JsonCodec | None = None) -> str:
    r"""Return the relative URL of a request for a verb, including the
    field-derived query string for verbs without a body.

    Raises:
        EncodingError: If the request is not a pydantic model or a route
            placeholder has no matching field.
    """
    codec = codec or _DEFAULT_CODEC
    method = method.upper()
    fields = codec.to_fields(request)
    route = getattr(type(request), "__route__", None)
    if route is None:
        path, remaining = f"/{fmt}/reply/{type(request).__name__}", fields
    else:
        path, remaining = _fill_route(route, fields)
        if not path.startswith("/"):
            path = f"/{path}"
    if method in BODY_METHODS:
        return path
    return _append_query(path, to_query_params(remaining))


def to_post_url(request: Any, *, fmt: str = "json") -> str:
    r"""Return the relative URL to POST a request to.

    Example:
        ```pycon
        >>> from pydantic import BaseModel
        >>> from typedhttp.routes import to_post_url
        >>> class GetCustomer(BaseModel):
        ...     customer_id: int
        ...
        >>> to_post_url(GetCustomer(customer_id=5))
        '/json/reply/GetCustomer'

        ```
    """
    return path_for(request, fmt=fmt)


def to_get_url(request: Any, *, fmt: str = "json") -> str:
    r"""Return the relative URL, query string included, to GET a
    request from."""
    return to_url(request, "GET", fmt=fmt)


def to_query_params(fields: dict[str, Any]) -> list[tuple[str, str]]:
    r"""Stringify serialized fields into ordered query parameters.

    The conversion is locale independent: booleans become
    ``true``/``false``, lists of scalars are comma-joined, mappings and
    nested lists are compact JSON. ``None`` values are skipped.

    Example:
        ```pycon
        >>> from typedhttp.routes import to_query_params
        >>> to_query_params({"id": 5, "active": True, "tags": ["a", "b"], "skip": None})
        [('id', '5'), ('active', 'true'), ('tags', 'a,b')]

        ```
    """
    params = []
    for name, value in fields.items():
        if value is None:
            continue
        params.append((name, _stringify(value)))
    return params


def join_url(base_url: str, path: str) -> str:
    r"""Join the client base URL with a relative path.

    Absolute URLs are returned unchanged.

    Example:
        ```pycon
        >>> from typedhttp.routes import join_url
        >>> join_url("http://localhost:8080/api/", "/json/reply/Hello")
        'http://localhost:8080/api/json/reply/Hello'

        ```
    """
    if path.startswith(("http://", "https://")):
        return path
    return base_url + path.lstrip("/")


def build(
    method: str,
    request: Any,
    *,
    base_url: str,
    fmt: str = "json",
    codec: JsonCodec | None = None,
) -> BuiltRequest:
    r"""Build the outgoing call of a typed request.

    Args:
        method: The HTTP method.
        request: The typed request, a pydantic model.
        base_url: The client base URL, ending with ``/``.
        fmt: The format segment of the default route convention.
        codec: The codec used to serialize the request.

    Returns:
        The resolved URL and, for verbs with a body, the encoded body.

    Raises:
        EncodingError: If the request cannot be introspected or encoded.
    """
    codec = codec or _DEFAULT_CODEC
    method = method.upper()
    url = join_url(base_url, to_url(request, method, fmt=fmt, codec=codec))
    if method not in BODY_METHODS:
        return BuiltRequest(method=method, url=url)
    return BuiltRequest(
        method=method, url=url, body=codec.encode(request), content_type=codec.content_type
    )


def build_raw(
    method: str,
    path: str,
    body: Body | None = None,
    *,
    base_url: str,
    content_type: str | None = None,
) -> BuiltRequest:
    r"""Build the outgoing call of a raw path and an explicit body.

    No field extraction happens; the body is sent as given.
    """
    return BuiltRequest(
        method=method.upper(),
        url=join_url(base_url, path),
        body=body,
        content_type=content_type if body is not None else None,
    )


def _fill_route(route: str, fields: dict[str, Any]) -> tuple[str, dict[str, Any]]:
    remaining = dict(fields)

    def replace(match: re.Match[str]) -> str:
        name = match.group(1)
        if name not in fields:
            msg = f"route {route!r} references unknown or empty field {name!r}"
            raise EncodingError(msg)
        remaining.pop(name, None)
        return quote(_stringify(fields[name]), safe="")

    return _PLACEHOLDER.sub(replace, route), remaining


def _append_query(path: str, params: list[tuple[str, str]]) -> str:
    if not params:
        return path
    query = str(httpx.QueryParams(params))
    separator = "&" if "?" in path else "?"
    return f"{path}{separator}{query}"


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, list) and all(
        isinstance(item, (str, int, float, bool)) for item in value
    ):
        return ",".join(_stringify(item) for item in value)
    return json.dumps(value, separators=(",", ":"))

r"""typedhttp - Typed service client over httpx.

Callers build a typed request (a pydantic model), hand it to the client
and get a typed response back. The client builds the call, runs it
through an ordered filter chain (request filter, results filter for
cache short-circuiting, results filter response, response filter),
sends it blocking or non-blocking and decodes the reply.

Key Features:
    - Typed requests and responses built on pydantic
    - Blocking (``get``) and non-blocking (``get_async``) calls with the
      same pipeline
    - Raw overloads taking a path and a text, bytes or stream body
    - Raw reply variants: ``str``, ``bytes`` and ``RawReply`` handles
    - Client level headers and per-call request filters
    - Cache short-circuiting through the results filter hooks
    - Distinct errors for encoding, transport, HTTP status, decoding and
      filter failures

Example:
    ```pycon
    >>> from typing import ClassVar
    >>> from pydantic import BaseModel
    >>> from typedhttp import ServiceClient
    >>> class Hello(BaseModel):
    ...     __response_type__: ClassVar[type] = dict
    ...     name: str
    ...
    >>> with ServiceClient("http://localhost:8080") as client:  # doctest: +SKIP
    ...     client.headers["Foo"] = "Bar"
    ...     response = client.get(Hello(name="World"))
    ...

    ```
"""

from __future__ import annotations

__all__ = [
    "ClientConfig",
    "Completion",
    "DecodeError",
    "EncodingError",
    "FilterChain",
    "FilterError",
    "HttpStatusError",
    "JsonCodec",
    "OutgoingRequest",
    "RawReply",
    "RequestTimeoutError",
    "ServiceClient",
    "ServiceClientError",
    "TransportError",
    "__version__",
    "after",
    "cache_key",
    "path_for",
    "to_get_url",
    "to_post_url",
]

from importlib.metadata import PackageNotFoundError, version

from typedhttp.client import ServiceClient
from typedhttp.codec import JsonCodec
from typedhttp.completion import Completion, after
from typedhttp.core.config import ClientConfig
from typedhttp.exceptions import (
    DecodeError,
    EncodingError,
    FilterError,
    HttpStatusError,
    RequestTimeoutError,
    ServiceClientError,
    TransportError,
)
from typedhttp.filters import FilterChain, OutgoingRequest
from typedhttp.routes import cache_key, path_for, to_get_url, to_post_url
from typedhttp.transport import RawReply

try:
    __version__ = version(__name__)
except PackageNotFoundError:  # pragma: no cover
    # Package is not installed, fallback if needed
    __version__ = "0.0.0"

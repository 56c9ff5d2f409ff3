r"""Shared test helpers: request/response models and an in-memory test
service.

The test service answers the typed requests below through
``httpx.MockTransport``, so the tests exercise the whole client stack
(request building, filters, transport, decoding) without a network.
"""

from __future__ import annotations

__all__ = [
    "BASE_URL",
    "Customer",
    "CustomerById",
    "EchoRequestInfo",
    "EchoRequestInfoResponse",
    "Fail",
    "GetCustomer",
    "GetCustomerResponse",
    "Hello",
    "HelloResponse",
    "ReturnsVoid",
    "ReturnsWebResponse",
    "SearchCustomers",
    "Slow",
    "TestService",
    "Unreachable",
    "streamed",
]

import itertools
import json
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import ClassVar

import httpx
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

BASE_URL = "http://testserver/api"

_EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Customer(_CamelModel):
    id: int
    name: str


class GetCustomerResponse(_CamelModel):
    customer: Customer
    created: datetime


class GetCustomer(_CamelModel):
    __response_type__: ClassVar[type] = GetCustomerResponse

    customer_id: int


class CustomerById(_CamelModel):
    __route__: ClassVar[str] = "/customers/{id}"
    __response_type__: ClassVar[type] = GetCustomerResponse

    id: int
    include_orders: bool = False


class SearchCustomers(_CamelModel):
    __response_type__: ClassVar[type] = list[Customer]

    names: list[str]
    active: bool | None = None


class HelloResponse(BaseModel):
    result: str


class Hello(BaseModel):
    __response_type__: ClassVar[type] = HelloResponse

    name: str


class EchoRequestInfoResponse(BaseModel):
    headers: dict[str, str]


class EchoRequestInfo(BaseModel):
    __response_type__: ClassVar[type] = EchoRequestInfoResponse


class ReturnsVoid(BaseModel):
    message: str = "ping"


class ReturnsWebResponse(BaseModel):
    message: str = "ping"


class Fail(BaseModel):
    __response_type__: ClassVar[type] = HelloResponse

    status: int = 404


class Slow(BaseModel):
    __response_type__: ClassVar[type] = HelloResponse


class Unreachable(BaseModel):
    __response_type__: ClassVar[type] = HelloResponse


def streamed(response: httpx.Response) -> httpx.Response:
    r"""Return a copy of ``response`` whose body is left unread until the
    client consumes it, like a reply coming from the network."""
    return httpx.Response(
        response.status_code,
        headers=response.headers,
        stream=httpx.ByteStream(response.content),
    )


class TestService:
    r"""In-memory service answering the test requests.

    Every request received is recorded in ``requests`` and every
    operation call is counted in ``calls``. Each ``GetCustomer`` reply
    carries a new ``created`` timestamp so a cached reply can be told
    apart from a fresh one.
    """

    __test__ = False

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.calls: Counter[str] = Counter()
        self._sequence = itertools.count(1)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return streamed(self._dispatch(request))

    def _dispatch(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/api")
        if path.startswith("/customers/"):
            self.calls["CustomerById"] += 1
            customer_id = int(path.rsplit("/", 1)[-1])
            return httpx.Response(200, json=self._customer(customer_id))
        operation = path.removeprefix("/json/reply/")
        self.calls[operation] += 1
        handler = getattr(self, f"_handle_{operation}", None)
        if handler is None:
            return httpx.Response(
                404,
                json={"responseStatus": {"errorCode": "NotFound", "message": f"{path} not found"}},
            )
        return handler(request)

    def _fields(self, request: httpx.Request) -> dict:
        if request.content:
            return json.loads(request.content)
        return dict(request.url.params)

    def _customer(self, customer_id: int) -> dict:
        created = _EPOCH + timedelta(seconds=next(self._sequence))
        return {
            "customer": {"id": customer_id, "name": f"Customer {customer_id}"},
            "created": created.isoformat(),
        }

    def _handle_GetCustomer(self, request: httpx.Request) -> httpx.Response:  # noqa: N802
        return httpx.Response(200, json=self._customer(int(self._fields(request)["customerId"])))

    def _handle_SearchCustomers(self, request: httpx.Request) -> httpx.Response:  # noqa: N802
        names = request.url.params["names"].split(",")
        return httpx.Response(
            200, json=[{"id": i, "name": name} for i, name in enumerate(names, start=1)]
        )

    def _handle_Hello(self, request: httpx.Request) -> httpx.Response:  # noqa: N802
        return httpx.Response(200, json={"result": f"Hello, {self._fields(request)['name']}!"})

    def _handle_EchoRequestInfo(self, request: httpx.Request) -> httpx.Response:  # noqa: N802
        return httpx.Response(200, json={"headers": dict(request.headers)})

    def _handle_ReturnsVoid(self, request: httpx.Request) -> httpx.Response:  # noqa: N802
        return httpx.Response(204)

    def _handle_ReturnsWebResponse(self, request: httpx.Request) -> httpx.Response:  # noqa: N802
        return httpx.Response(200, text="done")

    def _handle_Fail(self, request: httpx.Request) -> httpx.Response:  # noqa: N802
        status = int(self._fields(request)["status"])
        return httpx.Response(
            status,
            json={"responseStatus": {"errorCode": "Failed", "message": f"failed with {status}"}},
        )

    def _handle_Slow(self, request: httpx.Request) -> httpx.Response:  # noqa: N802
        msg = "read timed out"
        raise httpx.ReadTimeout(msg, request=request)

    def _handle_Unreachable(self, request: httpx.Request) -> httpx.Response:  # noqa: N802
        msg = "connection refused"
        raise httpx.ConnectError(msg, request=request)

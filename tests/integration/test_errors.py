r"""Integration tests for the failures surfaced by ServiceClient, for
both call styles."""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import Mock

import pytest

from tests.helpers import (
    Fail,
    GetCustomerResponse,
    Hello,
    HelloResponse,
    ReturnsVoid,
    ReturnsWebResponse,
    Slow,
    TestService,
    Unreachable,
)
from typedhttp import (
    ClientConfig,
    DecodeError,
    EncodingError,
    FilterError,
    HttpStatusError,
    RawReply,
    RequestTimeoutError,
    ServiceClient,
    ServiceClientError,
    TransportError,
)

if TYPE_CHECKING:
    import httpx

BASE_URL = "http://testserver/api"


##############################
#     HTTP status errors     #
##############################


@pytest.mark.parametrize("status", [400, 401, 404, 500, 503])
def test_status_error(client: ServiceClient, status: int) -> None:
    with pytest.raises(HttpStatusError, match=rf"failed with status {status}") as exc_info:
        client.get(Fail(status=status))
    error = exc_info.value
    assert error.status_code == status
    assert error.method == "GET"
    assert error.url == f"{BASE_URL}/json/reply/Fail?status={status}"
    assert error.error_code == "Failed"
    assert error.error_message == f"failed with {status}"


def test_status_error_post(client: ServiceClient) -> None:
    with pytest.raises(HttpStatusError) as exc_info:
        client.post(Fail(status=409))
    assert exc_info.value.status_code == 409
    assert exc_info.value.response.status_code == 409


def test_status_error_raw_reply(client: ServiceClient) -> None:
    with pytest.raises(HttpStatusError) as exc_info:
        client.get(Fail(status=404), response_type=RawReply)
    assert exc_info.value.error_code == "Failed"
    assert exc_info.value.response.is_closed


def test_status_error_skips_post_filters(client: ServiceClient) -> None:
    client.results_filter_response = Mock()
    client.response_filter = Mock()
    with pytest.raises(HttpStatusError):
        client.get(Fail(status=500))
    client.results_filter_response.assert_not_called()
    client.response_filter.assert_not_called()


@pytest.mark.asyncio
async def test_status_error_async(client: ServiceClient) -> None:
    with pytest.raises(HttpStatusError) as exc_info:
        await client.get_async(Fail(status=404))
    assert exc_info.value.status_code == 404
    assert exc_info.value.error_message == "failed with 404"


@pytest.mark.asyncio
async def test_status_error_raw_reply_async(client: ServiceClient) -> None:
    with pytest.raises(HttpStatusError) as exc_info:
        await client.post_async(Fail(status=503), response_type=RawReply)
    assert exc_info.value.error_code == "Failed"
    assert exc_info.value.response.is_closed


############################
#     Transport errors     #
############################


def test_timeout(client: ServiceClient) -> None:
    with pytest.raises(RequestTimeoutError, match=r"timed out") as exc_info:
        client.get(Slow())
    assert exc_info.value.url == f"{BASE_URL}/json/reply/Slow"


def test_connection_error(client: ServiceClient) -> None:
    with pytest.raises(TransportError, match=r"connection refused") as exc_info:
        client.post(Unreachable())
    assert not isinstance(exc_info.value, RequestTimeoutError)


def test_transport_error_skips_post_filters(client: ServiceClient) -> None:
    client.results_filter_response = Mock()
    client.response_filter = Mock()
    with pytest.raises(TransportError):
        client.get(Unreachable())
    client.results_filter_response.assert_not_called()
    client.response_filter.assert_not_called()


@pytest.mark.asyncio
async def test_timeout_async(client: ServiceClient) -> None:
    with pytest.raises(RequestTimeoutError):
        await client.get_async(Slow())


@pytest.mark.asyncio
async def test_connection_error_async(client: ServiceClient) -> None:
    with pytest.raises(TransportError):
        await client.put_async(Unreachable(), response_type=RawReply)


#########################
#     Decode errors     #
#########################


def test_decode_error(client: ServiceClient) -> None:
    with pytest.raises(DecodeError) as exc_info:
        client.post(ReturnsWebResponse(), response_type=HelloResponse)
    assert exc_info.value.method == "POST"
    assert exc_info.value.url == f"{BASE_URL}/json/reply/ReturnsWebResponse"


def test_decode_error_empty_body_with_declared_type(client: ServiceClient) -> None:
    with pytest.raises(DecodeError):
        client.post(ReturnsVoid(), response_type=HelloResponse)


def test_decode_error_wrong_shape(client: ServiceClient) -> None:
    with pytest.raises(DecodeError):
        client.get(Hello(name="World"), response_type=GetCustomerResponse)


@pytest.mark.asyncio
async def test_decode_error_async(client: ServiceClient) -> None:
    with pytest.raises(DecodeError):
        await client.post_async(ReturnsWebResponse(), response_type=HelloResponse)


###########################
#     Encoding errors     #
###########################


def test_encoding_error_is_raised_before_sending(
    client: ServiceClient, service: TestService
) -> None:
    with pytest.raises(EncodingError, match=r"request must be a pydantic model"):
        client.get({"name": "World"})
    assert service.requests == []


@pytest.mark.asyncio
async def test_encoding_error_async(client: ServiceClient, service: TestService) -> None:
    with pytest.raises(EncodingError):
        await client.post_async(42)
    assert service.requests == []


#########################
#     Filter errors     #
#########################


def test_request_filter_error(client: ServiceClient, service: TestService) -> None:
    client.request_filter = Mock(side_effect=RuntimeError("no token"))
    with pytest.raises(FilterError, match=r"no token") as exc_info:
        client.get(Hello(name="World"))
    assert exc_info.value.hook == "request_filter"
    assert service.requests == []


def test_results_filter_error(client: ServiceClient, service: TestService) -> None:
    client.results_filter = Mock(side_effect=ConnectionError("cache down"))
    with pytest.raises(FilterError) as exc_info:
        client.get(Hello(name="World"))
    assert exc_info.value.hook == "results_filter"
    assert service.requests == []


def test_response_filter_error(client: ServiceClient, service: TestService) -> None:
    client.response_filter = Mock(side_effect=ValueError("rejected"))
    with pytest.raises(FilterError) as exc_info:
        client.get(Hello(name="World"))
    assert exc_info.value.hook == "response_filter"
    assert service.calls["Hello"] == 1


def test_results_filter_response_error_does_not_fail_call(
    http_client: httpx.Client, async_http_client: httpx.AsyncClient
) -> None:
    on_filter_error = Mock()
    config = ClientConfig(
        results_filter_response=Mock(side_effect=OSError("disk full")),
        on_filter_error=on_filter_error,
    )
    with ServiceClient(
        BASE_URL, config=config, client=http_client, async_client=async_http_client
    ) as client:
        assert client.get(Hello(name="World")) == HelloResponse(result="Hello, World!")
    on_filter_error.assert_called_once()
    error = on_filter_error.call_args.args[0]
    assert isinstance(error, FilterError)
    assert error.hook == "results_filter_response"


def test_results_filter_response_error_reporter_failure_does_not_fail_call(
    http_client: httpx.Client, async_http_client: httpx.AsyncClient
) -> None:
    config = ClientConfig(
        results_filter_response=Mock(side_effect=OSError("disk full")),
        on_filter_error=Mock(side_effect=RuntimeError("reporter broke")),
    )
    with ServiceClient(
        BASE_URL, config=config, client=http_client, async_client=async_http_client
    ) as client:
        assert client.get(Hello(name="World")) == HelloResponse(result="Hello, World!")
    config.on_filter_error.assert_called_once()


def test_results_filter_response_error_still_runs_response_filter(client: ServiceClient) -> None:
    client.results_filter_response = Mock(side_effect=OSError("disk full"))
    client.response_filter = Mock()
    result = client.get(Hello(name="World"))
    client.response_filter.assert_called_once()
    assert client.response_filter.call_args.args[0] == result


@pytest.mark.asyncio
async def test_request_filter_error_async(client: ServiceClient, service: TestService) -> None:
    client.request_filter = Mock(side_effect=RuntimeError("no token"))
    with pytest.raises(FilterError):
        await client.get_async(Hello(name="World"))
    assert service.requests == []


@pytest.mark.asyncio
async def test_response_filter_error_async(client: ServiceClient) -> None:
    client.response_filter = Mock(side_effect=ValueError("rejected"))
    with pytest.raises(FilterError) as exc_info:
        await client.get_async(Hello(name="World"))
    assert exc_info.value.hook == "response_filter"


################################
#     Error family catching    #
################################


@pytest.mark.parametrize(
    "request_", [Fail(status=500), Slow(), Unreachable(), Hello(name="World")]
)
def test_errors_share_base_class(client: ServiceClient, request_: object) -> None:
    client.response_filter = Mock(side_effect=ValueError("rejected"))
    with pytest.raises(ServiceClientError):
        client.get(request_)

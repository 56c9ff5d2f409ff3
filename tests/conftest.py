from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import Mock

import httpx
import pytest

from tests.helpers import BASE_URL, TestService
from typedhttp import ServiceClient

if TYPE_CHECKING:
    from collections.abc import Generator


@pytest.fixture
def service() -> TestService:
    """Create the in-memory test service."""
    return TestService()


@pytest.fixture
def http_client(service: TestService) -> Generator[httpx.Client, None, None]:
    """Create an httpx.Client routed to the test service."""
    with httpx.Client(transport=service.transport) as client:
        yield client


@pytest.fixture
def async_http_client(service: TestService) -> httpx.AsyncClient:
    """Create an httpx.AsyncClient routed to the test service."""
    return httpx.AsyncClient(transport=service.transport)


@pytest.fixture
def client(
    http_client: httpx.Client, async_http_client: httpx.AsyncClient
) -> Generator[ServiceClient, None, None]:
    """Create a ServiceClient talking to the test service."""
    with ServiceClient(BASE_URL, client=http_client, async_client=async_http_client) as client:
        yield client


@pytest.fixture
def mock_callback() -> Mock:
    """Create a mock callback function for testing filter handlers.

    Returns:
        A Mock object that can be used as a filter handler.
    """
    return Mock(return_value=None)

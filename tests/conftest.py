"""
Shared fixtures for infactory_client tests.
"""
import pytest

import httpx
import respx

from infactory_client.config import ClientConfig
from infactory_client.core.base_client import AsyncHttpClient

BASE_URL = "https://api.example.com"
API_KEY = "nf-test-key-0123456789"


@pytest.fixture
def client_config():
    """Sample ClientConfig for testing."""
    return ClientConfig(base_url=BASE_URL, api_key=API_KEY)


@pytest.fixture
def router():
    """respx router used through an explicit MockTransport."""
    return respx.MockRouter(assert_all_called=False)


@pytest.fixture
def make_client(router):
    """Build an AsyncHttpClient whose traffic is served by ``router``."""

    def _make(config=None, **overrides):
        if config is None:
            values = {"base_url": BASE_URL, "api_key": API_KEY}
            values.update(overrides)
            config = ClientConfig(**values)
        transport = httpx.MockTransport(router.async_handler)
        return AsyncHttpClient(config, httpx_client=httpx.AsyncClient(transport=transport))

    return _make


@pytest.fixture
def failing_client(client_config):
    """Client whose transport refuses every connection."""

    def handler(request):
        raise httpx.ConnectError("Connection refused", request=request)

    transport = httpx.MockTransport(handler)
    return AsyncHttpClient(client_config, httpx_client=httpx.AsyncClient(transport=transport))

"""
Tests for factory.py
"""
import pytest

import httpx

from infactory_client.config import Settings, TimeoutConfig
from infactory_client.core.base_client import AsyncHttpClient
from infactory_client.core.transport_strategy import ProxyTransportStrategy
from infactory_client.errors import AuthenticationError
from infactory_client.factory import create_client, create_client_from_env


class TestCreateClient:
    """Tests for create_client."""

    def test_defaults(self):
        client = create_client(api_key="nf-key")
        assert isinstance(client, AsyncHttpClient)
        assert client.config.base_url == "https://api.infactory.ai"
        assert client.config.api_key == "nf-key"
        assert client.config.auth_mode == "header"

    def test_all_options(self):
        injected = httpx.AsyncClient()
        client = create_client(
            api_key="nf-key",
            base_url="https://api.example.com/",
            httpx_client=injected,
            auth_mode="query",
            timeout=7,
            default_headers={"X-Team": "t1"},
            normalize_case=False,
        )
        assert client.config.base_url == "https://api.example.com"
        assert client.config.timeout == TimeoutConfig(connect=7, read=7, write=7)
        assert client.config.headers["X-Team"] == "t1"
        assert client.config.normalize_case is False

    def test_proxy_origin(self):
        client = create_client(proxy_origin="http://localhost:3000")
        assert isinstance(client.strategy, ProxyTransportStrategy)

    # Error Path: cookie mode without cookie
    def test_cookie_mode_requires_cookie(self):
        with pytest.raises(AuthenticationError):
            create_client(auth_mode="cookie")


class TestCreateClientFromEnv:
    """Tests for create_client_from_env."""

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("NF_API_KEY", "nf-env")
        monkeypatch.setenv("NF_BASE_URL", "https://env.example.com")
        monkeypatch.setenv("NF_AUTH_MODE", "query")
        client = create_client_from_env()
        assert client.config.api_key == "nf-env"
        assert client.config.base_url == "https://env.example.com"
        assert client.config.auth_mode == "query"

    def test_explicit_settings_and_overrides(self):
        settings = Settings(NF_API_KEY="nf-settings", NF_BASE_URL="https://s.example.com")
        client = create_client_from_env(settings, verbose=True)
        assert client.config.api_key == "nf-settings"
        assert client.config.verbose is True

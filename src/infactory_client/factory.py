"""
Factory functions for creating Infactory clients.
"""
from typing import Dict, Optional, Union

import httpx

from .config import DEFAULT_BASE_URL, ClientConfig, Settings, TimeoutConfig
from .core.base_client import AsyncHttpClient
from .types import AuthMode


def create_client(
    api_key: Optional[str] = None,
    base_url: str = DEFAULT_BASE_URL,
    httpx_client: Optional[httpx.AsyncClient] = None,
    auth_mode: AuthMode = "header",
    timeout: Optional[Union[float, TimeoutConfig]] = None,
    default_headers: Optional[Dict[str, str]] = None,
    proxy_origin: Optional[str] = None,
    cookie: Optional[str] = None,
    normalize_case: bool = True,
    verbose: bool = False,
) -> AsyncHttpClient:
    """
    Create an Infactory client.

    Args:
        api_key: API key sent according to ``auth_mode``.
        base_url: Base URL of the API host.
        httpx_client: Pre-configured httpx.AsyncClient.
        auth_mode: Where the key travels: ``header``, ``query`` or ``cookie``.
        timeout: Request timeout (seconds or TimeoutConfig).
        default_headers: Default headers for all requests.
        proxy_origin: Route requests through a same-origin proxy at this origin.
        cookie: Cookie header value for ``cookie`` auth.
        normalize_case: Convert payload keys between camelCase and snake_case.
        verbose: Print request/response panels to the console.

    Returns:
        AsyncHttpClient instance.

    Example:
        async with create_client(api_key="nf-...") as client:
            projects = await client.get("/v1/projects")
    """
    config = ClientConfig(
        base_url=base_url,
        api_key=api_key,
        auth_mode=auth_mode,
        timeout=timeout,
        headers=default_headers or {},
        proxy_origin=proxy_origin,
        cookie=cookie,
        normalize_case=normalize_case,
        verbose=verbose,
    )
    return AsyncHttpClient(config, httpx_client=httpx_client)


def create_client_from_env(
    settings: Optional[Settings] = None,
    httpx_client: Optional[httpx.AsyncClient] = None,
    **overrides,
) -> AsyncHttpClient:
    """
    Create a client configured from ``NF_API_KEY``, ``NF_BASE_URL`` and
    ``NF_AUTH_MODE``. Keyword overrides take precedence over the environment.
    """
    config = ClientConfig.from_settings(settings, **overrides)
    return AsyncHttpClient(config, httpx_client=httpx_client)

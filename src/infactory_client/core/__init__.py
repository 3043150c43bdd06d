"""
Core request pipeline for infactory_client.
"""
from .base_client import AsyncHttpClient
from .interceptors import client_case_response, provider_case_request
from .request_builder import build_url, expand_path, prepare_request
from .transport_strategy import (
    DirectTransportStrategy,
    ProxyTransportStrategy,
    TransportStrategy,
    select_transport_strategy,
)

__all__ = [
    "AsyncHttpClient",
    "client_case_response",
    "provider_case_request",
    "build_url",
    "expand_path",
    "prepare_request",
    "DirectTransportStrategy",
    "ProxyTransportStrategy",
    "TransportStrategy",
    "select_transport_strategy",
]

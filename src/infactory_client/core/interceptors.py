"""
Built-in request/response interceptors.

Both are idempotent: applying them twice gives the same result as once.
"""
import logging

import httpx

from ..casing import to_client_case, to_provider_case
from ..types import RequestDescriptor

logger = logging.getLogger("infactory_client.interceptors")

# Headers that describe the original encoded body and no longer apply once
# the body is rewritten.
_STALE_BODY_HEADERS = ("content-length", "content-encoding", "transfer-encoding")


def is_json_response(response: httpx.Response) -> bool:
    """Whether the response declares a JSON content type."""
    return "application/json" in response.headers.get("content-type", "")


def provider_case_request(request: RequestDescriptor) -> RequestDescriptor:
    """Convert query params and JSON body keys to provider case."""
    if request.params:
        request.params = to_provider_case(request.params) or {}
    if request.json_body is not None:
        request.json_body = to_provider_case(request.json_body)
    return request


async def client_case_response(
    response: httpx.Response,
    request: RequestDescriptor,
) -> httpx.Response:
    """Rewrite a JSON response body with client-case keys."""
    if not is_json_response(response):
        return response

    await response.aread()
    if not response.content:
        return response

    try:
        data = response.json()
    except ValueError:
        logger.warning(
            f"client_case_response: {request.method} {request.path} declared JSON "
            "but the body did not parse; leaving it untouched"
        )
        return response

    headers = [
        (k, v) for k, v in response.headers.multi_items()
        if k.lower() not in _STALE_BODY_HEADERS
    ]
    return httpx.Response(
        status_code=response.status_code,
        headers=headers,
        json=to_client_case(data),
        request=response.request,
        extensions=response.extensions,
    )

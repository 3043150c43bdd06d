"""
Request builder utilities for infactory_client.
"""
import logging
import re
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import parse_qsl, quote, urlencode

from .. import console
from ..config import QUERY_AUTH_PARAM, ResolvedConfig
from ..errors import ValidationError
from ..types import RequestDescriptor
from .transport_strategy import TransportStrategy

logger = logging.getLogger("infactory_client.request_builder")

_PLACEHOLDER = re.compile(r"\{(\w+)\}")


def expand_path(template: str, **values: Any) -> str:
    """Fill ``{name}`` placeholders in a path template.

    Raises ValidationError before anything is sent when a placeholder has no
    value or an empty one.
    """
    missing = [
        name
        for name in _PLACEHOLDER.findall(template)
        if values.get(name) is None or str(values.get(name)) == ""
    ]
    if missing:
        raise ValidationError(
            f"Missing required argument(s) for {template}: {', '.join(missing)}",
            details={"missing": missing},
        )
    return _PLACEHOLDER.sub(lambda m: quote(str(values[m.group(1)]), safe=""), template)


def _format_query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def merge_query_params(
    path_query: List[Tuple[str, str]],
    params: Optional[Dict[str, Any]] = None,
) -> List[Tuple[str, str]]:
    """Merge the path's own query with call-site params.

    Call-site keys replace path keys; None values are dropped and leave the
    path's own value in place; list values expand to repeated keys.
    """
    params = params or {}
    merged = [(k, v) for k, v in path_query if params.get(k) is None]
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            merged.extend(
                (key, _format_query_value(item)) for item in value if item is not None
            )
        else:
            merged.append((key, _format_query_value(value)))
    return merged


def build_url(
    strategy: TransportStrategy,
    path: str,
    params: Optional[Dict[str, Any]] = None,
) -> str:
    """Build full URL from the routing strategy, path and query params."""
    path_part, _, query_part = path.partition("?")
    path_query = parse_qsl(query_part, keep_blank_values=True) if query_part else []

    url = strategy.join(path_part)
    query = merge_query_params(path_query, params)
    if query:
        url = f"{url}?{urlencode(query)}"
    return url


def apply_auth(
    config: ResolvedConfig,
    headers: Dict[str, str],
    params: Optional[Dict[str, Any]],
) -> Tuple[Dict[str, str], Optional[Dict[str, Any]]]:
    """Place credentials according to the configured auth mode."""
    if config.auth_mode == "header":
        if config.api_key:
            headers["Authorization"] = f"Bearer {config.api_key}"
    elif config.auth_mode == "query":
        if config.api_key:
            params = {**(params or {}), QUERY_AUTH_PARAM: config.api_key}
    elif config.auth_mode == "cookie":
        if config.cookie:
            headers["Cookie"] = config.cookie
    return headers, params


def build_headers(
    config: ResolvedConfig,
    headers: Optional[Dict[str, str]] = None,
    has_json_body: bool = False,
    accept: Optional[str] = None,
) -> Dict[str, str]:
    """Build request headers from defaults and call-site headers."""
    result = dict(config.headers)

    if headers:
        result.update(headers)

    lowered = {k.lower() for k in result}

    if has_json_body and "content-type" not in lowered:
        result["content-type"] = config.content_type

    if accept is not None:
        result = {k: v for k, v in result.items() if k.lower() != "accept"}
        result["accept"] = accept
    elif "accept" not in lowered:
        result["accept"] = "application/json"

    return result


def validate_descriptor(descriptor: RequestDescriptor) -> None:
    """Reject descriptors that could only produce a malformed request."""
    if not isinstance(descriptor.path, str):
        raise ValidationError("Request path is required")
    bodies = [
        name
        for name in ("raw_body", "json_body", "files")
        if getattr(descriptor, name) is not None
    ]
    if len(bodies) > 1:
        raise ValidationError(
            f"Only one request body may be set, got: {', '.join(bodies)}",
            details={"bodies": bodies},
        )


def build_body(
    descriptor: RequestDescriptor,
    serializer: Any,
) -> Dict[str, Any]:
    """Build the httpx keyword arguments that carry the request body."""
    if descriptor.raw_body is not None:
        return {"content": descriptor.raw_body}

    if descriptor.json_body is not None:
        return {"content": serializer.serialize(descriptor.json_body)}

    if descriptor.files is not None:
        body: Dict[str, Any] = {"files": descriptor.files}
        if descriptor.form_fields:
            body["data"] = {
                k: _format_query_value(v)
                for k, v in descriptor.form_fields.items()
                if v is not None
            }
        return body

    return {}


def prepare_request(
    config: ResolvedConfig,
    strategy: TransportStrategy,
    descriptor: RequestDescriptor,
    accept: Optional[str] = None,
) -> Tuple[str, Dict[str, Any]]:
    """Turn a descriptor into the URL and httpx request arguments."""
    validate_descriptor(descriptor)

    headers = build_headers(
        config,
        descriptor.headers,
        has_json_body=descriptor.json_body is not None,
        accept=accept,
    )
    headers, params = apply_auth(config, headers, descriptor.params)
    url = build_url(strategy, descriptor.path, params)

    kwargs: Dict[str, Any] = {
        "method": descriptor.method.upper(),
        "url": url,
        "headers": headers,
    }
    kwargs.update(build_body(descriptor, config.serializer))
    if descriptor.timeout is not None:
        kwargs["timeout"] = descriptor.timeout

    safe_url = console.mask_url(url, QUERY_AUTH_PARAM)
    logger.debug(f"prepare_request: method={kwargs['method']}, url={safe_url}")
    return url, kwargs


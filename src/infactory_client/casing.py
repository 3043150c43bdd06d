"""
Key case conversion between client (camelCase) and provider (snake_case) payloads.
"""
import re
from typing import Any, Mapping

_UPPER = re.compile(r"[A-Z]")
_UNDERSCORE_LOWER = re.compile(r"_([a-z])")

# The provider's document id; maps to ``id`` rather than ``Id``.
PROVIDER_ID_KEY = "_id"
CLIENT_ID_KEY = "id"


def to_snake_case(key: str) -> str:
    """Convert a camelCase key to snake_case.

    Hyphenated keys such as ``Content-Type`` are returned unchanged.
    """
    if "-" in key:
        return key
    return _UPPER.sub(lambda m: "_" + m.group(0).lower(), key)


def to_camel_case(key: str) -> str:
    """Convert a snake_case key to camelCase."""
    return _UNDERSCORE_LOWER.sub(lambda m: m.group(1).upper(), key)


def _client_key(key: Any) -> Any:
    if not isinstance(key, str):
        return key
    if key == PROVIDER_ID_KEY:
        return CLIENT_ID_KEY
    return to_camel_case(key)


def _provider_key(key: Any) -> Any:
    if not isinstance(key, str):
        return key
    return to_snake_case(key)


def to_provider_case(value: Any) -> Any:
    """Recursively rewrite mapping keys to provider (snake_case) form."""
    if isinstance(value, Mapping):
        return {_provider_key(k): to_provider_case(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_provider_case(item) for item in value]
    return value


def to_client_case(value: Any) -> Any:
    """Recursively rewrite mapping keys to client (camelCase) form."""
    if isinstance(value, Mapping):
        return {_client_key(k): to_client_case(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_client_case(item) for item in value]
    return value

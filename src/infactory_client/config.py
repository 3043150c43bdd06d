"""
Configuration for infactory_client.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union
from urllib.parse import urlparse
import json
import logging

from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import AuthenticationError, ValidationError
from .types import AuthMode, Serializer
from .version import __version__

logger = logging.getLogger("infactory_client.config")

SDK_VERSION_HEADER = "x-infactory-sdk-version"
DEFAULT_BASE_URL = "https://api.infactory.ai"
DEFAULT_PROXY_BASE_PATH = "/api/infactory"
QUERY_AUTH_PARAM = "nf_api_key"

VALID_AUTH_MODES = ("header", "query", "cookie")


def _mask_sensitive(value: Optional[str], visible_chars: int = 10) -> str:
    """Mask sensitive value for safe logging."""
    if value is None:
        return "<None>"
    if len(value) <= visible_chars:
        return "*" * len(value)
    return value[:visible_chars] + "*" * (len(value) - visible_chars)


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    NF_API_KEY: str = ""
    NF_BASE_URL: str = DEFAULT_BASE_URL
    NF_AUTH_MODE: str = "header"

    model_config = SettingsConfigDict(case_sensitive=True, env_file=None)


@dataclass
class TimeoutConfig:
    """Timeout configuration in seconds."""

    connect: float = 5.0
    read: float = 60.0
    write: float = 10.0


@dataclass
class ClientConfig:
    """Client configuration.

    ``proxy_origin`` switches routing to a same-origin proxy: requests go to
    ``<proxy_origin><proxy_base_path><path>`` instead of ``<base_url><path>``.
    ``cookie`` is required when ``auth_mode`` is ``"cookie"``.
    ``serializer`` replaces the JSON encoding of request bodies and the
    decoding of JSON response bodies.
    """

    base_url: str = DEFAULT_BASE_URL
    api_key: Optional[str] = None
    auth_mode: AuthMode = "header"
    timeout: Union[TimeoutConfig, float, None] = None
    headers: Dict[str, str] = field(default_factory=dict)
    content_type: str = "application/json"
    proxy_origin: Optional[str] = None
    proxy_base_path: str = DEFAULT_PROXY_BASE_PATH
    cookie: Optional[str] = None
    normalize_case: bool = True
    verbose: bool = False
    serializer: Optional[Serializer] = None

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **overrides: Any) -> "ClientConfig":
        """Build a config from environment settings; keyword overrides win."""
        settings = settings if settings is not None else Settings()
        values: Dict[str, Any] = {
            "base_url": settings.NF_BASE_URL,
            "api_key": settings.NF_API_KEY or None,
            "auth_mode": settings.NF_AUTH_MODE,
        }
        values.update(overrides)
        return cls(**values)

    def __repr__(self) -> str:
        """Safe repr that masks the API key."""
        return (
            f"ClientConfig(base_url={self.base_url!r}, "
            f"api_key={_mask_sensitive(self.api_key)!r}, "
            f"auth_mode={self.auth_mode!r}, "
            f"proxy_origin={self.proxy_origin!r}, "
            f"normalize_case={self.normalize_case!r})"
        )


# Default values
DEFAULT_TIMEOUT = TimeoutConfig()
DEFAULT_CONTENT_TYPE = "application/json"


class DefaultSerializer:
    """Default JSON serializer."""

    def serialize(self, data: Any) -> str:
        """Serialize data to JSON string."""
        return json.dumps(data)

    def deserialize(self, text: str) -> Any:
        """Deserialize JSON string to data."""
        return json.loads(text)


default_serializer = DefaultSerializer()


def normalize_timeout(timeout: Union[TimeoutConfig, float, None]) -> TimeoutConfig:
    """Normalize timeout config."""
    if timeout is None:
        return DEFAULT_TIMEOUT
    if isinstance(timeout, (int, float)):
        return TimeoutConfig(connect=timeout, read=timeout, write=timeout)
    return timeout


def _validate_url(value: str, name: str) -> None:
    parsed = urlparse(value)
    if not parsed.scheme or not parsed.netloc:
        raise ValidationError(f"Invalid {name}: {value}")


def validate_config(config: ClientConfig) -> None:
    """Validate client configuration."""
    if not config.base_url:
        raise ValidationError("base_url is required")
    _validate_url(config.base_url, "base_url")

    if config.proxy_origin:
        _validate_url(config.proxy_origin, "proxy_origin")

    if config.auth_mode not in VALID_AUTH_MODES:
        raise ValidationError(
            f"Invalid auth_mode: {config.auth_mode}. Must be one of: {list(VALID_AUTH_MODES)}"
        )

    if config.auth_mode == "cookie" and not config.cookie:
        raise AuthenticationError(
            "Cookie-based authentication requires a cookie header value"
        )

    if config.api_key and config.api_key.startswith(("http://", "https://")):
        # Common misconfiguration: base URL passed as the key
        logger.error(
            "ClientConfig: api_key appears to be a URL (starts with http). "
            f"Expected an API key, got: {config.api_key[:30]}..."
        )


@dataclass(frozen=True)
class ResolvedConfig:
    """Resolved client configuration with defaults applied. Read-only."""

    base_url: str
    api_key: Optional[str]
    auth_mode: AuthMode
    timeout: TimeoutConfig
    headers: Dict[str, str]
    content_type: str
    proxy_origin: Optional[str]
    proxy_base_path: str
    cookie: Optional[str]
    normalize_case: bool
    verbose: bool
    serializer: Serializer


def resolve_config(config: ClientConfig) -> ResolvedConfig:
    """Resolve client configuration with defaults."""
    validate_config(config)

    headers = dict(config.headers)
    headers[SDK_VERSION_HEADER] = __version__

    return ResolvedConfig(
        base_url=config.base_url.rstrip("/"),
        api_key=config.api_key,
        auth_mode=config.auth_mode,
        timeout=normalize_timeout(config.timeout),
        headers=headers,
        content_type=config.content_type or DEFAULT_CONTENT_TYPE,
        proxy_origin=config.proxy_origin.rstrip("/") if config.proxy_origin else None,
        proxy_base_path=config.proxy_base_path,
        cookie=config.cookie,
        normalize_case=config.normalize_case,
        verbose=config.verbose,
        serializer=config.serializer or default_serializer,
    )

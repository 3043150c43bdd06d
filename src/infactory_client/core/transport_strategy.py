"""
Routing strategies for infactory_client.

The strategy is chosen once when the client is constructed. A direct strategy
talks to the remote API host; a proxy strategy routes through a same-origin
proxy path (the deployment used by browser-facing apps).
"""
import logging
from abc import ABC, abstractmethod

from ..config import ResolvedConfig

logger = logging.getLogger("infactory_client.transport_strategy")


class TransportStrategy(ABC):
    """Resolves the URL prefix every request path is appended to."""

    @property
    @abstractmethod
    def api_root(self) -> str:
        """Absolute URL prefix without a trailing slash."""
        ...

    def join(self, path: str) -> str:
        """Join the API root with a request path."""
        if not path:
            return self.api_root
        if not path.startswith("/"):
            path = "/" + path
        return f"{self.api_root}{path}"


class DirectTransportStrategy(TransportStrategy):
    """Send requests straight to the configured API host."""

    def __init__(self, base_url: str):
        self._base_url = base_url.rstrip("/")

    @property
    def api_root(self) -> str:
        return self._base_url


class ProxyTransportStrategy(TransportStrategy):
    """Send requests to a same-origin proxy that forwards to the API host."""

    def __init__(self, origin: str, base_path: str):
        self._origin = origin.rstrip("/")
        self._base_path = "/" + base_path.strip("/") if base_path.strip("/") else ""

    @property
    def api_root(self) -> str:
        return f"{self._origin}{self._base_path}"


def select_transport_strategy(config: ResolvedConfig) -> TransportStrategy:
    """Pick the routing strategy for a resolved config."""
    if config.proxy_origin:
        logger.debug(
            f"select_transport_strategy: proxy origin={config.proxy_origin}, "
            f"base_path={config.proxy_base_path}"
        )
        return ProxyTransportStrategy(config.proxy_origin, config.proxy_base_path)
    logger.debug(f"select_transport_strategy: direct base_url={config.base_url}")
    return DirectTransportStrategy(config.base_url)

"""
Type definitions for infactory_client.
"""
from dataclasses import dataclass, field, replace
from typing import (
    TYPE_CHECKING,
    Any,
    Awaitable,
    Callable,
    Dict,
    Generic,
    Literal,
    Optional,
    Protocol,
    TypeVar,
    Union,
)

import httpx

if TYPE_CHECKING:
    from .errors import InfactoryAPIError


T = TypeVar("T")

# Where the API key travels:
# - header: Authorization: Bearer <key>
# - query: nf_api_key=<key> query parameter
# - cookie: Cookie header supplied by the host (same-origin proxy deployments)
AuthMode = Literal["header", "query", "cookie"]

# HTTP methods
HttpMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]

# Chat status kinds
ChatStatusKind = Literal["thinking", "done", "stopped", "error"]


@dataclass
class RequestDescriptor:
    """Declarative description of one API call.

    At most one of ``raw_body``, ``json_body`` and ``files`` is set.
    ``json_body`` is converted to provider case before serialization.
    """

    path: str
    method: HttpMethod = "GET"
    params: Optional[Dict[str, Any]] = None
    headers: Optional[Dict[str, str]] = None
    raw_body: Optional[Union[str, bytes]] = None
    json_body: Optional[Any] = None
    files: Optional[Dict[str, Any]] = None
    form_fields: Optional[Dict[str, Any]] = None
    timeout: Optional[float] = None

    def copy(self, **changes: Any) -> "RequestDescriptor":
        """Shallow copy with the mutable mappings duplicated."""
        base = replace(
            self,
            params=dict(self.params) if self.params is not None else None,
            headers=dict(self.headers) if self.headers is not None else None,
        )
        return replace(base, **changes) if changes else base


@dataclass
class ApiResponse(Generic[T]):
    """Envelope returned by every non-streaming call: data or error, never both."""

    data: Optional[T] = None
    error: Optional["InfactoryAPIError"] = None

    def __post_init__(self):
        if self.data is not None and self.error is not None:
            raise ValueError("ApiResponse cannot carry both data and error")

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Optional[T]:
        """Return data or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.data


@dataclass
class SSEEvent:
    """Server-Sent Event frame after decoding.

    ``data`` keeps the joined raw data lines; ``payload`` holds the parsed
    JSON value, or None when the data is empty or not valid JSON.
    """

    data: str
    event: str = "message"
    id: Optional[str] = None
    retry: Optional[int] = None
    payload: Optional[Any] = None


@dataclass
class ChatStatus:
    """Progress update emitted while a chat response streams in."""

    kind: ChatStatusKind
    content_type: str
    content: str
    data: Optional[Any] = None


@dataclass
class DownloadedFile:
    """Result of a file download."""

    filename: str
    content: bytes
    content_type: Optional[str] = None
    size: int = field(init=False)

    def __post_init__(self):
        self.size = len(self.content)


RequestInterceptor = Callable[
    [RequestDescriptor], Union[RequestDescriptor, Awaitable[RequestDescriptor]]
]
ResponseInterceptor = Callable[
    [httpx.Response, RequestDescriptor],
    Union[httpx.Response, Awaitable[httpx.Response]],
]

SSEEventSink = Callable[[SSEEvent], Union[None, Awaitable[None]]]
ChatStatusCallback = Callable[[ChatStatus], Union[None, Awaitable[None]]]


class Serializer(Protocol):
    """Serializer protocol for custom JSON handling."""

    def serialize(self, data: Any) -> str:
        """Serialize data to string."""
        ...

    def deserialize(self, text: str) -> Any:
        """Deserialize string to data."""
        ...

"""
Async Python client for the Infactory API.

Provides the request pipeline (interceptors, case normalization, error
classification), SSE streaming with chat progress statuses, and polling for
asynchronous jobs.
"""
from .version import __version__
from .types import (
    ApiResponse,
    AuthMode,
    ChatStatus,
    DownloadedFile,
    HttpMethod,
    RequestDescriptor,
    SSEEvent,
    Serializer,
)
from .errors import (
    AuthenticationError,
    ConflictError,
    InfactoryAPIError,
    JobFailedError,
    NetworkError,
    NotFoundError,
    PermissionDeniedError,
    PollingCancelledError,
    PollingTimeoutError,
    RateLimitError,
    ServerError,
    ServiceUnavailableError,
    ValidationError,
    error_from_status,
)
from .casing import to_camel_case, to_client_case, to_provider_case, to_snake_case
from .config import (
    SDK_VERSION_HEADER,
    ClientConfig,
    DefaultSerializer,
    ResolvedConfig,
    Settings,
    TimeoutConfig,
    resolve_config,
)
from .core.base_client import AsyncHttpClient
from .core.request_builder import expand_path
from .core.transport_strategy import (
    DirectTransportStrategy,
    ProxyTransportStrategy,
    TransportStrategy,
)
from .streaming.sse_reader import (
    dispatch_sse_stream,
    parse_sse_data,
    parse_sse_frame,
    parse_sse_stream,
)
from .streaming.chat_status import ChatStatusAccumulator, process_chat_response_stream
from .streaming.event_stream import process_event_stream
from .polling import PollingOptions, PollState, poll, poll_with_status
from .jobs import await_job, get_job_status, submit_job, wait_for_job_completion
from .factory import create_client, create_client_from_env

__all__ = [
    "__version__",
    # Types
    "ApiResponse",
    "AuthMode",
    "ChatStatus",
    "DownloadedFile",
    "HttpMethod",
    "RequestDescriptor",
    "SSEEvent",
    "Serializer",
    # Errors
    "AuthenticationError",
    "ConflictError",
    "InfactoryAPIError",
    "JobFailedError",
    "NetworkError",
    "NotFoundError",
    "PermissionDeniedError",
    "PollingCancelledError",
    "PollingTimeoutError",
    "RateLimitError",
    "ServerError",
    "ServiceUnavailableError",
    "ValidationError",
    "error_from_status",
    # Casing
    "to_camel_case",
    "to_client_case",
    "to_provider_case",
    "to_snake_case",
    # Config
    "SDK_VERSION_HEADER",
    "ClientConfig",
    "DefaultSerializer",
    "ResolvedConfig",
    "Settings",
    "TimeoutConfig",
    "resolve_config",
    # Client
    "AsyncHttpClient",
    "expand_path",
    "DirectTransportStrategy",
    "ProxyTransportStrategy",
    "TransportStrategy",
    # Streaming
    "dispatch_sse_stream",
    "parse_sse_data",
    "parse_sse_frame",
    "parse_sse_stream",
    "ChatStatusAccumulator",
    "process_chat_response_stream",
    "process_event_stream",
    # Polling
    "PollingOptions",
    "PollState",
    "poll",
    "poll_with_status",
    # Jobs
    "await_job",
    "get_job_status",
    "submit_job",
    "wait_for_job_completion",
    # Factory
    "create_client",
    "create_client_from_env",
]

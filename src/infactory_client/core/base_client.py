"""
Async HTTP client for the Infactory API using httpx.
"""
import asyncio
import inspect
import logging
import re
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, BinaryIO, Dict, List, Optional, Union

import httpx

from .. import console
from ..config import QUERY_AUTH_PARAM, ClientConfig, ResolvedConfig, resolve_config
from ..errors import InfactoryAPIError, NetworkError, error_from_status
from ..types import (
    ApiResponse,
    DownloadedFile,
    RequestDescriptor,
    RequestInterceptor,
    ResponseInterceptor,
)
from .interceptors import client_case_response, is_json_response, provider_case_request
from .request_builder import prepare_request
from .transport_strategy import TransportStrategy, select_transport_strategy

logger = logging.getLogger("infactory_client.base_client")

_DISPOSITION_FILENAME = re.compile(r'filename="?([^";]+)"?')


def _filename_from_disposition(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    match = _DISPOSITION_FILENAME.search(value)
    return match.group(1).strip() if match else None


def _error_from_response(response: httpx.Response, method: str) -> InfactoryAPIError:
    """Build the typed error for a non-2xx response whose body has been read."""
    status = response.status_code
    body: Dict[str, Any] = {}

    if is_json_response(response):
        try:
            parsed = response.json()
        except ValueError:
            message = f"API request failed with status: {status}"
        else:
            if isinstance(parsed, dict):
                body = parsed
            message = body.get("message") or body.get("detail") or (
                f"API request failed with status: {status}"
            )
    else:
        message = f"API {method} request failed with status {status}: {response.text}"

    return error_from_status(
        status,
        body.get("code") or "api_error",
        message if isinstance(message, str) else str(message),
        response.headers.get("x-request-id"),
        body.get("details") or body or None,
    )


async def _read_until_cancelled(
    chunks: AsyncIterator[bytes],
    cancel_event: asyncio.Event,
) -> AsyncIterator[bytes]:
    """Yield chunks until the stream ends or ``cancel_event`` is set."""
    iterator = chunks.__aiter__()
    while not cancel_event.is_set():
        next_chunk = asyncio.ensure_future(iterator.__anext__())
        cancelled = asyncio.ensure_future(cancel_event.wait())
        try:
            done, _ = await asyncio.wait(
                {next_chunk, cancelled}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            cancelled.cancel()
            if not next_chunk.done():
                next_chunk.cancel()
        if next_chunk not in done:
            logger.debug("_read_until_cancelled: stream cancelled by caller")
            return
        try:
            chunk = next_chunk.result()
        except StopAsyncIteration:
            return
        yield chunk


class AsyncHttpClient:
    """Asynchronous client for the Infactory API.

    Every non-streaming call returns an :class:`ApiResponse`. Client-facing
    failures (4xx) and network faults come back in ``ApiResponse.error``;
    server faults (5xx) are raised.
    """

    def __init__(
        self,
        config: ClientConfig,
        httpx_client: Optional[httpx.AsyncClient] = None,
    ):
        self._config = resolve_config(config)
        self._strategy = select_transport_strategy(self._config)
        self._owns_client = httpx_client is None
        if httpx_client is not None:
            self._client = httpx_client
        else:
            self._client = httpx.AsyncClient(
                follow_redirects=True,
                timeout=httpx.Timeout(
                    connect=self._config.timeout.connect,
                    read=self._config.timeout.read,
                    write=self._config.timeout.write,
                    pool=self._config.timeout.connect,
                ),
            )
        self._request_interceptors: List[RequestInterceptor] = []
        self._response_interceptors: List[ResponseInterceptor] = []
        if self._config.normalize_case:
            self.add_request_interceptor(provider_case_request)
            self.add_response_interceptor(client_case_response)
        self._closed = False

        logger.debug(
            f"AsyncHttpClient: api_root={self._strategy.api_root}, "
            f"auth_mode={self._config.auth_mode}, normalize_case={self._config.normalize_case}"
        )

    @property
    def config(self) -> ResolvedConfig:
        return self._config

    @property
    def strategy(self) -> TransportStrategy:
        return self._strategy

    @property
    def closed(self) -> bool:
        return self._closed

    def add_request_interceptor(self, interceptor: RequestInterceptor) -> "AsyncHttpClient":
        """Append a request interceptor. Interceptors run in registration order."""
        self._request_interceptors.append(interceptor)
        return self

    def add_response_interceptor(self, interceptor: ResponseInterceptor) -> "AsyncHttpClient":
        """Append a response interceptor. Interceptors run in registration order."""
        self._response_interceptors.append(interceptor)
        return self

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("Client has been closed")

    async def _apply_request_interceptors(self, descriptor: RequestDescriptor) -> RequestDescriptor:
        request = descriptor.copy()
        for interceptor in self._request_interceptors:
            result = interceptor(request)
            if inspect.isawaitable(result):
                result = await result
            request = result
        return request

    async def _apply_response_interceptors(
        self,
        response: httpx.Response,
        request: RequestDescriptor,
    ) -> httpx.Response:
        for interceptor in self._response_interceptors:
            result = interceptor(response, request)
            if inspect.isawaitable(result):
                result = await result
            response = result
        return response

    async def _send(self, request: RequestDescriptor, accept: Optional[str] = None) -> httpx.Response:
        """Send a prepared request. Transport faults are raised as NetworkError."""
        url, kwargs = prepare_request(self._config, self._strategy, request, accept=accept)
        safe_url = console.mask_url(url, QUERY_AUTH_PARAM)

        if self._config.verbose:
            console.print_request(kwargs["method"], safe_url, kwargs["headers"], request.json_body)

        try:
            response = await self._client.request(**kwargs)
        except httpx.TransportError as exc:
            logger.error(f"AsyncHttpClient._send: {kwargs['method']} {safe_url} failed: {exc!r}")
            raise NetworkError(
                str(exc) or type(exc).__name__,
                details={"method": kwargs["method"], "url": safe_url},
            ) from exc

        logger.debug(
            f"AsyncHttpClient._send: {kwargs['method']} {safe_url} -> {response.status_code}"
        )
        return response

    def _failure(self, response: httpx.Response, method: str) -> ApiResponse[Any]:
        error = _error_from_response(response, method)
        if response.status_code >= 500:
            logger.debug(f"AsyncHttpClient: raising {error!r}")
            raise error
        return ApiResponse(error=error)

    def _process_response(self, response: httpx.Response, method: str) -> ApiResponse[Any]:
        if not response.is_success:
            return self._failure(response, method)

        if not is_json_response(response):
            return ApiResponse(data=response.text)
        if not response.content:
            return ApiResponse(data=None)
        try:
            return ApiResponse(data=self._config.serializer.deserialize(response.text))
        except ValueError:
            logger.warning(
                f"AsyncHttpClient: {method} response declared JSON but did not parse; "
                "returning text"
            )
            return ApiResponse(data=response.text)

    async def execute(self, descriptor: RequestDescriptor) -> ApiResponse[Any]:
        """Run one request through the interceptor chain and classify the result."""
        self._ensure_open()
        request = await self._apply_request_interceptors(descriptor)

        try:
            response = await self._send(request)
        except NetworkError as err:
            return ApiResponse(error=err)

        response = await self._apply_response_interceptors(response, request)

        if self._config.verbose:
            console.print_response(
                response.status_code,
                response.reason_phrase or "",
                console.mask_url(str(response.request.url), QUERY_AUTH_PARAM),
                response.headers,
                response.text,
            )

        return self._process_response(response, request.method)

    async def request(self, **kwargs: Any) -> ApiResponse[Any]:
        """Build a RequestDescriptor from keyword arguments and execute it."""
        return await self.execute(RequestDescriptor(**kwargs))

    async def get(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> ApiResponse[Any]:
        """GET request."""
        return await self.execute(
            RequestDescriptor(path, "GET", params=params, headers=headers, timeout=timeout)
        )

    async def post(
        self,
        path: str,
        body: Any = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> ApiResponse[Any]:
        """POST request with a JSON body."""
        return await self.execute(
            RequestDescriptor(
                path, "POST", params=params, headers=headers, json_body=body, timeout=timeout
            )
        )

    async def put(
        self,
        path: str,
        body: Any = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> ApiResponse[Any]:
        """PUT request with a JSON body."""
        return await self.execute(
            RequestDescriptor(
                path, "PUT", params=params, headers=headers, json_body=body, timeout=timeout
            )
        )

    async def patch(
        self,
        path: str,
        body: Any = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> ApiResponse[Any]:
        """PATCH request with a JSON body."""
        return await self.execute(
            RequestDescriptor(
                path, "PATCH", params=params, headers=headers, json_body=body, timeout=timeout
            )
        )

    async def delete(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> ApiResponse[Any]:
        """DELETE request."""
        return await self.execute(
            RequestDescriptor(path, "DELETE", params=params, headers=headers, timeout=timeout)
        )

    async def upload_file(
        self,
        path: str,
        file: Union[bytes, BinaryIO],
        form_fields: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        filename: Optional[str] = None,
        field_name: str = "file",
    ) -> ApiResponse[Any]:
        """Upload in-memory bytes or a file-like object as multipart form data.

        Form fields whose value is None are not sent.
        """
        if filename is None:
            filename = getattr(file, "name", None) or "upload"
            filename = re.split(r"[\\/]", str(filename))[-1]

        return await self.execute(
            RequestDescriptor(
                path,
                "POST",
                params=params,
                files={field_name: (filename, file)},
                form_fields=form_fields,
            )
        )

    async def download_file(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        default_filename: str = "download",
    ) -> ApiResponse[DownloadedFile]:
        """Download a file.

        The filename comes from the ``Content-Disposition`` header when the
        server sends one. Response interceptors are not applied to the
        downloaded bytes.
        """
        self._ensure_open()
        request = await self._apply_request_interceptors(
            RequestDescriptor(path, "GET", params=params)
        )

        try:
            response = await self._send(request, accept="*/*")
        except NetworkError as err:
            return ApiResponse(error=err)

        if not response.is_success:
            return self._failure(response, request.method)

        filename = (
            _filename_from_disposition(response.headers.get("content-disposition"))
            or default_filename
        )
        logger.debug(f"AsyncHttpClient.download_file: {filename} ({len(response.content)} bytes)")
        return ApiResponse(
            data=DownloadedFile(
                filename=filename,
                content=response.content,
                content_type=response.headers.get("content-type"),
            )
        )

    @asynccontextmanager
    async def open_stream(
        self,
        descriptor: RequestDescriptor,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> AsyncIterator[AsyncIterator[bytes]]:
        """Open a streamed response and yield its live byte iterator.

        Usage::

            async with client.open_stream(RequestDescriptor("/v1/chat", "POST", json_body=body)) as chunks:
                async for event in parse_sse_stream(chunks):
                    ...

        Unlike :meth:`execute`, every failure is raised: any non-2xx status
        raises the typed API error and a transport fault raises NetworkError.
        Setting ``cancel_event`` ends iteration promptly.
        """
        self._ensure_open()
        request = await self._apply_request_interceptors(descriptor)
        url, kwargs = prepare_request(
            self._config, self._strategy, request, accept="text/event-stream"
        )
        safe_url = console.mask_url(url, QUERY_AUTH_PARAM)

        if self._config.verbose:
            console.print_request(kwargs["method"], safe_url, kwargs["headers"], request.json_body)

        http_request = self._client.build_request(**kwargs)
        try:
            response = await self._client.send(http_request, stream=True)
        except httpx.TransportError as exc:
            logger.error(f"AsyncHttpClient.open_stream: {kwargs['method']} {safe_url} failed: {exc!r}")
            raise NetworkError(
                str(exc) or type(exc).__name__,
                details={"method": kwargs["method"], "url": safe_url},
            ) from exc

        try:
            if not response.is_success:
                await response.aread()
                raise _error_from_response(response, request.method)

            logger.debug(f"AsyncHttpClient.open_stream: {safe_url} opened ({response.status_code})")
            chunks = response.aiter_bytes()
            if cancel_event is not None:
                chunks = _read_until_cancelled(chunks, cancel_event)
            yield chunks
        finally:
            await response.aclose()

    async def close(self) -> None:
        """Close the client. An injected httpx client is left open."""
        self._closed = True
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "AsyncHttpClient":
        """Enter async context manager."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context manager."""
        await self.close()

"""
Generic consumer for event streams that end with a ``complete`` event.
"""
import inspect
import logging
from typing import Any, AsyncIterable, Callable, Optional, Union

from ..errors import InfactoryAPIError
from ..types import ApiResponse, SSEEvent
from .sse_reader import parse_sse_stream

logger = logging.getLogger("infactory_client.event_stream")

COMPLETE_EVENT = "complete"
ERROR_EVENT = "error"


async def _call(callback: Optional[Callable[..., Any]], *args: Any) -> None:
    if callback is None:
        return
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


def error_from_event(event: SSEEvent) -> InfactoryAPIError:
    """Build the error carried by an ``error`` event."""
    body = event.payload if isinstance(event.payload, dict) else {}
    return InfactoryAPIError(
        body.get("status") or 500,
        body.get("code") or "stream_error",
        body.get("message") or event.data or "Error in event stream",
        body.get("requestId") or body.get("request_id"),
        body.get("details"),
    )


async def process_event_stream(
    stream: Union[AsyncIterable[bytes], ApiResponse[Any]],
    on_event: Optional[Callable[[SSEEvent], Any]] = None,
    on_complete: Optional[Callable[[Any], Any]] = None,
    on_error: Optional[Callable[[InfactoryAPIError], Any]] = None,
) -> ApiResponse[Any]:
    """
    Consume an SSE stream, reporting events as they arrive.

    Callbacks may be plain functions or coroutine functions. ``error`` events
    are reported through ``on_error`` and do not stop the stream.

    Args:
        stream: Byte stream from ``AsyncHttpClient.open_stream``. An
            ApiResponse is returned unchanged, so the result of a call that
            failed before streaming can be passed straight through.
        on_event: Called with every event.
        on_complete: Called with the payload of each ``complete`` event.
        on_error: Called with the error of each ``error`` event, and with the
            processing error if reading the stream fails.

    Returns:
        ApiResponse with the last ``complete`` payload (``{}`` if none), or
        an ``event_stream_processing_error`` envelope if reading failed.
    """
    if isinstance(stream, ApiResponse):
        return stream

    final_result: Any = None
    try:
        async for event in parse_sse_stream(stream):
            await _call(on_event, event)

            if event.event == COMPLETE_EVENT:
                final_result = event.payload
                await _call(on_complete, event.payload)
            elif event.event == ERROR_EVENT:
                await _call(on_error, error_from_event(event))
    except Exception as exc:
        logger.exception("process_event_stream: error processing event stream")
        error = InfactoryAPIError(
            500,
            "event_stream_processing_error",
            str(exc) or "Error processing event stream",
            None,
            {"original_error": repr(exc)},
        )
        await _call(on_error, error)
        return ApiResponse(error=error)

    return ApiResponse(data=final_result if final_result is not None else {})

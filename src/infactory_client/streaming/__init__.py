"""
Streaming helpers: SSE decoding, chat status and event-stream consumers.
"""
from .chat_status import ChatStatusAccumulator, process_chat_response_stream
from .event_stream import process_event_stream
from .sse_reader import dispatch_sse_stream, parse_sse_data, parse_sse_frame, parse_sse_stream

__all__ = [
    "ChatStatusAccumulator",
    "process_chat_response_stream",
    "process_event_stream",
    "dispatch_sse_stream",
    "parse_sse_data",
    "parse_sse_frame",
    "parse_sse_stream",
]

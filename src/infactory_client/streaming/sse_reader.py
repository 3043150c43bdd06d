"""
Server-Sent Events (SSE) stream parser.
"""
import codecs
import inspect
import json
import logging
from typing import Any, AsyncGenerator, AsyncIterable, List, Optional

from ..types import SSEEvent, SSEEventSink

logger = logging.getLogger("infactory_client.sse_reader")

DEFAULT_EVENT = "message"
DONE_MARKER = "[DONE]"


class _FrameBuilder:
    """Collects the field lines of one frame until a blank line ends it."""

    def __init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        self.event_type: Optional[str] = None
        self.event_id: Optional[str] = None
        self.retry: Optional[int] = None
        self.data_lines: List[str] = []

    def feed_line(self, line: str) -> None:
        if not line or line.startswith(":"):
            # Comment line, ignore
            return

        field, sep, value = line.partition(":")
        if not sep:
            # Field with no value
            value = ""
        elif value.startswith(" "):
            value = value[1:]

        if field == "event":
            self.event_type = value
        elif field == "data":
            self.data_lines.append(value)
        elif field == "id":
            self.event_id = value
        elif field == "retry":
            try:
                self.retry = int(value)
            except ValueError:
                logger.debug(f"parse_sse_stream: ignoring non-numeric retry {value!r}")

    def build(self) -> Optional[SSEEvent]:
        """Finish the current frame; None when it carried no data and no event."""
        if not self.data_lines and self.event_type is None:
            self.reset()
            return None

        event = SSEEvent(
            data="\n".join(self.data_lines),
            event=self.event_type or DEFAULT_EVENT,
            id=self.event_id,
            retry=self.retry,
        )
        event.payload = parse_sse_data(event)
        self.reset()
        return event


async def parse_sse_stream(
    body: AsyncIterable[bytes],
) -> AsyncGenerator[SSEEvent, None]:
    """
    Parse SSE stream from an async iterable body.

    Multi-byte characters split across chunks are reassembled. A frame whose
    data is not valid JSON is still yielded, with ``payload`` set to None.

    Args:
        body: Async iterable of bytes (httpx response stream).

    Yields:
        SSEEvent objects, in stream order.
    """
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    frame = _FrameBuilder()
    buffer = ""

    async for chunk in body:
        buffer += decoder.decode(chunk)

        # Keep the trailing partial line in the buffer
        *lines, buffer = buffer.split("\n")
        for line in lines:
            line = line.rstrip("\r")
            if line:
                frame.feed_line(line)
                continue
            event = frame.build()
            if event is not None:
                yield event

    # Handle any remaining data
    buffer += decoder.decode(b"", final=True)
    for line in buffer.split("\n"):
        frame.feed_line(line.rstrip("\r"))
    event = frame.build()
    if event is not None:
        yield event


async def dispatch_sse_stream(body: AsyncIterable[bytes], sink: SSEEventSink) -> int:
    """Forward every decoded event to ``sink`` in order.

    ``sink`` may be a plain function or a coroutine function.

    Returns:
        Number of events dispatched.
    """
    count = 0
    async for event in parse_sse_stream(body):
        result = sink(event)
        if inspect.isawaitable(result):
            await result
        count += 1
    return count


def parse_sse_frame(text: str) -> Optional[SSEEvent]:
    """
    Parse a single SSE frame from text.

    Args:
        text: Raw SSE frame text, without the terminating blank line.

    Returns:
        Parsed SSEEvent or None if the frame is empty.
    """
    frame = _FrameBuilder()
    for line in text.split("\n"):
        frame.feed_line(line.rstrip("\r"))
    return frame.build()


def parse_sse_data(event: SSEEvent) -> Optional[Any]:
    """
    Parse SSE data field as JSON.

    Args:
        event: SSE event.

    Returns:
        Parsed JSON data, or None if the data is empty, the ``[DONE]``
        marker, or not valid JSON.
    """
    if not event.data or event.data.strip() == DONE_MARKER:
        return None

    try:
        return json.loads(event.data)
    except ValueError:
        logger.warning(
            f"parse_sse_data: event {event.event!r} carried non-JSON data: {event.data[:200]!r}"
        )
        return None

"""
Turns a chat SSE stream into progress statuses for a UI.
"""
import inspect
import logging
from typing import Any, AsyncIterable, Optional

from ..types import ChatStatus, ChatStatusCallback, SSEEvent
from .sse_reader import parse_sse_stream

logger = logging.getLogger("infactory_client.chat_status")

# Event types ending in one of these carry an incremental piece of the answer
CONTENT_DELTA_SUFFIXES = ("LLMContent", "delta")

MESSAGES_EVENT = "messages"
TOOL_CALL_EVENT = "LLMToolCall"
FUNCTION_CALL_TYPE = "function-call"
TEXT_EVENT = "text"
TEXT_STATUS = "Processing data"


def _tool_endpoint(payload: Any) -> str:
    name = payload.get("name") if isinstance(payload, dict) else None
    if not name:
        return "unknown"
    name = str(name)
    return name if name.startswith("/") else "/" + name


class ChatStatusAccumulator:
    """Accumulates streamed answer text and reports a status per event.

    ``content`` only ever grows while one stream is consumed; each status
    carries the whole text so far. ``data`` on a status is the payload of
    that event only.

    Args:
        set_status: Called with every :class:`ChatStatus`; may be a coroutine
            function.
    """

    def __init__(self, set_status: ChatStatusCallback):
        self._set_status = set_status
        self._content = ""
        self.events_seen = 0

    @property
    def content(self) -> str:
        return self._content

    def _status_for(self, event: SSEEvent) -> Optional[ChatStatus]:
        event_type = event.event
        payload = event.payload

        if event_type.endswith(CONTENT_DELTA_SUFFIXES):
            if isinstance(payload, dict) and payload.get("content"):
                self._content += str(payload["content"])
            return ChatStatus("thinking", event_type, self._content, None)

        if event_type == MESSAGES_EVENT:
            return ChatStatus("thinking", event_type, self._content, payload)

        if event_type == TOOL_CALL_EVENT or (
            isinstance(payload, dict) and payload.get("type") == FUNCTION_CALL_TYPE
        ):
            return ChatStatus(
                "thinking", TOOL_CALL_EVENT, f"Calling `{_tool_endpoint(payload)}`", None
            )

        if event_type == TEXT_EVENT:
            return ChatStatus("thinking", event_type, TEXT_STATUS, None)

        logger.warning(f"ChatStatusAccumulator: unrecognized event {event_type!r}: {event.data[:200]!r}")
        return None

    async def feed(self, event: SSEEvent) -> Optional[ChatStatus]:
        """Process one event; returns the status emitted, if any."""
        self.events_seen += 1
        status = self._status_for(event)
        if status is None:
            return None

        result = self._set_status(status)
        if inspect.isawaitable(result):
            await result
        return status

    async def consume(self, stream: AsyncIterable[bytes]) -> str:
        """Feed every event of ``stream`` until it closes; returns the final content."""
        async for event in parse_sse_stream(stream):
            await self.feed(event)
        logger.debug(
            f"ChatStatusAccumulator.consume: {self.events_seen} events, "
            f"{len(self._content)} chars of content"
        )
        return self._content


async def process_chat_response_stream(
    stream: AsyncIterable[bytes],
    set_status: ChatStatusCallback,
) -> str:
    """Report chat progress from ``stream`` and return the accumulated answer."""
    return await ChatStatusAccumulator(set_status).consume(stream)

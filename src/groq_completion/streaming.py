from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass
from enum import Enum

import httpx
import structlog
from pydantic import ValidationError

from .errors import CompletionError, DecodeError, StreamProtocolError, TransportError
from .metrics import completion_stream_chunks_total
from .responses import ChatCompletionChunk

log = structlog.get_logger()

DONE_SENTINEL = "[DONE]"


class EventKind(str, Enum):
    OPEN = "open"
    MESSAGE = "message"
    ERROR = "error"


@dataclass(frozen=True)
class StreamEvent:
    kind: EventKind
    data: str | None = None
    error: CompletionError | None = None

    @classmethod
    def open(cls) -> "StreamEvent":
        return cls(EventKind.OPEN)

    @classmethod
    def message(cls, data: str) -> "StreamEvent":
        return cls(EventKind.MESSAGE, data=data)

    @classmethod
    def failure(cls, error: CompletionError) -> "StreamEvent":
        return cls(EventKind.ERROR, error=error)


class StreamState(str, Enum):
    CONNECTING = "connecting"
    ACTIVE = "active"
    CLOSED = "closed"


async def iter_sse_events(response: httpx.Response) -> AsyncIterator[StreamEvent]:
    """
    Read Server-Sent Events off an open response.

    Yields OPEN once, then one MESSAGE per event (multiple ``data:`` lines are
    joined with newlines). A transport failure while reading is yielded as a
    single ERROR event and ends the iteration. Lines are pulled one at a time.
    """
    yield StreamEvent.open()
    data_lines: list[str] = []
    try:
        async for line in response.aiter_lines():
            if not line:
                if data_lines:
                    yield StreamEvent.message("\n".join(data_lines))
                    data_lines = []
                continue
            if line.startswith(":"):
                continue
            name, _, value = line.partition(":")
            if name != "data":
                # event/id/retry fields carry nothing for this endpoint
                continue
            data_lines.append(value[1:] if value.startswith(" ") else value)
    except httpx.HTTPError as e:
        yield StreamEvent.failure(TransportError(f"Event stream read failed: {e}"))
        return
    if data_lines:
        yield StreamEvent.message("\n".join(data_lines))


class StreamConsumer:
    """
    Drives one event stream to completion.

    CONNECTING --open--> ACTIVE --[DONE]--> CLOSED (chunks returned)
    ACTIVE --json--> ACTIVE (chunk appended)
    CONNECTING/ACTIVE --error--> CLOSED (chunks discarded, error raised)

    Chunks are decoded strictly in arrival order. Any failure discards what
    was collected: the caller gets the error alone.
    """

    def __init__(self) -> None:
        self.state = StreamState.CONNECTING
        self._chunks: list[ChatCompletionChunk] = []

    @property
    def chunks(self) -> tuple[ChatCompletionChunk, ...]:
        return tuple(self._chunks)

    def _fail(self, error: CompletionError) -> CompletionError:
        self._chunks.clear()
        self.state = StreamState.CLOSED
        return error

    def feed(self, event: StreamEvent) -> None:
        if self.state is StreamState.CLOSED:
            raise StreamProtocolError(f"Received {event.kind.value} event after the stream was closed.")

        if event.kind is EventKind.ERROR:
            raise self._fail(event.error or TransportError("Event stream failed."))

        if event.kind is EventKind.OPEN:
            if self.state is not StreamState.CONNECTING:
                raise self._fail(StreamProtocolError("Duplicate open event."))
            self.state = StreamState.ACTIVE
            log.debug("completion_stream_open")
            return

        if self.state is not StreamState.ACTIVE:
            raise self._fail(StreamProtocolError("Message event received before the stream opened."))

        data = event.data or ""
        if data == DONE_SENTINEL:
            self.state = StreamState.CLOSED
            return

        try:
            chunk = ChatCompletionChunk.model_validate_json(data)
        except ValidationError as e:
            raise self._fail(DecodeError(f"Failed to decode stream chunk: {e}")) from e
        self._chunks.append(chunk)
        completion_stream_chunks_total.inc()

    async def consume(self, events: AsyncIterator[StreamEvent]) -> list[ChatCompletionChunk]:
        """Feed ``events`` until the sentinel; the iterator is closed on every exit path."""
        try:
            async for event in events:
                self.feed(event)
                if self.state is StreamState.CLOSED:
                    break
            else:
                raise self._fail(TransportError("Event stream ended before the [DONE] sentinel."))
        except BaseException:
            self._chunks.clear()
            self.state = StreamState.CLOSED
            raise
        finally:
            aclose = getattr(events, "aclose", None)
            if aclose is not None:
                await aclose()

        log.debug("completion_stream_done", chunks=len(self._chunks))
        return list(self._chunks)

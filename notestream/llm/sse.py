"""
Server-Sent Events Decoder

Turns the raw body of a streaming completion into discrete events.

Network reads split the body at arbitrary points: inside a frame, inside
a line, between a CR and its LF, or inside a multi-byte UTF-8 sequence.
The decoder buffers whatever is incomplete and only returns frames once
the blank line that terminates them has arrived.

Field handling follows the EventSource format:
- "event"  sets the frame type (None when absent)
- "data"   appends a line to the payload
- "id"     last event id
- "retry"  reconnection interval, reported on its own and ignored upstream
- lines starting with ":" are comments (keep-alives)
"""

import codecs
import json
from dataclasses import dataclass
from typing import List, Optional, Union

from notestream.core.logging import get_logger
from notestream.models.events import Done, ParseError, RoleDelta, StreamEvent, TokenDelta

logger = get_logger(__name__)

DONE_SENTINEL = "[DONE]"


@dataclass(frozen=True)
class SSEFrame:
    """One dispatched event"""
    data: str
    event: Optional[str] = None
    id: Optional[str] = None


@dataclass(frozen=True)
class ReconnectInterval:
    """A "retry:" line; not an event"""
    value: int


DecodedItem = Union[SSEFrame, ReconnectInterval]


class SSEDecoder:
    """
    Incremental decoder for a text/event-stream body.

    Not thread-safe; one instance per response.
    """

    def __init__(self):
        self._text_decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._started = False
        self._reset_frame()
        self._last_id: Optional[str] = None

    def _reset_frame(self):
        self._event_type: Optional[str] = None
        self._data_lines: List[str] = []

    def feed(self, chunk: Union[bytes, str]) -> List[DecodedItem]:
        """
        Feed a chunk of the body.

        Args:
            chunk: Raw bytes (or already decoded text) as read from the network

        Returns:
            Items completed by this chunk, in arrival order
        """
        if isinstance(chunk, bytes):
            text = self._text_decoder.decode(chunk)
        else:
            text = chunk

        if not self._started and text:
            self._started = True
            if text.startswith("\ufeff"):
                text = text[1:]

        self._buffer += text
        return self._drain(final=False)

    def flush(self) -> List[DecodedItem]:
        """
        Signal end of body.

        A trailing line without terminator is processed, but a frame that
        never got its blank line is discarded.
        """
        self._buffer += self._text_decoder.decode(b"", final=True)
        items = self._drain(final=True)
        if self._buffer:
            items.extend(self._process_line(self._buffer))
            self._buffer = ""
        if self._data_lines:
            logger.debug("Discarding incomplete SSE frame at end of stream")
        self._reset_frame()
        return items

    def _drain(self, final: bool) -> List[DecodedItem]:
        items: List[DecodedItem] = []
        buf = self._buffer
        start = 0
        length = len(buf)
        i = 0
        while i < length:
            ch = buf[i]
            if ch == "\n":
                items.extend(self._process_line(buf[start:i]))
                start = i + 1
            elif ch == "\r":
                # CR at the end of the buffer may be the first half of CRLF
                if i + 1 == length and not final:
                    break
                items.extend(self._process_line(buf[start:i]))
                if i + 1 < length and buf[i + 1] == "\n":
                    i += 1
                start = i + 1
            i += 1
        self._buffer = buf[start:]
        return items

    def _process_line(self, line: str) -> List[DecodedItem]:
        if line == "":
            return self._dispatch()

        if line.startswith(":"):
            return []

        field, sep, value = line.partition(":")
        if sep and value.startswith(" "):
            value = value[1:]

        if field == "event":
            self._event_type = value
        elif field == "data":
            self._data_lines.append(value)
        elif field == "id":
            if "\x00" not in value:
                self._last_id = value
        elif field == "retry":
            if value.isdigit():
                return [ReconnectInterval(int(value))]
            logger.debug(f"Ignoring malformed retry field: {value!r}")
        else:
            logger.debug(f"Ignoring unknown SSE field: {field!r}")
        return []

    def _dispatch(self) -> List[DecodedItem]:
        if not self._data_lines:
            self._reset_frame()
            return []
        frame = SSEFrame(
            data="\n".join(self._data_lines),
            event=self._event_type or None,
            id=self._last_id,
        )
        self._reset_frame()
        return [frame]


def to_stream_event(frame: SSEFrame) -> StreamEvent:
    """
    Interpret a frame of a chat completion stream.

    Args:
        frame: Decoded SSE frame

    Returns:
        Done for the sentinel, ParseError when the payload is not a
        completion chunk, RoleDelta for role announcements, else TokenDelta
    """
    if frame.data.strip() == DONE_SENTINEL:
        return Done()

    try:
        chunk = json.loads(frame.data)
        choice = chunk["choices"][0]
        delta = choice.get("delta") or {}
        role = delta.get("role")
        content = delta.get("content") or ""
    except (json.JSONDecodeError, KeyError, IndexError, TypeError, AttributeError) as e:
        return ParseError(reason=f"{type(e).__name__}: {e}")

    if role:
        return RoleDelta(role=role)

    return TokenDelta(content=content, model=chunk.get("model") or "")

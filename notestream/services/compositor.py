"""
Stream Compositor Module

Owns the bytes sent back to the browser for one chat request.

Output layout:
1. {"model": "<name>"}        once, before the first token
2. token text                 as plain UTF-8, in arrival order
3. notes lookup result JSON   at most once, when the assistant emits a
                              Query directive ("{}" if the lookup failed)

States:
    AWAITING_FIRST_TOKEN -> STREAMING -> DIRECTIVE_TRIGGERED -> CLOSED

The notes lookup runs inline: no further tokens are forwarded until it
returns. What happens around the directive is set by a CompositorPolicy:

- STRICT   checks each token for a directive before forwarding it; a
           directive ends the turn, so the lookup result is the last chunk
- LENIENT  forwards each token first, then checks; tokens after the
           directive keep flowing

Either way the lookup happens exactly once per stream.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, List, Optional

import requests

from notestream.core.errors import WireFormatError
from notestream.core.logging import get_logger
from notestream.llm.directives import DirectiveScanner
from notestream.llm.sse import ReconnectInterval, SSEDecoder, to_stream_event
from notestream.models.events import (
    DirectiveMatch,
    Done,
    ParseError,
    Retrieved,
    RetrievalOutcome,
    RoleDelta,
    StreamEvent,
    TokenDelta,
)
from notestream.models.response import ChatApiOutputStart
from notestream.notes.client import NotesClient

logger = get_logger(__name__)

EMPTY_RESULT = b"{}"


class CompositorState(str, Enum):
    AWAITING_FIRST_TOKEN = "awaiting_first_token"
    STREAMING = "streaming"
    DIRECTIVE_TRIGGERED = "directive_triggered"
    CLOSED = "closed"


class Forwarding(str, Enum):
    """When a token is forwarded relative to the directive check"""
    FORWARD_THEN_SCAN = "forward_then_scan"
    SCAN_THEN_FORWARD = "scan_then_forward"


class AfterDirective(str, Enum):
    """What happens to the stream once the lookup result is sent"""
    CONTINUE = "continue"
    TERMINATE = "terminate"


@dataclass(frozen=True)
class CompositorPolicy:
    name: str
    forwarding: Forwarding
    after_directive: AfterDirective


STRICT = CompositorPolicy(
    name="strict",
    forwarding=Forwarding.SCAN_THEN_FORWARD,
    after_directive=AfterDirective.TERMINATE,
)

LENIENT = CompositorPolicy(
    name="lenient",
    forwarding=Forwarding.FORWARD_THEN_SCAN,
    after_directive=AfterDirective.CONTINUE,
)

POLICIES = {policy.name: policy for policy in (STRICT, LENIENT)}


def get_policy(name: str) -> CompositorPolicy:
    """
    Look up a named policy.

    Raises:
        ValueError: If the name is unknown
    """
    try:
        return POLICIES[name.lower()]
    except KeyError:
        raise ValueError(
            f"Unsupported compositor policy: {name}. "
            f"Supported policies: {list(POLICIES.keys())}"
        ) from None


def _encode_json(value: Any) -> bytes:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def encode_outcome(outcome: RetrievalOutcome) -> bytes:
    """Serialize a lookup outcome as the chunk spliced into the stream"""
    if isinstance(outcome, Retrieved):
        return outcome.result.model_dump_json(exclude_none=True).encode("utf-8")
    return EMPTY_RESULT


class StreamCompositor:
    """
    Per-request state machine turning completion events into output bytes.

    Not reusable: create one per stream.
    """

    def __init__(
        self,
        scanner: DirectiveScanner,
        notes_client: NotesClient,
        policy: CompositorPolicy = STRICT,
        provider_name: str = "OpenAI"
    ):
        """
        Initialize compositor.

        Args:
            scanner: Directive scanner applied to the accumulated text
            notes_client: Client used for the directive lookup
            policy: Forwarding/termination policy
            provider_name: Name used in upstream error diagnostics
        """
        self.scanner = scanner
        self.notes_client = notes_client
        self.policy = policy
        self.provider_name = provider_name

        self.state = CompositorState.AWAITING_FIRST_TOKEN
        self.text = ""
        self.model: Optional[str] = None
        self.directive: Optional[DirectiveMatch] = None

    @property
    def closed(self) -> bool:
        return self.state == CompositorState.CLOSED

    # ============ EVENT HANDLING ============

    def handle(self, event: StreamEvent) -> List[bytes]:
        """
        Process one decoded event.

        Args:
            event: Event decoded from the provider stream

        Returns:
            Chunks to send, in order (possibly empty)

        Raises:
            WireFormatError: If the event is a ParseError
        """
        if self.closed:
            return []

        if isinstance(event, RoleDelta):
            return []

        if isinstance(event, ParseError):
            self.state = CompositorState.CLOSED
            logger.error(f"Malformed chunk from {self.provider_name}: {event.reason}")
            raise WireFormatError(f"Malformed chunk from {self.provider_name}: {event.reason}")

        if isinstance(event, Done):
            return self.finish()

        return self._handle_token(event)

    def _handle_token(self, event: TokenDelta) -> List[bytes]:
        chunks: List[bytes] = []

        if self.state == CompositorState.AWAITING_FIRST_TOKEN:
            self.model = event.model
            chunks.append(ChatApiOutputStart(model=event.model).model_dump_json().encode("utf-8"))
            self.state = CompositorState.STREAMING

        self.text += event.content
        delta = event.content.encode("utf-8")

        # Lenient streams keep going after the lookup; nothing left to detect
        if self.state == CompositorState.DIRECTIVE_TRIGGERED:
            if delta:
                chunks.append(delta)
            return chunks

        forward_first = self.policy.forwarding == Forwarding.FORWARD_THEN_SCAN
        if forward_first and delta:
            chunks.append(delta)

        match = self.scanner.scan(self.text)
        if match is not None:
            chunks.extend(self._trigger(match))

        if not forward_first and delta and not self.closed:
            chunks.append(delta)
        return chunks

    def _trigger(self, match: DirectiveMatch) -> List[bytes]:
        """Run the notes lookup for a directive; called at most once"""
        self.state = CompositorState.DIRECTIVE_TRIGGERED
        self.directive = match
        logger.info(f"Directive detected, querying notes for: {match.term[:100]}")

        outcome = self.notes_client.query(match.term)
        if not isinstance(outcome, Retrieved):
            logger.warning(f"No notes available for '{match.term[:100]}': {outcome.reason}")

        if self.policy.after_directive == AfterDirective.TERMINATE:
            self.state = CompositorState.CLOSED
        return [encode_outcome(outcome)]

    def finish(self) -> List[bytes]:
        """
        End the stream.

        A directive completed only by the end of the text (for example a
        rest-of-line directive on the final line) is resolved here.
        """
        if self.closed:
            return []

        chunks: List[bytes] = []
        if self.state == CompositorState.STREAMING:
            match = self.scanner.scan(self.text, final=True)
            if match is not None:
                chunks.extend(self._trigger(match))

        self.state = CompositorState.CLOSED
        logger.debug(f"Stream closed after {len(self.text)} characters")
        return chunks

    # ============ RESPONSE HANDLING ============

    def error_chunk(self, response: requests.Response) -> bytes:
        """Diagnostic text sent in place of the stream for a non-2xx status"""
        try:
            payload = response.json()
        except ValueError:
            payload = {}
        message = f"{self.provider_name} API error: {response.status_code} {response.reason} "
        return message.encode("utf-8") + _encode_json(payload)

    def compose(self, response: requests.Response) -> Iterator[bytes]:
        """
        Turn an upstream streaming response into output chunks.

        Args:
            response: Unread response from the completion provider

        Yields:
            Output chunks in order

        Raises:
            WireFormatError: If the provider stream is corrupt
        """
        try:
            if not response.ok:
                logger.warning(
                    f"{self.provider_name} API returned {response.status_code} {response.reason}"
                )
                chunk = self.error_chunk(response)
                self.state = CompositorState.CLOSED
                yield chunk
                return

            decoder = SSEDecoder()
            for raw in response.iter_content(chunk_size=None):
                for chunk in self._consume(decoder.feed(raw)):
                    yield chunk
                if self.closed:
                    break
            else:
                for chunk in self._consume(decoder.flush()):
                    yield chunk
                # Provider hung up without [DONE]
                for chunk in self.finish():
                    yield chunk
        finally:
            response.close()

    def _consume(self, items) -> Iterator[bytes]:
        for item in items:
            if isinstance(item, ReconnectInterval):
                continue
            for chunk in self.handle(to_stream_event(item)):
                yield chunk
            if self.closed:
                return

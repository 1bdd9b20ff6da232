"""
Internal event types of the streaming pipeline.

These never leave the process; they are plain dataclasses rather than
pydantic models.
"""

from dataclasses import dataclass
from typing import Union

from notestream.models.documents import QueryResult


@dataclass(frozen=True)
class TokenDelta:
    """A fragment of assistant text"""
    content: str
    model: str


@dataclass(frozen=True)
class RoleDelta:
    """Role announcement at the start of a choice; carries no text"""
    role: str


@dataclass(frozen=True)
class Done:
    """The provider's end-of-stream marker"""


@dataclass(frozen=True)
class ParseError:
    """A frame whose payload could not be understood"""
    reason: str


StreamEvent = Union[TokenDelta, RoleDelta, Done, ParseError]


@dataclass(frozen=True)
class DirectiveMatch:
    term: str


@dataclass(frozen=True)
class Retrieved:
    """Notes service answered with results"""
    result: QueryResult


@dataclass(frozen=True)
class Unavailable:
    """Notes service gave nothing usable; never fatal to the stream"""
    reason: str


RetrievalOutcome = Union[Retrieved, Unavailable]

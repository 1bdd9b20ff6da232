from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from enum import Enum


class ChatMessageRole(str, Enum):
    """Chat message role enumeration"""
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class ChatMessage(BaseModel):
    """Single chat message"""
    role: ChatMessageRole
    content: str


class ChatRequest(BaseModel):
    """
    Chat request as sent by the browser client.

    Any ``stream`` or ``n`` field the client sends is ignored; the
    upstream request is always a single-choice stream.
    """
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    api_key: Optional[str] = Field(
        default=None,
        alias="apiKey",
        description="Client-supplied provider key, overrides the server default"
    )
    model: str = Field(..., description="Provider model name")
    messages: List[ChatMessage] = Field(default_factory=list, description="Conversation so far")
    # Sampling values are passed through; the provider validates them
    temperature: Optional[float] = Field(default=None, description="Sampling temperature")
    max_tokens: Optional[int] = Field(default=None, description="Maximum tokens to generate")


class NoteUpdateRequest(BaseModel):
    """Note mutation request (delete and update endpoints)"""
    model_config = ConfigDict(populate_by_name=True)

    memory_id: str = Field(..., alias="memoryId", description="Note identifier in the notes service")
    text: str = Field(default="", description="Note text")

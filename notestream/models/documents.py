"""
Documents as returned by the notes retrieval service.

The notes service owns this schema. Fields not declared here are kept
so the result reaches the client as the service sent it.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List


class DocumentMetadata(BaseModel):
    model_config = ConfigDict(extra="allow")

    # Usually "email", "file" or "chat", but the service may add others
    source: Optional[str] = None
    source_id: Optional[str] = None
    url: Optional[str] = None
    created_at: Optional[str] = None
    author: Optional[str] = None


class DocumentChunkMetadata(DocumentMetadata):
    document_id: Optional[str] = None


class DocumentChunk(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    text: str
    metadata: Optional[DocumentChunkMetadata] = Field(default_factory=DocumentChunkMetadata)
    embedding: Optional[List[float]] = None


class DocumentChunkWithScore(DocumentChunk):
    score: float


class QueryResult(BaseModel):
    """Ranked chunks for a single query"""
    model_config = ConfigDict(extra="allow")

    query: str
    results: List[DocumentChunkWithScore] = Field(default_factory=list)


class QueryResponse(BaseModel):
    """Body of a /query response, one entry per submitted query"""
    results: List[QueryResult] = Field(default_factory=list)

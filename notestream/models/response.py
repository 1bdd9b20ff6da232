from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List


class ChatApiOutputStart(BaseModel):
    """
    First chunk of every chat stream.

    The client receives plain text after this object; it is the only
    framing on the otherwise raw byte stream.
    """
    model: str = Field(..., description="Model that served the request")


class MessageResponse(BaseModel):
    """Generic acknowledgement"""
    model_config = ConfigDict(json_schema_extra={"example": {"message": "success"}})

    message: str = Field(default="success")


class ModelInfo(BaseModel):
    """Entry of the model catalog"""
    id: str = Field(..., description="Provider model identifier")
    title: str = Field(..., description="Short display name")
    description: str = Field(..., description="What the model is good at")


class ModelCatalogResponse(BaseModel):
    models: List[ModelInfo]
    default_model: str


class PurposeInfo(BaseModel):
    """A selectable system purpose and its system message"""
    id: str
    title: str
    description: str
    system_message: str
    uses_notes: bool = Field(default=False, description="Whether the purpose emits Query directives")


class HealthResponse(BaseModel):
    status: str
    provider_key_available: bool
    notes_token_available: bool
    version: Optional[str] = None

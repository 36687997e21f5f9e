"""Request and response models for the conversation API."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from advisor.models.llm import ToolDescriptor
from advisor.state.conversation import ConversationState


class ConversationRequest(BaseModel):
    """Request model for conversation endpoint."""

    message: str
    session_id: str | None = None
    context: dict[str, Any] | None = None


class ConversationResponse(BaseModel):
    """Response model for conversation endpoint."""

    response: str
    session_id: str
    state: ConversationState


class ConversationStateResponse(BaseModel):
    """Current state of a conversation session."""

    session_id: str
    state: ConversationState


class ToolCatalogResponse(BaseModel):
    """Tools the advisor may call."""

    tools: list[ToolDescriptor]


class ExamplePromptsResponse(BaseModel):
    """Suggested prompts for the view the user came from."""

    view: str | None = None
    prompts: list[str] = Field(default_factory=list)


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str
    timestamp: datetime
    version: str

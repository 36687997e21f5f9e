"""API endpoints for the AI advisor service."""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException

from advisor import __version__
from advisor.models.conversation import (
    ConversationRequest,
    ConversationResponse,
    ConversationStateResponse,
    ExamplePromptsResponse,
    HealthResponse,
    ToolCatalogResponse,
)
from advisor.models.session import Session
from advisor.prompts import get_example_prompts
from advisor.services.session_manager import InMemorySessionManager, get_session_manager
from advisor.state.conversation import ConversationState
from advisor.tools.registry import get_tools_registry
from advisor.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


def _require_session(session_id: str, manager: InMemorySessionManager) -> Session:
    session = manager.get_session(session_id)
    if not session:
        logger.warning(f"Invalid session ID provided: {session_id}")
        raise HTTPException(status_code=400, detail=f"Invalid session ID: {session_id}")
    return session


def _latest_reply(state: ConversationState) -> str:
    """Text for the response field: the error if one is set, else the last model message."""
    if state.error:
        return state.error
    for message in reversed(state.messages):
        if message.role == "model":
            return message.text
    return ""


@router.post("/conversation", response_model=ConversationResponse, tags=["Conversation"])
async def handle_conversation(
    request: ConversationRequest,
    manager: InMemorySessionManager = Depends(get_session_manager),
) -> ConversationResponse:
    """Send a user message and return the advisor's reply with the resulting state."""
    try:
        if request.session_id:
            logger.info(f"Validating existing session: {request.session_id}")
            session = _require_session(request.session_id, manager)
        else:
            logger.info("Creating new session")
            session = manager.create_session()
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Session management error: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to manage session") from e

    session_id = session.session_id
    try:
        state = await session.engine.send_message(request.message, request.context)
    except Exception as e:
        logger.error(f"Conversation processing error for session {session_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to process message") from e

    response_text = _latest_reply(state)
    logger.info(f"Generated response for session {session_id}: {response_text[:50]}...")
    return ConversationResponse(response=response_text, session_id=session_id, state=state)


@router.get("/conversation/{session_id}", response_model=ConversationStateResponse, tags=["Conversation"])
async def get_conversation(
    session_id: str,
    manager: InMemorySessionManager = Depends(get_session_manager),
) -> ConversationStateResponse:
    """Return the current state of a session's conversation."""
    session = _require_session(session_id, manager)
    return ConversationStateResponse(session_id=session_id, state=session.engine.state)


@router.post("/conversation/{session_id}/reset", response_model=ConversationStateResponse, tags=["Conversation"])
async def reset_conversation(
    session_id: str,
    manager: InMemorySessionManager = Depends(get_session_manager),
) -> ConversationStateResponse:
    """Start a new conversation in an existing session."""
    session = _require_session(session_id, manager)
    session.engine.reset_conversation()
    state = session.engine.prime()
    return ConversationStateResponse(session_id=session_id, state=state)


@router.get("/tools", response_model=ToolCatalogResponse, tags=["Tools"])
async def list_tools() -> ToolCatalogResponse:
    """Describe the tools the advisor may call."""
    return ToolCatalogResponse(tools=get_tools_registry().describe())


@router.get("/prompts", response_model=ExamplePromptsResponse, tags=["Conversation"])
async def example_prompts(view: str | None = None) -> ExamplePromptsResponse:
    """Suggested prompts for the view the user came from."""
    return ExamplePromptsResponse(view=view, prompts=get_example_prompts(view))


@router.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(UTC),
        version=__version__,
    )

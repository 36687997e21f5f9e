"""Conversation state and the transitions that are allowed to change it.

State is immutable. ``reduce`` returns a new state for every action and never
rewrites a message that is already in the history, so listeners can compare
messages by identity.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from cuid2 import cuid_wrapper
from pydantic import BaseModel, ConfigDict, Field

from advisor.models.messages import Message
from advisor.utils.logging import get_logger

logger = get_logger(__name__)

cuid = cuid_wrapper()


def generate_conversation_id() -> str:
    """Generate a fresh conversation identifier."""
    return f"conv_{cuid()}"


class ConversationState(BaseModel):
    """Snapshot of one conversation session."""

    model_config = ConfigDict(frozen=True)

    conversation_id: str = Field(default_factory=generate_conversation_id)
    messages: tuple[Message, ...] = ()

    # Activity indicators for the view
    is_loading: bool = False
    is_tool_executing: bool = False
    active_tool_name: str | None = None
    active_tools: tuple[str, ...] = ()

    error: str | None = None
    active_context: dict[str, Any] = Field(default_factory=dict)


# Actions


@dataclass(frozen=True)
class BeginSend:
    pass


@dataclass(frozen=True)
class AppendUserMessage:
    message: Message


@dataclass(frozen=True)
class AppendModelMessage:
    message: Message


@dataclass(frozen=True)
class SetError:
    error: str


@dataclass(frozen=True)
class ClearError:
    pass


@dataclass(frozen=True)
class BeginTool:
    name: str


@dataclass(frozen=True)
class EndTool:
    name: str | None = None  # None ends every running tool


@dataclass(frozen=True)
class MergeContext:
    partial: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Reset:
    pass


ConversationAction = (
    BeginSend
    | AppendUserMessage
    | AppendModelMessage
    | SetError
    | ClearError
    | BeginTool
    | EndTool
    | MergeContext
    | Reset
)


def _with_tools(state: ConversationState, active_tools: tuple[str, ...]) -> ConversationState:
    return state.model_copy(
        update={
            "active_tools": active_tools,
            "is_tool_executing": bool(active_tools),
            "active_tool_name": active_tools[-1] if active_tools else None,
        }
    )


def reduce(state: ConversationState, action: ConversationAction) -> ConversationState:
    """Apply one action to the state and return the resulting state."""
    if isinstance(action, BeginSend):
        return state.model_copy(update={"is_loading": True, "error": None})

    if isinstance(action, AppendUserMessage):
        return state.model_copy(update={"messages": (*state.messages, action.message)})

    if isinstance(action, AppendModelMessage):
        return state.model_copy(update={"messages": (*state.messages, action.message), "is_loading": False})

    if isinstance(action, SetError):
        # An error always ends any in-flight activity indication
        cleared = _with_tools(state, ())
        return cleared.model_copy(update={"error": action.error, "is_loading": False})

    if isinstance(action, ClearError):
        return state.model_copy(update={"error": None})

    if isinstance(action, BeginTool):
        return _with_tools(state, (*state.active_tools, action.name))

    if isinstance(action, EndTool):
        if action.name is None or action.name not in state.active_tools:
            return _with_tools(state, ())
        remaining = list(state.active_tools)
        # Drop the most recent start of this tool
        del remaining[len(remaining) - 1 - remaining[::-1].index(action.name)]
        return _with_tools(state, tuple(remaining))

    if isinstance(action, MergeContext):
        return state.model_copy(update={"active_context": {**state.active_context, **action.partial}})

    if isinstance(action, Reset):
        return ConversationState()

    raise TypeError(f"Unknown conversation action: {action!r}")


Listener = Callable[[ConversationState], None]


class ConversationStore:
    """Holds the current conversation state and notifies listeners on change."""

    def __init__(self, state: ConversationState | None = None):
        self._state = state or ConversationState()
        self._listeners: list[Listener] = []

    @property
    def state(self) -> ConversationState:
        return self._state

    def dispatch(self, action: ConversationAction) -> ConversationState:
        """Reduce an action into the current state and notify listeners."""
        self._state = reduce(self._state, action)
        logger.debug(f"Dispatched {type(action).__name__} on {self._state.conversation_id}")

        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception as e:
                logger.error(f"State listener failed: {e}", exc_info=True)

        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

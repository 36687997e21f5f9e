"""Conversation engine driving the model and tool-calling loop."""

import asyncio
import time
from collections.abc import Callable
from typing import Any

from advisor.config import EngineConfig
from advisor.models.messages import Message, TextPart, ToolCallPart, build_model_parts
from advisor.models.llm import ModelTurn
from advisor.prompts import GREETING
from advisor.services.credentials import MissingCredentialError
from advisor.services.model_service import (
    MessageTooLongError,
    ModelService,
    TurnInput,
    create_anthropic_model_service,
)
from advisor.services.tool_executor import ToolExecutor
from advisor.state.conversation import (
    AppendModelMessage,
    AppendUserMessage,
    BeginSend,
    BeginTool,
    ConversationAction,
    ConversationState,
    ConversationStore,
    EndTool,
    Listener,
    MergeContext,
    Reset,
    SetError,
)
from advisor.tools.registry import ToolsRegistry, get_tools_registry
from advisor.utils.logging import get_logger

logger = get_logger(__name__)

ModelServiceFactory = Callable[[], ModelService]

MISSING_CREDENTIAL_ERROR = (
    "Anthropic API key is not set. Set ANTHROPIC_API_KEY or store the key in the credentials file, then try again."
)
INITIALIZATION_ERROR = "Failed to initialize the AI model. Please check your API key."
MODEL_SERVICE_ERROR = "I apologize, but I've encountered a system error. Please try your request again."
CANCELLED_ERROR = "The request was cancelled before the advisor could reply. Please try again."
EMPTY_RESPONSE_TEXT = "I apologize, but I couldn't generate a response. Please try again."
MAX_ROUNDS_TEXT = (
    "I wasn't able to finish looking into that within the allowed number of steps. "
    "Please try a narrower question."
)


class ConversationEngine:
    """Runs user turns through the model, executing requested tools in bounded rounds.

    Each turn is one of:
    - model replies with text only: append it and stop
    - model requests tools: append its message, run all calls concurrently,
      append a tool-log with results in request order, send results back, repeat
    - round limit reached: stop dispatching tools and append the last text
    - model service fails: set the error and end the turn

    Every state change a turn makes is tied to the conversation id that was
    current when the turn started. Results arriving after a reset are dropped.
    """

    def __init__(
        self,
        model_service_factory: ModelServiceFactory,
        executor: ToolExecutor,
        config: EngineConfig | None = None,
        store: ConversationStore | None = None,
    ):
        """Initialize the engine.

        Args:
            model_service_factory: Builds the model service on first use and after each reset
            executor: Tool execution adapter
            config: Round and timeout limits
            store: State store (a fresh one by default)
        """
        self.model_service_factory = model_service_factory
        self.executor = executor
        self.config = config or EngineConfig()
        self.store = store or ConversationStore()
        self._model_service: ModelService | None = None
        self._turn_lock = asyncio.Lock()

    @property
    def state(self) -> ConversationState:
        return self.store.state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Listen for state changes; returns an unsubscribe callable."""
        return self.store.subscribe(listener)

    def merge_context(self, partial: dict[str, Any]) -> ConversationState:
        return self.store.dispatch(MergeContext(partial))

    def prime(self, greeting: str = GREETING) -> ConversationState:
        """Add a welcome message to an empty conversation."""
        if not self.state.messages:
            self.store.dispatch(AppendModelMessage(Message.model([TextPart(text=greeting)])))
        return self.state

    def reset_conversation(self) -> ConversationState:
        """Discard messages and context and start a new conversation id.

        Safe to call while a turn is in flight.
        """
        if self._model_service is not None:
            self._model_service.reset()
            self._model_service = None
        state = self.store.dispatch(Reset())
        logger.info(f"Conversation reset, new id {state.conversation_id}")
        return state

    async def send_message(self, text: str, context: dict[str, Any] | None = None) -> ConversationState:
        """Run one user turn to completion and return the resulting state."""
        if not text or not text.strip():
            return self.state

        async with self._turn_lock:
            model_service = self._get_model_service()
            if model_service is None:
                return self.state

            conversation_id = self.state.conversation_id
            logger.info(f"Processing message for conversation {conversation_id}: {text[:50]}...")

            self.store.dispatch(BeginSend())
            if context:
                self.store.dispatch(MergeContext(context))
            self.store.dispatch(AppendUserMessage(Message.user(text)))

            try:
                await self._run_turn(conversation_id, model_service, text)
            except MessageTooLongError as e:
                self._dispatch(conversation_id, SetError(str(e)))
            except asyncio.CancelledError:
                logger.warning(f"Conversation turn cancelled for {conversation_id}")
                self._dispatch(conversation_id, SetError(CANCELLED_ERROR))
                raise
            except Exception as e:
                logger.error(f"Conversation turn failed for {conversation_id}: {e}", exc_info=True)
                self._dispatch(conversation_id, SetError(MODEL_SERVICE_ERROR))

        return self.state

    def _get_model_service(self) -> ModelService | None:
        if self._model_service is not None:
            return self._model_service

        try:
            self._model_service = self.model_service_factory()
        except MissingCredentialError as e:
            logger.error(f"Model service is not configured: {e}")
            self.store.dispatch(SetError(MISSING_CREDENTIAL_ERROR))
        except Exception as e:
            logger.error(f"Failed to initialize model service: {e}", exc_info=True)
            self.store.dispatch(SetError(INITIALIZATION_ERROR))

        return self._model_service

    def _dispatch(self, conversation_id: str, action: ConversationAction) -> bool:
        """Dispatch only if the conversation has not been reset since the turn began."""
        if self.store.state.conversation_id != conversation_id:
            logger.info(f"Dropping {type(action).__name__} for abandoned conversation {conversation_id}")
            return False
        self.store.dispatch(action)
        return True

    async def _run_turn(self, conversation_id: str, model_service: ModelService, text: str) -> None:
        turn, latency_ms = await self._send(model_service, text)
        rounds = 0

        while turn.wants_tools and rounds < self.config.max_tool_rounds:
            rounds += 1
            calls = [ToolCallPart(name=call.name, args=call.args, call_id=call.id) for call in turn.tool_calls]
            logger.info(f"Round {rounds}: model requested {', '.join(call.name for call in calls)}")

            model_message = Message.model(
                build_model_parts(turn.text, calls),
                metadata=self._turn_metadata(turn, latency_ms, rounds),
            )
            if not self._dispatch(conversation_id, AppendModelMessage(model_message)):
                return

            results = await self.executor.execute_all(
                calls,
                on_start=lambda call: self._dispatch(conversation_id, BeginTool(call.name)),
                on_finish=lambda call: self._dispatch(conversation_id, EndTool(call.name)),
            )

            if not self._dispatch(conversation_id, AppendModelMessage(Message.tool_log(results, {"round": rounds}))):
                return
            self._dispatch(
                conversation_id,
                MergeContext({"last_tool_calls": [call.name for call in calls], "tool_rounds": rounds}),
            )

            # Follow-up request to the model
            self._dispatch(conversation_id, BeginSend())
            turn, latency_ms = await self._send(model_service, results)

        stop_reason = turn.stop_reason
        fallback = EMPTY_RESPONSE_TEXT
        if turn.wants_tools:
            logger.warning(f"Tool round limit ({self.config.max_tool_rounds}) reached for {conversation_id}")
            stop_reason = "max_tool_rounds"
            fallback = MAX_ROUNDS_TEXT

        parts = build_model_parts(turn.text) or [TextPart(text=fallback)]
        metadata = self._turn_metadata(turn, latency_ms, rounds)
        metadata["stop_reason"] = stop_reason

        if self._dispatch(conversation_id, AppendModelMessage(Message.model(parts, metadata=metadata))):
            self._dispatch(conversation_id, MergeContext({"last_stop_reason": stop_reason}))
            logger.info(f"Turn completed for {conversation_id} after {rounds} tool rounds")

    async def _send(self, model_service: ModelService, turn_input: TurnInput) -> tuple[ModelTurn, float]:
        started = time.perf_counter()
        turn = await asyncio.wait_for(
            model_service.send_turn(turn_input, self.state),
            timeout=self.config.model_timeout,
        )
        return turn, round((time.perf_counter() - started) * 1000, 1)

    @staticmethod
    def _turn_metadata(turn: ModelTurn, latency_ms: float, rounds: int) -> dict[str, Any]:
        metadata: dict[str, Any] = {"latency_ms": latency_ms, "round": rounds}
        if turn.usage:
            metadata["input_tokens"] = turn.usage.input_tokens
            metadata["output_tokens"] = turn.usage.output_tokens
        if turn.model:
            metadata["model"] = turn.model
        return metadata


def create_conversation_engine(
    registry: ToolsRegistry | None = None,
    config: EngineConfig | None = None,
    model_service_factory: ModelServiceFactory | None = None,
) -> ConversationEngine:
    """Build an engine wired to the default tool catalogue and Anthropic."""
    registry = registry or get_tools_registry()
    config = config or EngineConfig.from_env()

    def default_factory() -> ModelService:
        return create_anthropic_model_service(registry)

    return ConversationEngine(
        model_service_factory=model_service_factory or default_factory,
        executor=ToolExecutor(registry, timeout=config.tool_timeout),
        config=config,
    )

"""Test doubles shared by the engine and endpoint tests."""

from collections.abc import Awaitable, Callable
from typing import Any

from advisor.config import EngineConfig
from advisor.models.llm import ModelToolCall, ModelTurn
from advisor.services.conversation import ConversationEngine
from advisor.services.financial_data import create_mock_financial_data
from advisor.services.tool_executor import ToolExecutor
from advisor.state.conversation import ConversationState
from advisor.tools.base import EmptyInput, ToolDefinition
from advisor.tools.registry import ToolsRegistry, create_tools_registry

Scripted = ModelTurn | BaseException | Callable[[], Awaitable[ModelTurn]]


class ScriptedModelService:
    """Model service that replays prepared turns in order.

    With ``repeat_last`` the final scripted turn is returned forever.
    """

    def __init__(self, *turns: Scripted, repeat_last: bool = False):
        self.turns = list(turns)
        self.repeat_last = repeat_last
        self.inputs: list[Any] = []
        self.states: list[ConversationState | None] = []
        self.reset_count = 0

    async def send_turn(self, turn_input, state=None) -> ModelTurn:
        self.inputs.append(turn_input)
        self.states.append(state)

        if len(self.turns) > 1 or not self.repeat_last:
            turn = self.turns.pop(0)
        else:
            turn = self.turns[0]

        if isinstance(turn, BaseException):
            raise turn
        if callable(turn):
            return await turn()
        return turn

    def reset(self) -> None:
        self.reset_count += 1


def text_turn(text: str | None) -> ModelTurn:
    return ModelTurn(text=text, stop_reason="end_turn", model="stub-model")


def tool_turn(*calls: tuple[str, dict[str, Any]], text: str | None = None) -> ModelTurn:
    return ModelTurn(
        text=text,
        tool_calls=[ModelToolCall(name=name, args=args, id=f"toolu_{i}") for i, (name, args) in enumerate(calls)],
        stop_reason="tool_use",
        model="stub-model",
    )


def simple_tool(name: str, handler) -> ToolDefinition:
    return ToolDefinition(name=name, description=f"Test tool {name}", input_schema_class=EmptyInput, handler=handler)


def default_registry() -> ToolsRegistry:
    return create_tools_registry(create_mock_financial_data())


def make_engine(
    service: ScriptedModelService,
    registry: ToolsRegistry | None = None,
    config: EngineConfig | None = None,
) -> ConversationEngine:
    registry = registry or default_registry()
    config = config or EngineConfig()
    return ConversationEngine(
        model_service_factory=lambda: service,
        executor=ToolExecutor(registry, timeout=config.tool_timeout),
        config=config,
    )

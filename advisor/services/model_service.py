"""Model service boundary used by the conversation engine."""

import json
from collections.abc import Sequence
from typing import Protocol

from advisor.clients.anthropic import (
    AnthropicClient,
    AnthropicMessage,
    AnthropicTool,
    CacheControl,
)
from advisor.models.llm import (
    ContentBlock,
    LLMUsage,
    ModelToolCall,
    ModelTurn,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
)
from advisor.models.messages import ToolResultPart
from advisor.prompts import build_system_prompt
from advisor.state.conversation import ConversationState
from advisor.tools.registry import ToolsRegistry
from advisor.utils.logging import get_logger

logger = get_logger(__name__)

TurnInput = str | Sequence[ToolResultPart]

UNANSWERED_TOOL_USE = "Tool call was not executed because the previous turn ended before its results were sent."


class MessageTooLongError(ValueError):
    """The user message exceeds the per-message token limit."""

    def __init__(self):
        super().__init__("Your message is too long. Please shorten it and try again.")


class ModelService(Protocol):
    """Request/response boundary to a language model.

    Implementations own the conversation history sent to the provider.
    """

    async def send_turn(self, turn_input: TurnInput, state: ConversationState | None = None) -> ModelTurn:
        """Send user text or a batch of tool results and return the model's reply."""
        ...

    def reset(self) -> None:
        """Forget the provider-side history."""
        ...


class AnthropicModelService:
    """Model service backed by the Anthropic messages API."""

    def __init__(self, client: AnthropicClient, registry: ToolsRegistry):
        """Initialize the service.

        Args:
            client: Anthropic client
            registry: Tool catalogue advertised to the model
        """
        self.client = client
        self.registry = registry
        self.history: list[AnthropicMessage] = []

    def _anthropic_tools(self) -> list[AnthropicTool]:
        descriptors = self.registry.describe()
        tools = []
        for i, descriptor in enumerate(descriptors):
            # Cache control on the last tool caches the whole tool block
            cache_control = CacheControl() if i == len(descriptors) - 1 else None
            tools.append(
                AnthropicTool(
                    name=descriptor.name,
                    description=descriptor.description,
                    input_schema=descriptor.parameter_schema,
                    cache_control=cache_control,
                )
            )
        return tools

    def _dangling_tool_uses(self) -> list[ToolUseBlock]:
        if not self.history or self.history[-1].role != "assistant":
            return []
        content = self.history[-1].content
        if isinstance(content, str):
            return []
        return [block for block in content if isinstance(block, ToolUseBlock)]

    def _build_user_message(self, turn_input: TurnInput) -> AnthropicMessage:
        if isinstance(turn_input, str):
            dangling = self._dangling_tool_uses()
            if not dangling:
                return AnthropicMessage(role="user", content=turn_input)
            # The previous turn ended before these calls were answered
            logger.debug(f"Closing {len(dangling)} unanswered tool_use blocks")
            blocks: list[ContentBlock] = [
                ToolResultBlock(tool_use_id=block.id, content=UNANSWERED_TOOL_USE, is_error=True) for block in dangling
            ]
            blocks.append(TextBlock(text=turn_input))
            return AnthropicMessage(role="user", content=blocks)

        results: list[ContentBlock] = [
            ToolResultBlock(
                tool_use_id=result.call_id or "",
                content=json.dumps(result.response, default=str),
                is_error=result.is_error,
            )
            for result in turn_input
        ]
        return AnthropicMessage(role="user", content=results)

    async def send_turn(self, turn_input: TurnInput, state: ConversationState | None = None) -> ModelTurn:
        """Send one turn; history is only committed after a successful response."""
        if isinstance(turn_input, str):
            try:
                self.client.validate_message_tokens(turn_input)
            except ValueError as e:
                logger.warning(f"Rejected user message: {e}")
                raise MessageTooLongError() from e

        pending = [*self.history, self._build_user_message(turn_input)]
        system_prompt = build_system_prompt(state.active_context if state else None)

        response = await self.client.create_message(
            messages=pending,
            system_prompt=system_prompt,
            tools=self._anthropic_tools(),
        )

        self.history = [*pending, AnthropicMessage(role="assistant", content=response.content)]

        text = "\n".join(block.text for block in response.content if isinstance(block, TextBlock))
        tool_calls = [
            ModelToolCall(name=block.name, args=block.input, id=block.id)
            for block in response.content
            if isinstance(block, ToolUseBlock)
        ]
        logger.info(f"Model replied with stop reason {response.stop_reason} and {len(tool_calls)} tool calls")

        return ModelTurn(
            text=text or None,
            tool_calls=tool_calls,
            stop_reason=response.stop_reason,
            usage=LLMUsage(
                input_tokens=response.usage.input_tokens,
                output_tokens=response.usage.output_tokens,
                total_tokens=response.usage.total_tokens,
                cache_creation_input_tokens=response.usage.cache_creation_input_tokens,
                cache_read_input_tokens=response.usage.cache_read_input_tokens,
            ),
            model=response.model,
        )

    def reset(self) -> None:
        self.history = []


def create_anthropic_model_service(registry: ToolsRegistry) -> AnthropicModelService:
    """Build an Anthropic-backed model service.

    Raises:
        MissingCredentialError: If no Anthropic API key is configured
    """
    return AnthropicModelService(AnthropicClient(), registry)

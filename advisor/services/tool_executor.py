"""Tool execution adapter.

Every outcome of a tool call, including unknown tools, invalid arguments,
exceptions and timeouts, is normalised into a ``ToolResultPart``. One bad
call must never abort the sibling calls of the same round.
"""

import asyncio
from collections.abc import Callable, Sequence
from typing import Any

from pydantic import ValidationError

from advisor.models.messages import ToolCallPart, ToolResultPart
from advisor.tools.registry import ToolsRegistry
from advisor.utils.logging import get_logger

logger = get_logger(__name__)

UNKNOWN_TOOL_ERROR = "unknown tool"

CallHook = Callable[[ToolCallPart], Any]


class ToolExecutor:
    """Stateless adapter between the engine and the tool registry."""

    def __init__(self, registry: ToolsRegistry, timeout: float | None = 30.0):
        """Initialize the adapter.

        Args:
            registry: Catalogue used to resolve tool names
            timeout: Seconds allowed per call, None to disable
        """
        self.registry = registry
        self.timeout = timeout

    async def execute(self, name: str, args: dict[str, Any] | None = None, call_id: str | None = None) -> ToolResultPart:
        """Run one tool call and wrap the outcome in a result part."""
        tool = self.registry.resolve(name)
        if tool is None:
            logger.error(f"Unknown tool requested: {name}")
            return ToolResultPart(name=name, response={"error": UNKNOWN_TOOL_ERROR}, call_id=call_id)

        logger.debug(f"Executing tool: {name} with input: {args}")
        try:
            response = await asyncio.wait_for(tool(dict(args or {})), timeout=self.timeout)
        except TimeoutError:
            logger.error(f"Tool {name} timed out after {self.timeout}s")
            response = {"error": f"tool timed out after {self.timeout}s"}
        except ValidationError as e:
            logger.warning(f"Tool {name} rejected its arguments: {e}")
            response = {"error": f"invalid arguments: {e}"}
        except Exception as e:
            logger.error(f"Tool {name} failed: {e}", exc_info=True)
            response = {"error": str(e) or type(e).__name__}
        else:
            logger.debug(f"Tool {name} succeeded: {str(response)[:100]}...")

        if not isinstance(response, dict):
            response = {"result": response}

        return ToolResultPart(name=name, response=response, call_id=call_id)

    async def execute_all(
        self,
        calls: Sequence[ToolCallPart],
        on_start: CallHook | None = None,
        on_finish: CallHook | None = None,
    ) -> list[ToolResultPart]:
        """Run calls concurrently; results come back in request order.

        Args:
            calls: The round's calls in the order the model requested them
            on_start: Called as each call begins
            on_finish: Called as each call ends, including on cancellation
        """

        async def run(call: ToolCallPart) -> ToolResultPart:
            if on_start:
                on_start(call)
            try:
                return await self.execute(call.name, call.args, call.call_id)
            finally:
                if on_finish:
                    on_finish(call)

        return list(await asyncio.gather(*(run(call) for call in calls)))

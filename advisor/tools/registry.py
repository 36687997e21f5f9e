"""Tools registry for managing AI advisor tools."""

from advisor.models.llm import ToolDescriptor
from advisor.services.financial_data import FinancialDataContext, get_financial_data
from advisor.tools.base import ToolCallable, ToolDefinition
from advisor.tools.financial_summary import create_financial_summary_tool
from advisor.tools.investments import create_simulate_investment_growth_tool
from advisor.tools.ledger import create_ledger_accounts_tool
from advisor.tools.transactions import create_spending_by_category_tool, create_transactions_tool
from advisor.utils.logging import get_logger

logger = get_logger(__name__)


class ToolsRegistry:
    """Static catalogue of the tools the model may call.

    Schemas are advisory: the registry does not validate arguments. Each
    tool rejects malformed arguments itself when called.
    """

    def __init__(self, tools: list[ToolDefinition] | None = None):
        """Initialize registry with an explicit list of tools."""
        self._tools: dict[str, ToolDefinition] = {}
        for tool in tools or []:
            self._register_tool(tool)

    def _register_tool(self, tool: ToolDefinition) -> None:
        if tool.name in self._tools:
            raise ValueError(f"Tool {tool.name} is already registered")
        self._tools[tool.name] = tool

    def describe(self) -> list[ToolDescriptor]:
        """Describe every tool, in registration order, for the model service."""
        return [tool.describe() for tool in self._tools.values()]

    def resolve(self, name: str) -> ToolCallable | None:
        """Find the executable for a tool name."""
        return self._tools.get(name)

    def get_tool_names(self) -> list[str]:
        """Get list of all registered tool names."""
        return list(self._tools.keys())

    def has_tool(self, name: str) -> bool:
        """Check if a tool is registered."""
        return name in self._tools


def create_tools_registry(context: FinancialDataContext | None) -> ToolsRegistry:
    """Build the default financial advisor catalogue over a data context."""
    registry = ToolsRegistry(
        [
            create_financial_summary_tool(context),
            create_transactions_tool(context),
            create_spending_by_category_tool(context),
            create_simulate_investment_growth_tool(context),
            create_ledger_accounts_tool(context),
        ]
    )
    logger.info(f"Registered tools: {', '.join(registry.get_tool_names())}")
    return registry


_tools_registry: ToolsRegistry | None = None


def get_tools_registry() -> ToolsRegistry:
    """Get or create tools registry instance."""
    global _tools_registry

    if _tools_registry is None:
        _tools_registry = create_tools_registry(get_financial_data())

    return _tools_registry

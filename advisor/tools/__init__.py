"""Tools for the AI financial advisor."""

from advisor.tools.registry import ToolsRegistry, create_tools_registry, get_tools_registry

__all__ = ["ToolsRegistry", "create_tools_registry", "get_tools_registry"]

"""Agent tools exposed by AgentDock."""

from agentdock.context import AppContext
from agentdock.tools.composio import register_composio_tool
from agentdock.tools.registry import ToolDef, ToolRegistry


async def build_tool_registry(context: AppContext) -> ToolRegistry:
    """Registry with every tool enabled for this context."""
    registry = ToolRegistry()
    await register_composio_tool(registry, context)
    return registry


__all__ = ["ToolDef", "ToolRegistry", "build_tool_registry"]

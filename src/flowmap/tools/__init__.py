"""MCP tools for graph loading and interactive exploration."""

from .graph_tools import register_graph_tools
from .interaction_tools import register_interaction_tools


def register_all_tools(mcp) -> None:
    """Register all MCP tools with the server.

    Args:
        mcp: FastMCP server instance
    """
    register_graph_tools(mcp)
    register_interaction_tools(mcp)


__all__ = [
    "register_all_tools",
    "register_graph_tools",
    "register_interaction_tools",
]

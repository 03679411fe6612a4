"""FastMCP server for flowmap - interactive dependency graph exploration."""

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastmcp import FastMCP

from .config import Settings, setup_logging
from .session import ExplorerSession
from .tools import register_all_tools

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(server: FastMCP):
    """Manage server lifecycle - create and tear down the explorer session."""
    try:
        config = Settings()
    except Exception as e:
        logger.error(f"Failed to load configuration: {e}")
        raise

    setup_logging(config.log_level)
    logger.info(
        f"Starting flowmap (layout {config.layout_mode.value}, "
        f"budget {config.node_budget}, viewport {config.viewport_width:g}x{config.viewport_height:g})"
    )

    session = ExplorerSession(config)
    selections: list[str] = []
    session.add_selection_callback(selections.append)

    context: dict[str, Any] = {
        "config": config,
        "session": session,
        "selections": selections,
        "last_input": ([], []),
    }

    logger.info("flowmap ready")

    yield context

    logger.info("Shutting down flowmap...")
    session.stop()
    logger.info("Shutdown complete")


# Create the MCP server
mcp = FastMCP("flowmap", lifespan=lifespan)

# Register all tools
register_all_tools(mcp)


def main():
    """Entry point for the flowmap MCP server."""
    mcp.run()


if __name__ == "__main__":
    main()

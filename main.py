# =============================================================================
# main.py  —  Entry Point for the ClickUp MCP Tool Server
# =============================================================================
#
# HOW TO RUN:
#   CLICKUP_API_TOKEN=pk_... python main.py
#   (or put CLICKUP_API_TOKEN in a .env file next to this script)
#
# WHAT HAPPENS:
#   1. Loads .env into the environment (python-dotenv)
#   2. Reads Settings; a missing token stops the process with exit code 1
#   3. Builds ONE ClickUpClient for the whole process
#   4. Builds the FastMCP server around that client
#   5. Serves tool calls over stdio until the host disconnects
# =============================================================================

import asyncio
import logging
import sys

from dotenv import load_dotenv

# Load environment variables from .env file (CLICKUP_API_TOKEN, etc.)
# This must happen BEFORE reading settings.
load_dotenv()

from core.clickup_client import ClickUpClient
from core.config import ConfigError, load_settings
from tools.mcp_server import configure_logging, create_server


async def run_server() -> None:
    settings = load_settings()
    configure_logging(settings.log_level)
    logging.info("Starting ClickUp MCP server (API base: %s)", settings.base_url)

    # The client lives exactly as long as the server does.
    async with ClickUpClient.from_settings(settings) as client:
        mcp = create_server(client, settings)
        await mcp.run_async(transport="stdio")


def main() -> None:
    try:
        asyncio.run(run_server())
    except ConfigError as exc:
        configure_logging()
        logging.error("Configuration error: %s", exc)
        sys.exit(1)


# =============================================================================
# Script entry point
# =============================================================================
if __name__ == "__main__":
    main()

# =============================================================================
# tools/__init__.py
# =============================================================================
# This package contains the FastMCP tool surface.
#
# ARCHITECTURAL ROLE:
#   tools/ is the translation layer between the MCP host and core/:
#     1. Validates and logs the incoming tool call
#     2. Calls a core/ function with the process-wide ClickUpClient
#     3. Converts dataclasses → dicts for the structured result
#     4. Turns every failure into an error payload + readable text
#
# WHAT TOOLS DO NOT DO:
#   - They do NOT contain aggregation logic (that's in core/)
#   - They do NOT own the client (main.py builds it and passes it in)
#
# TOOL CONTRACTS:
#   Tool names follow the host-facing kebab-case names ("get-task",
#   "get-task-comments", ...).  The docstring of each tool is what the host
#   model reads to decide when to call it.
# =============================================================================

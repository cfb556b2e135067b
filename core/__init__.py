# =============================================================================
# core/__init__.py
# =============================================================================
# This package contains ALL ClickUp logic: the REST client, the data models,
# and the task aggregation pipeline (hierarchy, comment threads, attachment
# downloads, summary rendering).
#
# ARCHITECTURAL RULE:
#   Nothing in this package imports FastMCP.  The tools/ layer wraps these
#   functions as MCP tools; the functions themselves take an explicit
#   ClickUpClient and can be driven from plain asyncio code or tests.
# =============================================================================

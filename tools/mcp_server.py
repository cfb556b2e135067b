# =============================================================================
# tools/mcp_server.py  —  FastMCP Tool Server (ALL tools in one place)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Defines ALL MCP tools the host can call.  Each tool is a thin wrapper
#   around a core/ function. It handles input/output formatting and turns
#   failures into error payloads.
#
# HOW IT WORKS (the flow):
#   1. The host model decides it needs task data (e.g., "what's on 9hx?")
#   2. It calls a tool by name via MCP (e.g., "get-task")
#   3. FastMCP routes the call to the handler registered in create_server()
#   4. The handler calls core/ logic with the shared ClickUpClient
#   5. The host receives summary text + a structured payload (ToolResult)
#
# ERROR CONTRACT:
#   No tool ever raises past this module.  Every failure comes back as
#     structured: {"error": "<message>", "tool": "<tool name>"}
#     text:       "Error <doing X>: <message>. Please check ..."
#
# RUNNING THIS SERVER:
#   main.py builds the settings and the client, then calls create_server()
#   and runs it over stdio.
# =============================================================================

import json
import logging
import sys
from dataclasses import asdict
from typing import Optional

from fastmcp import FastMCP
from fastmcp.tools.tool import ToolResult

# --- Import core logic ---
# The tools layer depends on core/ and nothing else.
from core.attachments import download_task_attachments, task_download_dir
from core.clickup_client import ClickUpAPIError, ClickUpClient
from core.comments import resolve_comments
from core.config import Settings
from core.models import parse_task
from core.task_details import TaskDetailOptions, get_task_details, render_comments

# =============================================================================
# Logging Setup
# =============================================================================
# We log to STDERR because the MCP server talks to the host over STDOUT.
# Anything we printed to stdout would corrupt the MCP JSON stream.
#
# ANSI COLOR CODES:
#     - CYAN for incoming requests (tool name + parameters)
#     - GREEN for response JSON
#     - YELLOW for intermediate status/progress messages
# =============================================================================

_CYAN = "\033[36m"     # Requests (tool calls with params)
_GREEN = "\033[32m"    # Responses (JSON output)
_YELLOW = "\033[33m"   # Status/progress messages
_RESET = "\033[0m"     # Reset to default terminal color

logger = logging.getLogger("clickup.mcp")


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [MCP] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


def _log_request(tool_name: str, **params) -> None:
    """Log an incoming tool call with its parameters in CYAN."""
    param_str = ", ".join(f"{k}={v!r}" for k, v in params.items())
    logger.info(f"{_CYAN}{tool_name} called with: {param_str}{_RESET}")


def _log_status(message: str) -> None:
    """Log an intermediate status message in YELLOW."""
    logger.info(f"{_YELLOW}  → {message}{_RESET}")


def _log_response(tool_name: str, result: ToolResult) -> ToolResult:
    """Log the structured payload as compact JSON in GREEN, then return it."""
    payload = json.dumps(result.structured_content, separators=(",", ":"), default=str)
    logger.info(f"{_GREEN}  ← {tool_name} response: {payload}{_RESET}")
    return result


# Reported as error payloads without a traceback in the log.
_EXPECTED_ERRORS = (ClickUpAPIError, OSError, ValueError)


def _error_result(
    tool_name: str,
    action: str,
    exc: Exception,
    hint: str = "Please check if the task ID is correct.",
) -> ToolResult:
    message = str(exc)
    _log_status(f"Error {action}: {message}")
    return _log_response(tool_name, ToolResult(
        content=f"Error {action}: {message}. {hint}",
        structured_content={"error": message, "tool": tool_name},
    ))


def _require(value: str, name: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValueError(f"{name} is required")
    return value


# =============================================================================
# TOOL HANDLERS
# =============================================================================
# Plain async functions taking the client explicitly.  create_server()
# registers thin closures around them so FastMCP never sees the client
# parameter in the tool schema.
# =============================================================================
async def handle_get_task(
    client: ClickUpClient,
    settings: Settings,
    task_id: str,
    download_attachments: bool = False,
    output_dir: Optional[str] = None,
    include_subtasks: bool = True,
) -> ToolResult:
    tool = "get-task"
    _log_request(tool, task_id=task_id, download_attachments=download_attachments,
                 output_dir=output_dir, include_subtasks=include_subtasks)
    try:
        options = TaskDetailOptions(
            download_attachments=download_attachments,
            output_dir=output_dir or settings.download_dir,
            include_subtasks=include_subtasks,
            max_concurrent_downloads=settings.max_concurrent_downloads,
        )
        result = await get_task_details(client, _require(task_id, "task_id"), options)
    except _EXPECTED_ERRORS as exc:
        return _error_result(tool, "fetching task", exc)
    except Exception as exc:
        logger.exception("Unexpected failure in %s", tool)
        return _error_result(tool, "fetching task", exc)

    stats = result.download_stats()
    _log_status(f"{len(result.comments)} comments, "
                f"{stats['succeeded']}/{stats['total']} attachments downloaded")
    return _log_response(tool, ToolResult(content=result.summary,
                                          structured_content=result.to_dict()))


async def handle_get_task_comments(
    client: ClickUpClient,
    task_id: str,
    include_replies: bool = True,
) -> ToolResult:
    tool = "get-task-comments"
    _log_request(tool, task_id=task_id, include_replies=include_replies)
    try:
        task_id = _require(task_id, "task_id")
        comments = await resolve_comments(client, task_id, resolve_replies=include_replies)
    except _EXPECTED_ERRORS as exc:
        return _error_result(tool, "getting task comments", exc)
    except Exception as exc:
        logger.exception("Unexpected failure in %s", tool)
        return _error_result(tool, "getting task comments", exc)

    _log_status(f"Found {len(comments)} comments")
    return _log_response(tool, ToolResult(
        content=f"Comments for task {task_id}:\n\n{render_comments(comments)}",
        structured_content={
            "task_id": task_id,
            "count": len(comments),
            "comments": [c.to_dict() for c in comments],
        },
    ))


async def handle_download_task_attachments(
    client: ClickUpClient,
    settings: Settings,
    task_id: str,
    output_dir: Optional[str] = None,
) -> ToolResult:
    tool = "download-task-attachments"
    _log_request(tool, task_id=task_id, output_dir=output_dir)
    output_dir = output_dir or settings.download_dir
    try:
        task_id = _require(task_id, "task_id")
        task = parse_task(await client.get_task(task_id))
        results = await download_task_attachments(
            client, task, True, output_dir,
            max_concurrency=settings.max_concurrent_downloads,
        )
    except _EXPECTED_ERRORS as exc:
        return _error_result(tool, "downloading attachments", exc)
    except Exception as exc:
        logger.exception("Unexpected failure in %s", tool)
        return _error_result(tool, "downloading attachments", exc)

    succeeded = [r for r in results if r.success]
    failed = [r for r in results if not r.success]
    _log_status(f"{len(succeeded)} downloaded, {len(failed)} failed")
    # Files land under the id ClickUp reports, which can differ from a custom id
    target_dir = task_download_dir(output_dir, task.id)

    lines = [f"Successfully downloaded {len(succeeded)} attachments from task {task.id}:", ""]
    lines += [f"- {r.file_name} ({r.file_path})" for r in succeeded]
    if failed:
        lines += ["", f"Failed to download {len(failed)} attachments:"]
        lines += [f"- {r.file_name}: {r.error}" for r in failed]
    if results:
        lines += ["", f"Files are saved in: {target_dir}"]

    return _log_response(tool, ToolResult(
        content="\n".join(lines),
        structured_content={
            "task_id": task.id,
            "output_dir": str(target_dir),
            "attachments": [asdict(r) for r in results],
            "download_stats": {
                "total": len(results),
                "succeeded": len(succeeded),
                "failed": len(failed),
            },
        },
    ))


async def handle_create_task_attachment(
    client: ClickUpClient, task_id: str, file_path: str
) -> ToolResult:
    tool = "create-task-attachment"
    _log_request(tool, task_id=task_id, file_path=file_path)
    hint = "Please check if the task ID and file path are correct."
    try:
        task_id = _require(task_id, "task_id")
        result = await client.create_task_attachment(task_id, _require(file_path, "file_path"))
    except _EXPECTED_ERRORS as exc:
        return _error_result(tool, "uploading attachment", exc, hint)
    except Exception as exc:
        logger.exception("Unexpected failure in %s", tool)
        return _error_result(tool, "uploading attachment", exc, hint)

    return _log_response(tool, ToolResult(
        content=f"Successfully uploaded attachment to task {task_id}. "
                f"{json.dumps(result, indent=2)}",
        structured_content=result if isinstance(result, dict) else {"result": result},
    ))


async def handle_create_task_comment(
    client: ClickUpClient, task_id: str, comment_text: str
) -> ToolResult:
    tool = "create-task-comment"
    _log_request(tool, task_id=task_id)
    try:
        task_id = _require(task_id, "task_id")
        result = await client.create_task_comment(task_id, _require(comment_text, "comment_text"))
    except _EXPECTED_ERRORS as exc:
        return _error_result(tool, "creating comment", exc)
    except Exception as exc:
        logger.exception("Unexpected failure in %s", tool)
        return _error_result(tool, "creating comment", exc)

    comment_id = result.get("id", "unknown") if isinstance(result, dict) else "unknown"
    return _log_response(tool, ToolResult(
        content=f"Comment added to task {task_id} (comment ID: {comment_id}).",
        structured_content=result if isinstance(result, dict) else {"result": result},
    ))


# =============================================================================
# Create the FastMCP server instance
# =============================================================================
def create_server(client: ClickUpClient, settings: Settings) -> FastMCP:
    """Build the FastMCP server with every tool bound to `client`."""
    mcp = FastMCP(
        "clickup",
        instructions=(
            "ClickUp task tools. Use get-task for a full view of one task "
            "(metadata, comment threads, hierarchy, attachments). Task IDs are "
            "the short ClickUp ids, e.g. '86b1x2y3z'."
        ),
    )

    # -------------------------------------------------------------------------
    # TOOL 1: get-task
    # -------------------------------------------------------------------------
    @mcp.tool(name="get-task")
    async def get_task(
        task_id: str,
        download_attachments: bool = False,
        output_dir: Optional[str] = None,
        include_subtasks: bool = True,
    ) -> ToolResult:
        """Get a complete view of one ClickUp task.

        Returns the task's metadata, every comment with its replies, its place
        in the hierarchy (workspace, space, folder, list, parent task,
        subtasks), and its attachments, downloaded locally when requested.

        Args:
            task_id: The ID of the task.
            download_attachments: Download attachments into
                <output_dir>/task_<task_id>/ (default: false, list URLs only).
            output_dir: Parent directory for downloads (default: ./downloads).
            include_subtasks: Include the task's subtasks (default: true).
        """
        return await handle_get_task(client, settings, task_id, download_attachments,
                                     output_dir, include_subtasks)

    # -------------------------------------------------------------------------
    # TOOL 2: get-task-comments
    # -------------------------------------------------------------------------
    @mcp.tool(name="get-task-comments")
    async def get_task_comments(task_id: str, include_replies: bool = True) -> ToolResult:
        """Get all comments on a task, with reply threads resolved.

        Args:
            task_id: The ID of the task.
            include_replies: Fetch each comment's replies (default: true).
                When false, reply counts are reported as unknown (null).
        """
        return await handle_get_task_comments(client, task_id, include_replies)

    # -------------------------------------------------------------------------
    # TOOL 3: download-task-attachments
    # -------------------------------------------------------------------------
    @mcp.tool(name="download-task-attachments")
    async def download_attachments(task_id: str, output_dir: Optional[str] = None) -> ToolResult:
        """Download all attachments from a task.

        Args:
            task_id: The ID of the task.
            output_dir: The directory to save the attachments to (optional).
        """
        return await handle_download_task_attachments(client, settings, task_id, output_dir)

    # -------------------------------------------------------------------------
    # TOOL 4: create-task-attachment
    # -------------------------------------------------------------------------
    @mcp.tool(name="create-task-attachment")
    async def create_task_attachment(task_id: str, file_path: str) -> ToolResult:
        """Upload a local file as an attachment to a task.

        Args:
            task_id: The ID of the task.
            file_path: The path to the file to upload.
        """
        return await handle_create_task_attachment(client, task_id, file_path)

    # -------------------------------------------------------------------------
    # TOOL 5: create-task-comment
    # -------------------------------------------------------------------------
    @mcp.tool(name="create-task-comment")
    async def create_task_comment(task_id: str, comment_text: str) -> ToolResult:
        """Add a comment to a task.

        Args:
            task_id: The ID of the task.
            comment_text: The comment body (plain text).
        """
        return await handle_create_task_comment(client, task_id, comment_text)

    return mcp

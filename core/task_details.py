# =============================================================================
# core/task_details.py  —  Task Aggregator (the get-task pipeline)
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Given one task id, assembles a complete view of the task:
#     metadata + comment threads + hierarchy + local attachment copies
#   and renders a Markdown summary of all of it.
#
# THE PIPELINE:
#   1. Fetch the task          → failure here aborts the call (TaskFetchError)
#   2. In parallel:
#        a) resolve comments   → failure is recorded, the rest continues
#        b) download attachments (per-file failures recorded inline)
#   3. Extract the hierarchy   (pure, cannot fail)
#   4. Merge into an AggregateResult and render the summary
#
# Each call builds its own result; nothing survives between calls.
# =============================================================================

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from core.attachments import download_task_attachments
from core.clickup_client import ClickUpAPIError, ClickUpClient
from core.comments import resolve_comments
from core.config import DEFAULT_DOWNLOAD_DIR
from core.hierarchy import extract_hierarchy
from core.models import AggregateResult, Comment, CommentUser, Hierarchy, Task, parse_task

logger = logging.getLogger(__name__)

NO_COMMENTS_PLACEHOLDER = "No comments found for this task."
SUBTASK_DESCRIPTION_LIMIT = 100


class TaskFetchError(ClickUpAPIError):
    """The task itself could not be fetched; the whole aggregation is aborted."""


@dataclass
class TaskDetailOptions:
    download_attachments: bool = False
    output_dir: str = DEFAULT_DOWNLOAD_DIR
    include_subtasks: bool = True
    resolve_replies: bool = True
    max_concurrent_downloads: int = 4


# =============================================================================
# PUBLIC API: get_task_details
# =============================================================================
async def get_task_details(
    client: ClickUpClient,
    task_id: str,
    options: Optional[TaskDetailOptions] = None,
) -> AggregateResult:
    """Run the full aggregation for `task_id`.

    Raises:
        TaskFetchError: if the task fetch fails.  Every other failure is
            recorded inside the returned result.
    """
    options = options or TaskDetailOptions()

    # --- Step 1: the task (fatal on failure) ---
    try:
        raw_task = await client.get_task(task_id, include_subtasks=options.include_subtasks)
    except ClickUpAPIError as exc:
        raise TaskFetchError(str(exc), status_code=exc.status_code, payload=exc.payload) from exc
    task = parse_task(raw_task)

    # --- Step 2: comments and attachments, concurrently ---
    comments_outcome, downloads = await asyncio.gather(
        _comments_or_error(client, task_id, options.resolve_replies),
        download_task_attachments(
            client,
            task,
            options.download_attachments,
            options.output_dir,
            max_concurrency=options.max_concurrent_downloads,
        ),
    )
    comments, comments_error = comments_outcome

    # --- Step 3: hierarchy ---
    hierarchy = extract_hierarchy(task)

    # --- Step 4: merge + render ---
    result = AggregateResult(
        task=task,
        comments=comments,
        hierarchy=hierarchy,
        attachments=downloads,
        downloaded=options.download_attachments and bool(task.attachments),
        comments_error=comments_error,
    )
    result.summary = render_task_summary(result)
    return result


async def _comments_or_error(
    client: ClickUpClient, task_id: str, resolve_replies: bool
) -> tuple[list[Comment], Optional[str]]:
    try:
        return await resolve_comments(client, task_id, resolve_replies), None
    except ClickUpAPIError as exc:
        logger.warning("Could not fetch comments for task %s: %s", task_id, exc)
        return [], str(exc)


# =============================================================================
# Rendering
# =============================================================================
def format_timestamp(value: Optional[str]) -> str:
    """Format a ClickUp timestamp for display.

    Args:
        value: Epoch milliseconds, as the string ClickUp sends.

    Returns:
        'YYYY-MM-DD HH:MM:SS UTC', "Unknown" when the value is empty, or the
        raw value unchanged when it is not a number.
    """
    if not value:
        return "Unknown"
    try:
        moment = datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        return str(value)
    return moment.strftime("%Y-%m-%d %H:%M:%S UTC")


def truncate(text: str, limit: int = SUBTASK_DESCRIPTION_LIMIT) -> str:
    """Shorten text for the subtask list.

    Args:
        text: The text to shorten.
        limit: Maximum number of characters kept.

    Returns:
        `text` unchanged if it fits, else its first `limit` characters + "...".
    """
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def _user_label(user: CommentUser) -> str:
    return user.username or "Unknown user"


def render_comments(comments: list[Comment]) -> str:
    """Render comments and their replies as Markdown.

    Args:
        comments: Comments in remote order, replies already resolved or not.

    Returns:
        One block per comment ("**user** (date):" then the text), replies
        indented beneath it, blocks separated by "---".  The no-comments
        placeholder when the list is empty.
    """
    if not comments:
        return NO_COMMENTS_PLACEHOLDER

    blocks = []
    for comment in comments:
        lines = [f"**{_user_label(comment.user)}** ({format_timestamp(comment.date)}):",
                 comment.text]
        for reply in comment.replies:
            lines.append(f"    ↳ **{_user_label(reply.user)}** "
                         f"({format_timestamp(reply.date)}): {reply.text}")
        blocks.append("\n".join(lines) + "\n")
    return "\n---\n\n".join(blocks)


def _render_hierarchy(hierarchy: Hierarchy) -> list[str]:
    # Absent levels get a readable placeholder instead of "None"
    subtasks = ", ".join(hierarchy.subtask_ids) if hierarchy.subtask_ids else "None"
    return [
        "## Hierarchy",
        f"- **Workspace:** {hierarchy.workspace_id or 'Unknown'}",
        f"- **Space:** {hierarchy.space_id or 'Unknown'}",
        f"- **Folder:** {hierarchy.folder_id or 'None (folderless list)'}",
        f"- **List:** {hierarchy.list_id or 'None'}",
        f"- **Parent Task:** {hierarchy.parent_task_id or 'None (top-level task)'}",
        f"- **Subtasks:** {subtasks}",
    ]


def _render_subtasks(task: Task) -> list[str]:
    """Subtask lines, each with a truncated description when it has one."""
    lines = ["## Subtasks"]
    if not task.subtasks:
        lines.append("No subtasks.")
        return lines
    for subtask in task.subtasks:
        lines.append(f"- **{subtask.name}** (ID: {subtask.id}) - "
                     f"Status: {subtask.status or 'Unknown'}")
        if subtask.description:
            lines.append(f"  {truncate(subtask.description)}")
    return lines


def _render_attachments(result: AggregateResult) -> list[str]:
    """Local paths (or failure reasons) when downloaded, remote URLs otherwise."""
    lines = ["## Attachments"]
    if not result.task.attachments:
        lines.append("No attachments.")
    elif result.downloaded:
        for download in result.attachments:
            if download.success:
                lines.append(f"- {download.file_name}: {download.file_path}")
            else:
                lines.append(f"- {download.file_name}: download failed ({download.error})")
    else:
        for attachment in result.task.attachments:
            lines.append(f"- {attachment.title}: {attachment.url}")
    return lines


def render_task_summary(result: AggregateResult) -> str:
    """Render the Markdown summary for a get-task result.

    Args:
        result: The merged task, comments, hierarchy and download outcomes.

    Returns:
        A Markdown document: title, status and dates, then the Hierarchy,
        Description, Subtasks, Comments and Attachments sections.
    """
    task = result.task

    if result.comments_error:
        comment_section = f"Comments could not be loaded: {result.comments_error}"
    else:
        comment_section = render_comments(result.comments)

    lines = [
        f"# {task.name or task.id}",
        "",
        f"**Task ID:** {task.id}",
        f"**Status:** {task.status or 'Unknown'}",
        f"**Created:** {format_timestamp(task.date_created)}",
        f"**Updated:** {format_timestamp(task.date_updated)}",
        "",
        *_render_hierarchy(result.hierarchy),
        "",
        "## Description",
        task.description or "No description provided.",
        "",
        *_render_subtasks(task),
        "",
        "## Comments",
        comment_section,
        "",
        *_render_attachments(result),
    ]
    return "\n".join(lines)

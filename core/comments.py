# =============================================================================
# core/comments.py  —  Comment Thread Resolver
# =============================================================================
#
# HOW IT WORKS:
#   1. Fetch the task's top-level comments once (remote order is kept).
#   2. If replies were not requested, every comment is marked NOT_ATTEMPTED:
#      reply metadata is "unknown", not "zero".
#   3. Otherwise fetch every comment's reply thread concurrently.  A failed
#      thread becomes an empty, resolved thread (EMPTY + reply_error); it
#      never fails the other threads or the overall call.
#
# REPLY SHAPES:
#   `GET comment/{id}/reply` has been seen answering with a bare list,
#   {"comments": [...]} or {"replies": [...]}.  normalize_replies() folds all
#   three into the same list of Reply values.
# =============================================================================

import asyncio
import logging
from typing import Any

from core.clickup_client import ClickUpAPIError, ClickUpClient
from core.models import Comment, Reply, ReplyStatus, parse_comment, parse_reply

logger = logging.getLogger(__name__)


def normalize_replies(payload: Any, parent_comment_id: str) -> list[Reply]:
    """Turn any accepted reply payload shape into an ordered list of Reply."""
    if isinstance(payload, list):
        items = payload
    elif isinstance(payload, dict):
        items = payload.get("comments")
        if items is None:
            items = payload.get("replies")
    else:
        items = None

    if not isinstance(items, list):
        return []
    return [parse_reply(item, parent_comment_id) for item in items if isinstance(item, dict)]


async def _resolve_thread(client: ClickUpClient, comment: Comment) -> Comment:
    try:
        payload = await client.get_comment_replies(comment.id)
    except ClickUpAPIError as exc:
        logger.warning("Could not fetch replies for comment %s: %s", comment.id, exc)
        comment.replies = []
        comment.reply_status = ReplyStatus.EMPTY
        comment.reply_error = str(exc)
        return comment

    comment.replies = normalize_replies(payload, comment.id)
    comment.reply_status = ReplyStatus.PRESENT if comment.replies else ReplyStatus.EMPTY
    return comment


async def resolve_comments(
    client: ClickUpClient, task_id: str, resolve_replies: bool = True
) -> list[Comment]:
    """Fetch a task's comments, optionally with every reply thread resolved.

    Raises:
        ClickUpAPIError: if the top-level comment fetch fails.  Reply-thread
            failures are absorbed per comment.
    """
    raw_comments = await client.get_task_comments(task_id)
    comments = [parse_comment(c) for c in raw_comments if isinstance(c, dict)]

    if not resolve_replies or not comments:
        return comments

    logger.info("Resolving reply threads for %d comments on task %s", len(comments), task_id)
    # gather() keeps input order, so comments stay in remote order
    return list(await asyncio.gather(*(_resolve_thread(client, c) for c in comments)))

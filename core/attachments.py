# =============================================================================
# core/attachments.py  —  Attachment Fetcher
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Downloads every attachment on a task into  <output_dir>/task_<id>/ and
#   reports one DownloadResult per attachment, success or failure.
#
# RULES:
#   - Nothing to do (flag off, or no attachments) → [] and no directory.
#   - The task directory is created once, before any download starts.  If it
#     cannot be created, every attachment gets a failed DownloadResult.
#   - Downloads run concurrently, at most `max_concurrency` at a time.
#   - A network or write failure becomes a failed DownloadResult for that
#     attachment only; sibling downloads carry on.
#
# FILE NAMES:
#   The URL-decoded basename of the attachment URL.  When two attachments
#   decode to the same name, the later one is prefixed with its attachment
#   id ("<id>_<name>"), repeatedly if the prefixed name is also taken.
# =============================================================================

import asyncio
import logging
from contextlib import aclosing
from pathlib import Path
from urllib.parse import unquote, urlsplit

import aiofiles

from core.clickup_client import ClickUpAPIError, ClickUpClient
from core.models import Attachment, DownloadResult, Task

logger = logging.getLogger(__name__)


def decoded_file_name(attachment: Attachment) -> str:
    """Local file name for an attachment, taken from its URL.

    Args:
        attachment: The attachment whose URL basename is decoded.

    Returns:
        The URL-decoded basename.  Falls back to the attachment title, then
        to its id, when the URL yields no usable name.
    """
    basename = urlsplit(attachment.url).path.rsplit("/", 1)[-1]
    # Decode first, then take the basename again: "%2E%2E%2Fx" must not escape
    name = Path(unquote(basename)).name
    if name in ("", ".", ".."):
        name = Path(attachment.title).name or attachment.id
    return name


def attachment_file_names(attachments: list[Attachment]) -> list[str]:
    """Assign a distinct file name to each attachment, in order.

    Args:
        attachments: The task's attachments, in task order.

    Returns:
        One file name per attachment.  The first holder of a name keeps it;
        later holders get "<id>_" prefixes until the name is free.
    """
    taken: set[str] = set()
    names = []
    for attachment in attachments:
        name = decoded_file_name(attachment)
        while name in taken:
            name = f"{attachment.id}_{name}"
        taken.add(name)
        names.append(name)
    return names


def task_download_dir(output_dir: str, task_id: str) -> Path:
    """Directory a task's attachments are written to.

    Args:
        output_dir: Parent download directory.
        task_id: The task id as reported by ClickUp.

    Returns:
        output_dir/task_<task_id>
    """
    return Path(output_dir) / f"task_{task_id}"


def _failed(attachment: Attachment, exc: Exception) -> DownloadResult:
    return DownloadResult(
        success=False,
        file_name=attachment.title,
        error=str(exc),
        attachment_id=attachment.id,
    )


async def _download_one(
    client: ClickUpClient,
    attachment: Attachment,
    destination: Path,
    semaphore: asyncio.Semaphore,
) -> DownloadResult:
    async with semaphore:
        try:
            async with aiofiles.open(destination, "wb") as fh:
                async with aclosing(client.iter_attachment_bytes(attachment.url)) as chunks:
                    async for chunk in chunks:
                        await fh.write(chunk)
        except (ClickUpAPIError, OSError) as exc:
            logger.warning("Failed to download attachment %s (%s): %s",
                           attachment.id, attachment.title, exc)
            destination.unlink(missing_ok=True)
            return _failed(attachment, exc)

    return DownloadResult(
        success=True,
        file_name=attachment.title,
        file_path=str(destination),
        attachment_id=attachment.id,
    )


async def download_task_attachments(
    client: ClickUpClient,
    task: Task,
    should_download: bool,
    output_dir: str,
    max_concurrency: int = 4,
) -> list[DownloadResult]:
    """Download all of `task`'s attachments; one DownloadResult each.

    Args:
        client: The ClickUp client used for the streamed downloads.
        task: The already-fetched task whose attachments to download.
        should_download: When False, nothing is downloaded and [] is returned.
        output_dir: Parent directory; files land in output_dir/task_<id>/.
        max_concurrency: Upper bound on simultaneous downloads.

    Returns:
        DownloadResults in attachment order.  Completion order is not
        guaranteed, but the mapping to attachments is one-to-one.
    """
    if not should_download or not task.attachments:
        return []

    target_dir = task_download_dir(output_dir, task.id)
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logger.warning("Cannot create download directory %s: %s", target_dir, exc)
        return [_failed(attachment, exc) for attachment in task.attachments]

    names = attachment_file_names(task.attachments)
    semaphore = asyncio.Semaphore(max(1, max_concurrency))
    logger.info("Downloading %d attachments for task %s into %s",
                len(task.attachments), task.id, target_dir)

    return list(await asyncio.gather(*(
        _download_one(client, attachment, target_dir / name, semaphore)
        for attachment, name in zip(task.attachments, names)
    )))

# =============================================================================
# core/models.py  —  Data Models (the "nouns" of the system)
# =============================================================================
#
# These dataclasses define the shape of every piece of information that flows
# through the task pipeline: the task itself, its comment threads, its place
# in the ClickUp hierarchy, and the outcome of each attachment download.
#
# LIFETIME:
#   Every model here is built fresh for one tool call and thrown away once
#   the result is returned.  Nothing is cached or shared between calls.
#
# PARSING:
#   parse_task() and parse_comment() accept raw ClickUp JSON and never raise
#   on missing fields: absent references become None (or an empty list).
# =============================================================================

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Optional


def _ref_id(value: Any) -> Optional[str]:
    """Pull the id out of a nested ClickUp reference like {"id": "123", ...}."""
    if isinstance(value, dict):
        ref = value.get("id")
        return str(ref) if ref is not None else None
    return None


def _status_name(value: Any) -> Optional[str]:
    # ClickUp sends status as {"status": "in progress", "color": ...}
    if isinstance(value, dict):
        return value.get("status")
    return value


# -----------------------------------------------------------------------------
# Attachment — one file attached to a task
# -----------------------------------------------------------------------------
@dataclass
class Attachment:
    """A file attached to a task, as reported by the task record."""

    id: str
    title: str
    url: str
    extension: Optional[str] = None
    size: Optional[int] = None
    date: Optional[str] = None           # Epoch milliseconds, as a string

    @classmethod
    def from_raw(cls, raw: dict) -> "Attachment":
        return cls(
            id=str(raw.get("id", "")),
            title=raw.get("title") or "",
            url=raw.get("url") or "",
            extension=raw.get("extension"),
            size=raw.get("size"),
            date=raw.get("date"),
        )


# -----------------------------------------------------------------------------
# Subtask — a child task carried alongside its parent
# -----------------------------------------------------------------------------
@dataclass
class Subtask:
    """A subtask entry from the parent's `subtasks` field."""

    id: str
    name: str = ""
    status: Optional[str] = None
    description: Optional[str] = None
    parent_task_id: Optional[str] = None  # Back-filled by extract_hierarchy()

    @classmethod
    def from_raw(cls, raw: dict) -> "Subtask":
        return cls(
            id=str(raw.get("id", "")),
            name=raw.get("name") or "",
            status=_status_name(raw.get("status")),
            description=raw.get("text_content") or raw.get("description"),
            parent_task_id=raw.get("parent"),
        )


# -----------------------------------------------------------------------------
# Task — the aggregation root
# -----------------------------------------------------------------------------
# The raw list/folder/space/parent references are kept as plain ids.  The
# Hierarchy Extractor turns them into a Hierarchy value.
# -----------------------------------------------------------------------------
@dataclass
class Task:
    """A ClickUp task, trimmed to the fields the tools report on."""

    id: str
    name: str
    description: Optional[str] = None
    status: Optional[str] = None
    date_created: Optional[str] = None
    date_updated: Optional[str] = None
    url: Optional[str] = None

    # --- Raw structural references ---
    team_id: Optional[str] = None
    space_id: Optional[str] = None
    folder_id: Optional[str] = None
    list_id: Optional[str] = None
    parent_id: Optional[str] = None

    attachments: list[Attachment] = field(default_factory=list)
    # None means the record had no `subtasks` field at all (not requested)
    subtasks: Optional[list[Subtask]] = None


def parse_task(raw: dict) -> Task:
    """Build a Task from a `GET task/{id}` response body."""
    raw_subtasks = raw.get("subtasks")
    subtasks = None
    if isinstance(raw_subtasks, list):
        subtasks = [Subtask.from_raw(s) for s in raw_subtasks if isinstance(s, dict)]

    team_id = raw.get("team_id")
    return Task(
        id=str(raw.get("id", "")),
        name=raw.get("name") or "",
        description=raw.get("text_content") or raw.get("description"),
        status=_status_name(raw.get("status")),
        date_created=raw.get("date_created"),
        date_updated=raw.get("date_updated"),
        url=raw.get("url"),
        team_id=str(team_id) if team_id is not None else None,
        space_id=_ref_id(raw.get("space")),
        folder_id=_ref_id(raw.get("folder")),
        list_id=_ref_id(raw.get("list")),
        parent_id=raw.get("parent"),
        attachments=[
            Attachment.from_raw(a) for a in raw.get("attachments") or [] if isinstance(a, dict)
        ],
        subtasks=subtasks,
    )


# -----------------------------------------------------------------------------
# Comments and replies
# -----------------------------------------------------------------------------
class ReplyStatus(str, Enum):
    """Tri-state for reply resolution.

    NOT_ATTEMPTED is the "unknown" state: replies were never fetched, so
    has_replies / reply_count are reported as null rather than false / 0.
    """

    NOT_ATTEMPTED = "not_attempted"
    EMPTY = "empty"
    PRESENT = "present"


@dataclass
class CommentUser:
    id: Optional[str] = None
    username: Optional[str] = None
    email: Optional[str] = None

    @classmethod
    def from_raw(cls, raw: Any) -> "CommentUser":
        if not isinstance(raw, dict):
            return cls()
        user_id = raw.get("id")
        return cls(
            id=str(user_id) if user_id is not None else None,
            username=raw.get("username"),
            email=raw.get("email"),
        )


@dataclass
class Reply:
    """A reply inside a comment thread.  Replies never nest further."""

    id: str
    text: str
    user: CommentUser
    date: Optional[str] = None
    reactions: list = field(default_factory=list)
    attachments: list = field(default_factory=list)
    parent_comment_id: Optional[str] = None


@dataclass
class Comment:
    """A top-level task comment plus its (possibly unresolved) reply thread."""

    id: str
    text: str
    user: CommentUser
    date: Optional[str] = None
    reactions: list = field(default_factory=list)
    attachments: list = field(default_factory=list)
    replies: list[Reply] = field(default_factory=list)
    reply_status: ReplyStatus = ReplyStatus.NOT_ATTEMPTED
    reply_error: Optional[str] = None

    @property
    def has_replies(self) -> Optional[bool]:
        if self.reply_status is ReplyStatus.NOT_ATTEMPTED:
            return None
        return self.reply_status is ReplyStatus.PRESENT

    @property
    def reply_count(self) -> Optional[int]:
        if self.reply_status is ReplyStatus.NOT_ATTEMPTED:
            return None
        return len(self.replies)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["reply_status"] = self.reply_status.value
        data["has_replies"] = self.has_replies
        data["reply_count"] = self.reply_count
        return data


def _comment_fields(raw: dict) -> dict:
    return {
        "id": str(raw.get("id", "")),
        "text": raw.get("comment_text") or raw.get("text") or "",
        "user": CommentUser.from_raw(raw.get("user")),
        "date": raw.get("date"),
        "reactions": list(raw.get("reactions") or []),
        "attachments": list(raw.get("attachments") or []),
    }


def parse_comment(raw: dict) -> Comment:
    return Comment(**_comment_fields(raw))


def parse_reply(raw: dict, parent_comment_id: str) -> Reply:
    return Reply(**_comment_fields(raw), parent_comment_id=parent_comment_id)


# -----------------------------------------------------------------------------
# Hierarchy — where the task sits in Workspace → Space → Folder → List
# -----------------------------------------------------------------------------
# Every field is always present.  None / [] are explicit "nothing here"
# values so consumers can rely on a stable shape.
# -----------------------------------------------------------------------------
@dataclass
class Hierarchy:
    workspace_id: Optional[str]
    space_id: Optional[str]
    folder_id: Optional[str]
    list_id: Optional[str]
    parent_task_id: Optional[str]        # None = top-level task
    subtask_ids: list[str] = field(default_factory=list)


# -----------------------------------------------------------------------------
# DownloadResult — outcome of one attachment download
# -----------------------------------------------------------------------------
@dataclass
class DownloadResult:
    """One per attempted attachment, success or not."""

    success: bool
    file_name: str                       # Original attachment title
    file_path: Optional[str] = None      # Set on success
    error: Optional[str] = None          # Set on failure
    attachment_id: Optional[str] = None


# -----------------------------------------------------------------------------
# AggregateResult — the deliverable of get-task
# -----------------------------------------------------------------------------
@dataclass
class AggregateResult:
    task: Task
    comments: list[Comment]
    hierarchy: Hierarchy
    attachments: list[DownloadResult] = field(default_factory=list)
    downloaded: bool = False
    summary: str = ""
    comments_error: Optional[str] = None

    def download_stats(self) -> dict:
        succeeded = sum(1 for r in self.attachments if r.success)
        return {
            "total": len(self.attachments),
            "succeeded": succeeded,
            "failed": len(self.attachments) - succeeded,
        }

    def to_dict(self) -> dict:
        return {
            "task": asdict(self.task),
            "comments": [c.to_dict() for c in self.comments],
            "comments_error": self.comments_error,
            "hierarchy": asdict(self.hierarchy),
            "attachments": [asdict(r) for r in self.attachments],
            "downloaded": self.downloaded,
            "download_stats": self.download_stats(),
            "summary": self.summary,
        }

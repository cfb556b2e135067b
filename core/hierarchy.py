# =============================================================================
# core/hierarchy.py  —  Where a task sits in the ClickUp hierarchy
# =============================================================================
#
#   Workspace (team) → Space → Folder → List → Task → Subtasks
#
# Pure function, no I/O, no failure path: any missing reference maps to None
# (or an empty subtask list), never an exception.
# =============================================================================

from core.models import Hierarchy, Task


def extract_hierarchy(task: Task) -> Hierarchy:
    """Derive the Hierarchy value for `task`.

    Side effect: subtasks that arrived without their own parent reference
    get `parent_task_id` set to this task's id.  The returned Hierarchy is
    built first and is not affected by the back-fill.
    """
    subtasks = task.subtasks or []

    hierarchy = Hierarchy(
        workspace_id=task.team_id,
        space_id=task.space_id,
        folder_id=task.folder_id,
        list_id=task.list_id,
        parent_task_id=task.parent_id,
        subtask_ids=[s.id for s in subtasks],
    )

    for subtask in subtasks:
        if subtask.parent_task_id is None:
            subtask.parent_task_id = task.id

    return hierarchy

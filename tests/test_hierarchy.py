# tests/test_hierarchy.py

from __future__ import annotations

from dataclasses import asdict

from core.hierarchy import extract_hierarchy
from core.models import parse_task

from .fakes import make_task


def test_hierarchy_for_folder_task_backfills_subtask_parent() -> None:
    task = parse_task(make_task())

    hierarchy = extract_hierarchy(task)

    assert hierarchy.workspace_id == "w1"
    assert hierarchy.folder_id == "f1"
    assert hierarchy.list_id == "l1"
    assert hierarchy.parent_task_id is None
    assert hierarchy.subtask_ids == ["9hy"]
    assert task.subtasks[0].parent_task_id == "9hx"


def test_hierarchy_keeps_every_field_for_bare_task() -> None:
    task = parse_task({"id": "solo", "name": "Standalone"})

    data = asdict(extract_hierarchy(task))

    assert data == {
        "workspace_id": None,
        "space_id": None,
        "folder_id": None,
        "list_id": None,
        "parent_task_id": None,
        "subtask_ids": [],
    }


def test_hierarchy_does_not_overwrite_existing_subtask_parent() -> None:
    raw = make_task(
        parent="epic-1",
        subtasks=[{"id": "a", "parent": "elsewhere"}, {"id": "b"}],
    )
    task = parse_task(raw)

    hierarchy = extract_hierarchy(task)

    assert hierarchy.parent_task_id == "epic-1"
    assert hierarchy.subtask_ids == ["a", "b"]
    assert [s.parent_task_id for s in task.subtasks] == ["elsewhere", "9hx"]

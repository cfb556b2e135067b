# tests/test_mcp_server.py

from __future__ import annotations

from pathlib import Path

import pytest
from fastmcp import Client

from tools.mcp_server import (
    create_server,
    handle_create_task_comment,
    handle_download_task_attachments,
    handle_get_task,
    handle_get_task_comments,
)

from .fakes import FakeClickUpClient, make_attachment, make_comment, make_task


def _text(result) -> str:
    return result.content[0].text


@pytest.mark.asyncio
async def test_get_task_returns_summary_and_structured_payload(settings) -> None:
    client = FakeClickUpClient(task=make_task(), comments=[make_comment("c1", "hello")])

    result = await handle_get_task(client, settings, "9hx")

    payload = result.structured_content
    assert payload["task"]["id"] == "9hx"
    assert payload["hierarchy"] == {
        "workspace_id": "w1",
        "space_id": "s1",
        "folder_id": "f1",
        "list_id": "l1",
        "parent_task_id": None,
        "subtask_ids": ["9hy"],
    }
    assert payload["comments"][0]["reply_status"] == "empty"
    assert payload["download_stats"] == {"total": 0, "succeeded": 0, "failed": 0}
    assert _text(result) == payload["summary"]


@pytest.mark.asyncio
async def test_get_task_failure_is_an_error_payload(settings) -> None:
    client = FakeClickUpClient(task_error="ClickUp API error (404): not found")

    result = await handle_get_task(client, settings, "nope")

    assert result.structured_content == {"error": "ClickUp API error (404): not found", "tool": "get-task"}
    assert _text(result) == (
        "Error fetching task: ClickUp API error (404): not found. "
        "Please check if the task ID is correct."
    )


@pytest.mark.asyncio
async def test_blank_task_id_is_rejected_without_remote_calls(settings) -> None:
    client = FakeClickUpClient(task=make_task())

    result = await handle_get_task(client, settings, "  ")

    assert result.structured_content["error"] == "task_id is required"
    assert client.calls == []


@pytest.mark.asyncio
async def test_get_task_comments_without_replies_reports_unknown_counts() -> None:
    client = FakeClickUpClient(comments=[make_comment("c1", "hi")])

    result = await handle_get_task_comments(client, "9hx", include_replies=False)

    assert result.structured_content["count"] == 1
    assert result.structured_content["comments"][0]["reply_count"] is None
    assert _text(result).startswith("Comments for task 9hx:\n\n**dana**")


@pytest.mark.asyncio
async def test_download_attachments_uses_default_dir(settings) -> None:
    attachments = [make_attachment("a1", "one.txt"), make_attachment("a2", "two.txt")]
    client = FakeClickUpClient(task=make_task(attachments=attachments),
                               failing_urls=(attachments[1]["url"],))

    result = await handle_download_task_attachments(client, settings, "9hx")

    payload = result.structured_content
    assert payload["output_dir"] == str(Path(settings.download_dir) / "task_9hx")
    assert payload["download_stats"] == {"total": 2, "succeeded": 1, "failed": 1}
    assert "Successfully downloaded 1 attachments from task 9hx" in _text(result)
    assert "Failed to download 1 attachments" in _text(result)


@pytest.mark.asyncio
async def test_download_reports_directory_of_resolved_task_id(settings) -> None:
    client = FakeClickUpClient(task=make_task(attachments=[make_attachment("a1", "one.txt")]))

    result = await handle_download_task_attachments(client, settings, "DEV-42")

    target = Path(settings.download_dir) / "task_9hx"
    payload = result.structured_content
    assert ("get_task", "DEV-42", False) in client.calls
    assert payload["task_id"] == "9hx"
    assert payload["output_dir"] == str(target)
    assert payload["attachments"][0]["file_path"] == str(target / "one.txt")
    assert f"Files are saved in: {target}" in _text(result)


@pytest.mark.asyncio
async def test_create_comment_reports_new_id() -> None:
    client = FakeClickUpClient()

    result = await handle_create_task_comment(client, "9hx", "Ship it")

    assert "comment ID: c-new" in _text(result)
    assert ("create_task_comment", "9hx", "Ship it") in client.calls


@pytest.mark.asyncio
async def test_server_exposes_tools_over_mcp(settings) -> None:
    client = FakeClickUpClient(task=make_task(), comments=[])
    server = create_server(client, settings)

    async with Client(server) as mcp_client:
        tools = await mcp_client.list_tools()
        result = await mcp_client.call_tool("get-task", {"task_id": "9hx"})

    assert {t.name for t in tools} == {
        "get-task",
        "get-task-comments",
        "download-task-attachments",
        "create-task-attachment",
        "create-task-comment",
    }
    assert result.structured_content["task"]["name"] == "Fix login redirect"
    assert "No comments found for this task." in result.content[0].text

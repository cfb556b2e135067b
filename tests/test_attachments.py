# tests/test_attachments.py

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from core.attachments import attachment_file_names, decoded_file_name, download_task_attachments
from core.models import Attachment, parse_task

from .fakes import FakeClickUpClient, make_attachment, make_task


@pytest.mark.asyncio
async def test_no_attachments_means_no_results_and_no_directory(tmp_path: Path) -> None:
    task = parse_task(make_task(attachments=[]))

    results = await download_task_attachments(FakeClickUpClient(), task, True, str(tmp_path / "out"))

    assert results == []
    assert not (tmp_path / "out").exists()


@pytest.mark.asyncio
async def test_download_flag_off_skips_everything(tmp_path: Path) -> None:
    task = parse_task(make_task(attachments=[make_attachment("a1", "spec.pdf")]))
    client = FakeClickUpClient()

    results = await download_task_attachments(client, task, False, str(tmp_path))

    assert results == []
    assert not (tmp_path / "task_9hx").exists()
    assert client.calls == []


@pytest.mark.asyncio
async def test_one_failed_download_is_isolated(tmp_path: Path) -> None:
    good = make_attachment("a1", "screenshot.png")
    bad = make_attachment("a2", "trace.log")
    task = parse_task(make_task(attachments=[good, bad]))
    client = FakeClickUpClient(files={good["url"]: b"\x89PNG"}, failing_urls=(bad["url"],))

    results = await download_task_attachments(client, task, True, str(tmp_path))

    assert len(results) == 2
    by_id = {r.attachment_id: r for r in results}
    assert by_id["a1"].success is True
    assert Path(by_id["a1"].file_path).read_bytes() == b"\x89PNG"
    assert by_id["a2"].success is False
    assert by_id["a2"].file_name == "trace.log"
    assert "No response received" in by_id["a2"].error
    assert not (tmp_path / "task_9hx" / "trace.log").exists()
    assert sum(r.success for r in results) + sum(not r.success for r in results) == 2


@pytest.mark.asyncio
async def test_existing_task_directory_is_reused(tmp_path: Path) -> None:
    (tmp_path / "task_9hx").mkdir()
    task = parse_task(make_task(attachments=[make_attachment("a1", "notes.txt")]))

    results = await download_task_attachments(FakeClickUpClient(), task, True, str(tmp_path))

    assert results[0].success
    assert results[0].file_path == str(tmp_path / "task_9hx" / "notes.txt")


def test_file_names_are_url_decoded() -> None:
    attachment = Attachment(id="a1", title="Q3 plan.pdf",
                            url="https://t.clickup-attachments.com/a1/Q3%20plan%20%28final%29.pdf")

    assert decoded_file_name(attachment) == "Q3 plan (final).pdf"


def test_decoded_traversal_is_stripped() -> None:
    attachment = Attachment(id="a1", title="x", url="https://host/a1/..%2F..%2Fetc%2Fpasswd")

    assert decoded_file_name(attachment) == "passwd"


def test_colliding_names_are_prefixed_with_attachment_id() -> None:
    attachments = [
        Attachment(id="a1", title="image.png", url="https://host/a1/image.png"),
        Attachment(id="a2", title="image.png", url="https://host/a2/image.png"),
        Attachment(id="a3", title="other.png", url="https://host/a3/other.png"),
    ]

    assert attachment_file_names(attachments) == ["image.png", "a2_image.png", "other.png"]


def test_prefixed_name_never_reuses_a_taken_name() -> None:
    attachments = [
        Attachment(id="a1", title="a_x.png", url="https://host/a1/a_x.png"),
        Attachment(id="a2", title="x.png", url="https://host/a2/x.png"),
        Attachment(id="a", title="x.png", url="https://host/a/x.png"),
    ]

    names = attachment_file_names(attachments)

    assert names == ["a_x.png", "x.png", "a_a_x.png"]
    assert len(set(names)) == len(names)


@pytest.mark.asyncio
async def test_unwritable_output_dir_fails_every_attachment(tmp_path: Path) -> None:
    blocker = tmp_path / "out"
    blocker.write_text("not a directory")
    task = parse_task(make_task(attachments=[
        make_attachment("a1", "screenshot.png"),
        make_attachment("a2", "trace.log"),
    ]))
    client = FakeClickUpClient()

    results = await download_task_attachments(client, task, True, str(blocker))

    assert [r.attachment_id for r in results] == ["a1", "a2"]
    assert all(r.success is False and r.error for r in results)
    assert all(r.file_path is None for r in results)
    assert client.calls == []


class _GatedClient(FakeClickUpClient):
    """Holds every download open until released, tracking how many overlap."""

    def __init__(self) -> None:
        super().__init__()
        self.release = asyncio.Event()
        self.in_flight = 0
        self.peak = 0

    async def iter_attachment_bytes(self, url: str):
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        try:
            await self.release.wait()
            yield b"data"
        finally:
            self.in_flight -= 1


@pytest.mark.asyncio
async def test_downloads_respect_the_concurrency_cap(tmp_path: Path) -> None:
    task = parse_task(make_task(attachments=[
        make_attachment(f"a{i}", f"file{i}.bin") for i in range(5)
    ]))
    client = _GatedClient()

    pending = asyncio.create_task(
        download_task_attachments(client, task, True, str(tmp_path), max_concurrency=2)
    )
    for _ in range(200):
        if client.peak >= 2:
            break
        await asyncio.sleep(0.01)
    # Give a third download the chance to start if the cap were broken
    await asyncio.sleep(0.05)
    assert client.peak == 2
    assert client.in_flight == 2

    client.release.set()
    results = await pending

    assert client.peak == 2
    assert all(r.success for r in results)
    assert len(results) == 5

"""Shared fixtures.

The project uses a flat layout (core/, tools/ at the root), so the root is
put on sys.path for runs without an editable install.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from core.config import Settings  # noqa: E402


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        api_token="pk_test",
        download_dir=str(tmp_path / "downloads"),
        request_timeout=5.0,
        max_concurrent_downloads=2,
    )

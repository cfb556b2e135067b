# =============================================================================
# core/clickup_client.py  —  ClickUp REST v2 client (async, httpx)
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Wraps the handful of ClickUp endpoints the tools need in an explicitly
#   constructed client object.  main.py builds ONE client per process and
#   passes it into every function that talks to ClickUp. There is no
#   module-level client.
#
# ENDPOINTS USED:
#   GET  task/{id}                 (optionally ?include_subtasks=true)
#   GET  task/{id}/comment
#   GET  comment/{id}/reply
#   POST task/{id}/comment
#   POST task/{id}/attachment      (multipart)
#   GET  <attachment url>          (streamed, no Authorization header)
#
# ERRORS:
#   Every httpx failure is converted into ClickUpAPIError at the call that
#   issued it, so callers only ever deal with one exception type:
#     - HTTP status error   → "ClickUp API error (404): {...body...}"
#     - no response/timeout → "ClickUp API request error: No response received (...)"
# =============================================================================

import json
import logging
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any, Optional

import aiofiles
import httpx

from core.config import DEFAULT_BASE_URL, Settings

logger = logging.getLogger(__name__)


class ClickUpAPIError(Exception):
    """A ClickUp call failed (HTTP error, no response, or malformed body)."""

    def __init__(self, message: str, status_code: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


def _api_error(exc: httpx.HTTPError) -> ClickUpAPIError:
    if isinstance(exc, httpx.HTTPStatusError):
        response = exc.response
        try:
            payload = response.json()
        except ValueError:
            payload = response.text
        return ClickUpAPIError(
            f"ClickUp API error ({response.status_code}): {json.dumps(payload)}",
            status_code=response.status_code,
            payload=payload,
        )
    if isinstance(exc, httpx.RequestError):
        return ClickUpAPIError(f"ClickUp API request error: No response received ({exc})")
    return ClickUpAPIError(f"ClickUp API error: {exc}")


class ClickUpClient:
    """Async ClickUp client.  Use as `async with ClickUpClient(...) as client:`."""

    def __init__(
        self,
        api_token: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not api_token:
            raise ValueError("ClickUp API token is required")

        self.base_url = base_url.rstrip("/")
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Authorization": api_token},
            timeout=timeout,
            transport=transport,
        )
        # Attachment URLs are pre-signed storage links; they must not carry
        # the API token.
        self._download_http = httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
        )

    @classmethod
    def from_settings(
        cls, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "ClickUpClient":
        return cls(
            settings.api_token,
            base_url=settings.base_url,
            timeout=settings.request_timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "ClickUpClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()
        await self._download_http.aclose()

    # -------------------------------------------------------------------------
    # Transport helper
    # -------------------------------------------------------------------------
    async def _request(self, method: str, path: str, **kwargs) -> Any:
        logger.debug("%s %s", method, path)
        try:
            response = await self._http.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise _api_error(exc) from exc
        try:
            return response.json()
        except ValueError as exc:
            raise ClickUpAPIError(
                f"ClickUp API error: invalid JSON in response to {method} {path}",
                status_code=response.status_code,
            ) from exc

    # -------------------------------------------------------------------------
    # Tasks
    # -------------------------------------------------------------------------
    async def get_task(self, task_id: str, include_subtasks: bool = False) -> dict:
        params = {"include_subtasks": "true"} if include_subtasks else None
        data = await self._request("GET", f"/task/{task_id}", params=params)
        if not isinstance(data, dict):
            raise ClickUpAPIError(f"ClickUp API error: unexpected task payload for {task_id}")
        return data

    # -------------------------------------------------------------------------
    # Comments
    # -------------------------------------------------------------------------
    async def get_task_comments(self, task_id: str) -> list[dict]:
        data = await self._request("GET", f"/task/{task_id}/comment")
        comments = data.get("comments") if isinstance(data, dict) else None
        if not isinstance(comments, list):
            raise ClickUpAPIError(f"ClickUp API error: unexpected comment payload for task {task_id}")
        return comments

    async def get_comment_replies(self, comment_id: str) -> Any:
        """Return the raw reply payload; shape normalization is the caller's job."""
        return await self._request("GET", f"/comment/{comment_id}/reply")

    async def create_task_comment(self, task_id: str, comment_text: str) -> dict:
        return await self._request(
            "POST", f"/task/{task_id}/comment", json={"comment_text": comment_text}
        )

    # -------------------------------------------------------------------------
    # Attachments
    # -------------------------------------------------------------------------
    async def create_task_attachment(self, task_id: str, file_path: str) -> dict:
        path = Path(file_path)
        async with aiofiles.open(path, "rb") as fh:
            content = await fh.read()
        return await self._request(
            "POST",
            f"/task/{task_id}/attachment",
            files={"attachment": (path.name, content)},
        )

    async def iter_attachment_bytes(self, url: str) -> AsyncIterator[bytes]:
        """Stream an attachment body chunk by chunk."""
        try:
            async with self._download_http.stream("GET", url) as response:
                if response.is_error:
                    await response.aread()
                response.raise_for_status()
                async for chunk in response.aiter_bytes():
                    yield chunk
        except httpx.HTTPError as exc:
            raise _api_error(exc) from exc

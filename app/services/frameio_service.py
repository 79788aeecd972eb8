from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx
from fastapi import Request

from app.config import FRAMEIO_API_HOST, FRAMEIO_BASE_URL, FrameIOSettings
from app.exceptions.errors import ApiError
from app.schemas.frameio import (
    FolderChild,
    FrameIOComment,
    FrameIOFile,
    FrameIOFolder,
    FrameIOProject,
    FrameIOShare,
)
from app.services.token_service import FrameIOTokenRepository, FrameIOTokenService

logger = logging.getLogger(__name__)

DEFAULT_MAX_PAGES = 10
PAGE_SIZE = 50


class FrameIOService:
    """Frame.io V4 API client scoped to one account and workspace."""

    def __init__(
        self,
        settings: FrameIOSettings,
        token_service: Optional[FrameIOTokenService] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        repository: Optional[FrameIOTokenRepository] = None,
    ) -> None:
        self.settings = settings
        self.account_id = settings.account_id
        self.workspace_id = settings.workspace_id
        self._client = http_client or httpx.AsyncClient(timeout=settings.http_timeout)
        self.tokens = token_service or FrameIOTokenService(
            settings, repository=repository, http_client=self._client
        )

    async def __aenter__(self) -> "FrameIOService":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    # -------------------------------------------------------------------------
    # Generic request plumbing
    # -------------------------------------------------------------------------

    @staticmethod
    def _api_url(path: str) -> str:
        return path if path.startswith("http") else f"{FRAMEIO_BASE_URL}{path}"

    @staticmethod
    def _next_url(next_link: str) -> str:
        # links.next comes back as "/v4/accounts/..." without the host
        return next_link if next_link.startswith("http") else f"{FRAMEIO_API_HOST}{next_link}"

    async def request(
        self,
        path: str,
        method: str = "GET",
        *,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """Send an authenticated request and return the decoded JSON body.

        Returns ``None`` for 204 responses. Raises ``ApiError`` with the raw
        body for any non-2xx status.
        """
        token = await self.tokens.get_valid_access_token()
        request_headers = {
            **(headers or {}),
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

        response = await self._client.request(
            method,
            self._api_url(path),
            json=json,
            params=params,
            headers=request_headers,
        )

        if not response.is_success:
            raise ApiError(response.status_code, response.text)

        if response.status_code == 204:
            return None

        return response.json()

    async def request_paginated(self, path: str, max_pages: int = DEFAULT_MAX_PAGES) -> List[Dict[str, Any]]:
        """Follow ``links.next`` and concatenate every page's ``data``.

        Stops after ``max_pages`` pages even if more are advertised, so the
        result may be incomplete for very large collections.
        """
        items: List[Dict[str, Any]] = []
        url: Optional[str] = self._api_url(path)
        page = 0

        while url and page < max_pages:
            result = await self.request(url) or {}
            items.extend(result.get("data") or [])

            next_link = (result.get("links") or {}).get("next")
            url = self._next_url(next_link) if next_link else None
            page += 1

        if url:
            logger.warning(f"Stopped paginating {path} after {max_pages} pages ({len(items)} items)")

        return items

    # -------------------------------------------------------------------------
    # Projects
    # -------------------------------------------------------------------------

    async def list_projects(self) -> List[FrameIOProject]:
        items = await self.request_paginated(
            f"/accounts/{self.account_id}/workspaces/{self.workspace_id}/projects?page_size={PAGE_SIZE}"
        )
        return [FrameIOProject.model_validate(item) for item in items]

    async def get_project(self, project_id: str) -> FrameIOProject:
        resp = await self.request(f"/accounts/{self.account_id}/projects/{project_id}")
        return FrameIOProject.model_validate(resp["data"])

    # -------------------------------------------------------------------------
    # Folders
    # -------------------------------------------------------------------------

    async def list_folder_children(self, folder_id: str) -> List[FolderChild]:
        """List files and sub-folders of a folder, discriminated by ``type``."""
        items = await self.request_paginated(
            f"/accounts/{self.account_id}/folders/{folder_id}/children?page_size={PAGE_SIZE}"
        )
        return [
            FrameIOFolder.model_validate(item) if item.get("type") == "folder" else FrameIOFile.model_validate(item)
            for item in items
        ]

    async def get_folder(self, folder_id: str) -> FrameIOFolder:
        resp = await self.request(f"/accounts/{self.account_id}/folders/{folder_id}")
        return FrameIOFolder.model_validate(resp["data"])

    async def create_folder(self, parent_folder_id: str, name: str) -> FrameIOFolder:
        resp = await self.request(
            f"/accounts/{self.account_id}/folders/{parent_folder_id}/folders",
            "POST",
            json={"name": name},
        )
        return FrameIOFolder.model_validate(resp["data"])

    async def delete_folder(self, folder_id: str) -> None:
        await self.request(f"/accounts/{self.account_id}/folders/{folder_id}", "DELETE")

    # -------------------------------------------------------------------------
    # Files
    # -------------------------------------------------------------------------

    async def get_file(self, file_id: str) -> FrameIOFile:
        resp = await self.request(f"/accounts/{self.account_id}/files/{file_id}")
        return FrameIOFile.model_validate(resp["data"])

    async def create_file_for_upload(
        self, folder_id: str, name: str, file_size: int, media_type: str
    ) -> FrameIOFile:
        """Create a file placeholder; the caller PUTs the bytes to ``upload_url``."""
        resp = await self.request(
            f"/accounts/{self.account_id}/folders/{folder_id}/files",
            "POST",
            json={"name": name, "filesize": file_size, "filetype": media_type},
        )
        return FrameIOFile.model_validate(resp["data"])

    async def delete_file(self, file_id: str) -> None:
        await self.request(f"/accounts/{self.account_id}/files/{file_id}", "DELETE")

    # -------------------------------------------------------------------------
    # Comments
    # -------------------------------------------------------------------------

    async def list_comments(self, file_id: str) -> List[FrameIOComment]:
        items = await self.request_paginated(
            f"/accounts/{self.account_id}/files/{file_id}/comments?page_size={PAGE_SIZE}"
        )
        return [FrameIOComment.model_validate(item) for item in items]

    async def create_comment(
        self, file_id: str, text: str, timestamp: Optional[float] = None
    ) -> FrameIOComment:
        body: Dict[str, Any] = {"text": text}
        if timestamp is not None:
            body["timestamp"] = timestamp
        resp = await self.request(
            f"/accounts/{self.account_id}/files/{file_id}/comments",
            "POST",
            json=body,
        )
        return FrameIOComment.model_validate(resp["data"])

    # -------------------------------------------------------------------------
    # Shares (review links)
    # -------------------------------------------------------------------------

    async def list_shares(self, project_id: str) -> List[FrameIOShare]:
        items = await self.request_paginated(
            f"/accounts/{self.account_id}/projects/{project_id}/shares?page_size={PAGE_SIZE}"
        )
        return [FrameIOShare.model_validate(item) for item in items]

    # No create_share: the V4 API rejects every body format for it.

    async def delete_share(self, share_id: str) -> None:
        await self.request(f"/accounts/{self.account_id}/shares/{share_id}", "DELETE")


# Factory function for dependency injection
def get_frameio_service(request: Request) -> FrameIOService:
    """Return the service built at application startup."""
    return request.app.state.frameio

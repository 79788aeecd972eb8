from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import RedirectResponse

from app.schemas.frameio import (
    CommentCreate,
    FileUploadCreate,
    FolderChild,
    FolderCreate,
    FrameIOComment,
    FrameIOFile,
    FrameIOFolder,
    FrameIOProject,
    FrameIOShare,
    FrameIOStatus,
)
from app.services.frameio_service import FrameIOService, get_frameio_service

router = APIRouter(prefix="/api/admin/frameio", tags=["Frame.io"])


# -------------------------------------------------------------------------
# OAuth flow
# -------------------------------------------------------------------------

@router.get("/auth-url")
async def frameio_auth_url(
    request: Request,
    state: Optional[str] = None,
    redirect: bool = False,
    service: FrameIOService = Depends(get_frameio_service),
):
    """Return the Adobe IMS consent URL, or redirect to it for browsers."""
    authorization_url = service.tokens.get_auth_url(state)

    wants_html = "text/html" in request.headers.get("accept", "").lower()
    if redirect or wants_html:
        return RedirectResponse(url=authorization_url, status_code=307)

    return {"authorization_url": authorization_url}


@router.get("/auth-callback")
async def frameio_auth_callback(
    code: str = Query(..., description="Authorization code returned by Adobe IMS"),
    state: Optional[str] = None,
    service: FrameIOService = Depends(get_frameio_service),
) -> Dict[str, Any]:
    """Exchange the authorization code and store the new credential row."""
    await service.tokens.exchange_code_for_tokens(code)
    return {"status": "connected", "state": state}


@router.get("/status", response_model=FrameIOStatus)
async def frameio_status(service: FrameIOService = Depends(get_frameio_service)) -> FrameIOStatus:
    return await service.tokens.get_status()


# -------------------------------------------------------------------------
# Projects & shares
# -------------------------------------------------------------------------

@router.get("/projects")
async def list_projects(service: FrameIOService = Depends(get_frameio_service)) -> List[FrameIOProject]:
    return await service.list_projects()


@router.get("/projects/{project_id}")
async def get_project(project_id: str, service: FrameIOService = Depends(get_frameio_service)) -> FrameIOProject:
    return await service.get_project(project_id)


@router.get("/projects/{project_id}/shares")
async def list_shares(project_id: str, service: FrameIOService = Depends(get_frameio_service)) -> List[FrameIOShare]:
    return await service.list_shares(project_id)


@router.delete("/shares/{share_id}", status_code=204)
async def delete_share(share_id: str, service: FrameIOService = Depends(get_frameio_service)) -> None:
    await service.delete_share(share_id)


# -------------------------------------------------------------------------
# Folders
# -------------------------------------------------------------------------

@router.get("/folders/{folder_id}")
async def get_folder(folder_id: str, service: FrameIOService = Depends(get_frameio_service)) -> FrameIOFolder:
    return await service.get_folder(folder_id)


@router.get("/folders/{folder_id}/children")
async def list_folder_children(
    folder_id: str, service: FrameIOService = Depends(get_frameio_service)
) -> List[FolderChild]:
    return await service.list_folder_children(folder_id)


@router.post("/folders/{folder_id}/folders", status_code=201)
async def create_folder(
    folder_id: str,
    payload: FolderCreate,
    service: FrameIOService = Depends(get_frameio_service),
) -> FrameIOFolder:
    return await service.create_folder(folder_id, payload.name)


@router.delete("/folders/{folder_id}", status_code=204)
async def delete_folder(folder_id: str, service: FrameIOService = Depends(get_frameio_service)) -> None:
    await service.delete_folder(folder_id)


@router.post("/folders/{folder_id}/files", status_code=201)
async def create_file_for_upload(
    folder_id: str,
    payload: FileUploadCreate,
    service: FrameIOService = Depends(get_frameio_service),
) -> FrameIOFile:
    return await service.create_file_for_upload(
        folder_id, payload.name, payload.file_size, payload.media_type
    )


# -------------------------------------------------------------------------
# Files & comments
# -------------------------------------------------------------------------

@router.get("/files/{file_id}")
async def get_file(file_id: str, service: FrameIOService = Depends(get_frameio_service)) -> FrameIOFile:
    return await service.get_file(file_id)


@router.delete("/files/{file_id}", status_code=204)
async def delete_file(file_id: str, service: FrameIOService = Depends(get_frameio_service)) -> None:
    await service.delete_file(file_id)


@router.get("/files/{file_id}/comments")
async def list_comments(file_id: str, service: FrameIOService = Depends(get_frameio_service)) -> List[FrameIOComment]:
    return await service.list_comments(file_id)


@router.post("/files/{file_id}/comments", status_code=201)
async def create_comment(
    file_id: str,
    payload: CommentCreate,
    service: FrameIOService = Depends(get_frameio_service),
) -> FrameIOComment:
    return await service.create_comment(file_id, payload.text, payload.timestamp)

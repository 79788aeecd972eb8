from __future__ import annotations

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, Field


class FrameIOResource(BaseModel):
    """Base for Frame.io V4 payloads; unknown provider fields are kept."""

    id: str

    class Config:
        extra = "allow"


class FrameIOProject(FrameIOResource):
    name: str
    root_folder_id: Optional[str] = None
    inserted_at: Optional[str] = None
    updated_at: Optional[str] = None
    storage: Optional[int] = None
    file_count: Optional[int] = None
    folder_count: Optional[int] = None


class FrameIOFolder(FrameIOResource):
    name: str
    type: str = "folder"
    item_count: Optional[int] = None
    inserted_at: Optional[str] = None
    updated_at: Optional[str] = None


class FrameIOFile(FrameIOResource):
    name: str
    type: str = "file"
    file_size: Optional[int] = None
    media_type: Optional[str] = None
    status: Optional[str] = None  # 'uploading', 'transcoding', 'transcoded', 'error'
    view_url: Optional[str] = None
    parent_id: Optional[str] = None
    project_id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    upload_url: Optional[str] = None  # only present on create-for-upload


class FrameIOCommentOwner(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None

    class Config:
        extra = "allow"


class FrameIOComment(FrameIOResource):
    text: str = ""
    timestamp: Optional[float] = None  # seconds into the asset
    owner: Optional[FrameIOCommentOwner] = None
    inserted_at: Optional[str] = None
    updated_at: Optional[str] = None
    completed: bool = False
    completed_at: Optional[str] = None


class FrameIOShare(FrameIOResource):
    short_url: Optional[str] = None
    is_active: bool = False
    expires_at: Optional[str] = None
    inserted_at: Optional[str] = None


FolderChild = Union[FrameIOFile, FrameIOFolder]


class FrameIOStatus(BaseModel):
    authenticated: bool
    requires_reauth: bool
    expires_at: Optional[datetime] = None
    error: Optional[str] = None


class FolderCreate(BaseModel):
    name: str = Field(..., min_length=1)


class FileUploadCreate(BaseModel):
    name: str = Field(..., min_length=1)
    file_size: int = Field(..., ge=0)
    media_type: str


class CommentCreate(BaseModel):
    text: str = Field(..., min_length=1)
    timestamp: Optional[float] = None

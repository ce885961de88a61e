from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, Field, constr

from app.schemas.enums import CommentRole, CommentStatus


class CommentNode(BaseModel):
    """One comment in a reply forest; `created_at` is ISO-8601 text."""

    id: str
    timecode_ms: int = Field(0, ge=0)
    body: str = ""
    author: Optional[str] = None
    created_at: str
    parent_id: Optional[str] = None
    role: CommentRole = CommentRole.CLIENT
    status: CommentStatus = CommentStatus.OPEN
    replies: List["CommentNode"] = Field(default_factory=list)


CommentNode.model_rebuild()


class CommentRow(BaseModel):
    """Flat persisted comment as handed to the threader."""

    id: str
    timecode_ms: int = 0
    body: str = ""
    author: Optional[str] = None
    created_at: Union[datetime, str]
    parent_id: Optional[str] = None
    role: CommentRole = CommentRole.CLIENT
    status: CommentStatus = CommentStatus.OPEN


class ListCommentsInput(BaseModel):
    token: Optional[str] = None
    video_id: Optional[str] = None


class CreateCommentInput(BaseModel):
    token: Optional[str] = None
    video_id: constr(strip_whitespace=True, min_length=1, max_length=128)
    body: str = ""
    timecode_ms: int = Field(0, ge=0)
    parent_id: Optional[str] = None
    author: Optional[constr(strip_whitespace=True, max_length=120)] = None


class OwnerListCommentsInput(BaseModel):
    video_id: str = ""


class OwnerCreateCommentInput(BaseModel):
    video_id: constr(strip_whitespace=True, min_length=1, max_length=128)
    body: str = ""
    timecode_ms: int = Field(0, ge=0)
    parent_id: Optional[str] = None


class ToggleResolvedInput(BaseModel):
    comment_id: str = ""


class CommentOut(BaseModel):
    id: str
    video_id: str
    timecode_ms: int
    body: str
    author: Optional[str] = None
    role: CommentRole
    status: CommentStatus
    created_at: str
    parent_id: Optional[str] = None


class ThreadResponse(BaseModel):
    ok: bool = True
    comments: List[CommentNode]


class CommentResponse(BaseModel):
    ok: bool = True
    comment: CommentOut

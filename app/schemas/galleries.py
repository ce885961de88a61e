from __future__ import annotations

"""Owner gallery schemas (version-stack management)."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class UpdateStacksInput(BaseModel):
    gallery_id: str = ""
    # Shape is checked by the route so a bad map is a 400 with a readable reason.
    stacks: Any = None
    ordered_ids: Optional[List[Any]] = None


class StackVersionsInput(BaseModel):
    gallery_id: str = ""
    ordered_ids: List[Any] = Field(default_factory=list)


class UnstackInput(BaseModel):
    gallery_id: str = ""
    parent_id: str = ""


class GalleryStacksResponse(BaseModel):
    ok: bool = True
    gallery_id: str
    stacks: Dict[str, List[str]]
    visible_ids: List[str]
    parent_id: Optional[str] = None
    stack_ids: Optional[List[str]] = None


__all__ = [
    "UpdateStacksInput",
    "StackVersionsInput",
    "UnstackInput",
    "GalleryStacksResponse",
]

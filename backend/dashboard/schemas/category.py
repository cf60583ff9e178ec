from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class CategoryCreate(BaseModel):
    name: str
    parent_id: Optional[int] = None


class CategoryUpdate(BaseModel):
    """``parent_id`` is only applied when present in the request body."""
    name: Optional[str] = None
    parent_id: Optional[int] = None


class CategoryRef(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class CategoryResponse(BaseModel):
    id: int
    name: str
    parent_id: Optional[int]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CategoryDetail(CategoryResponse):
    path: list[CategoryRef] = []


class CategoryTreeNode(CategoryResponse):
    children: list["CategoryTreeNode"] = []


CategoryTreeNode.model_rebuild()

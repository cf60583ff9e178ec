from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class MaterialCreate(BaseModel):
    title: str
    author: str


class MaterialUpdate(BaseModel):
    title: Optional[str] = None
    author: Optional[str] = None


class MaterialResponse(BaseModel):
    id: int
    title: str
    author: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MaterialDeleteResponse(BaseModel):
    id: int
    deleted_segments: int


class ReorderRequest(BaseModel):
    ordered_ids: list[int]


class ReorderResponse(BaseModel):
    matched_count: int
    modified_count: int
    requested_count: int

from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from dashboard.schemas.category import CategoryRef
from dashboard.schemas.material import MaterialResponse


class SegmentCreate(BaseModel):
    material_id: int
    content: str
    page_number: int
    category_id: Optional[int] = None


class SegmentUpdate(BaseModel):
    """Only fields present in the request body are changed; ``category_id: null`` clears the category."""
    material_id: Optional[int] = None
    content: Optional[str] = None
    page_number: Optional[int] = None
    category_id: Optional[int] = None


class MaterialRef(BaseModel):
    id: int
    title: str

    class Config:
        from_attributes = True


class SegmentResponse(BaseModel):
    id: int
    material_id: int
    content: str
    page_number: int
    category_id: Optional[int]
    order_index: int
    created_at: Optional[datetime] = None
    material: Optional[MaterialRef] = None
    category: Optional[CategoryRef] = None

    class Config:
        from_attributes = True


class SegmentList(BaseModel):
    items: list[SegmentResponse]
    page: int
    limit: int
    total: int
    total_pages: int


class SegmentWithAncestry(BaseModel):
    id: int
    content: str
    page_number: int
    order_index: int
    category_id: Optional[int]
    category_name: str
    category_path: list[str]


class MaterialSegments(BaseModel):
    material: MaterialResponse
    segments: list[SegmentWithAncestry]

import math
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from dashboard.database import get_db
from dashboard.dependencies import get_current_user
from dashboard.models.user import User
from dashboard.schemas.segment import SegmentCreate, SegmentUpdate, SegmentResponse, SegmentList
from dashboard.services import segments as segment_service
from dashboard.services.materials import accessible_material_ids, get_material

router = APIRouter(prefix="/segments", tags=["Segments"])


@router.get("", response_model=SegmentList)
def list_segments(
    material_id: Optional[int] = None,
    category_id: Optional[int] = None,
    q: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if material_id is not None:
        get_material(db, material_id, user)
    items, total = segment_service.list_segments(
        db,
        material_id=material_id,
        category_id=category_id,
        q=q,
        material_ids=accessible_material_ids(user),
        page=page,
        limit=limit,
    )
    return SegmentList(
        items=[SegmentResponse.model_validate(item) for item in items],
        page=page,
        limit=limit,
        total=total,
        total_pages=math.ceil(total / limit),
    )


@router.get("/recent", response_model=list[SegmentResponse])
def recent_segments(
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return segment_service.recent_segments(db, limit, accessible_material_ids(user))


@router.post("", response_model=SegmentResponse, status_code=status.HTTP_201_CREATED)
def create_segment(
    payload: SegmentCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    get_material(db, payload.material_id, user)
    segment = segment_service.create_segment(
        db, payload.material_id, payload.content, payload.page_number, payload.category_id
    )
    return segment_service.get_segment(db, segment.id)


@router.get("/{segment_id}", response_model=SegmentResponse)
def get_segment(
    segment_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    segment = segment_service.get_segment(db, segment_id)
    get_material(db, segment.material_id, user)
    return segment


@router.put("/{segment_id}", response_model=SegmentResponse)
def update_segment(
    segment_id: int,
    payload: SegmentUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    segment = segment_service.get_segment(db, segment_id)
    get_material(db, segment.material_id, user)
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("material_id") is not None:
        get_material(db, changes["material_id"], user)
    return segment_service.update_segment(db, segment_id, **changes)


@router.delete("/{segment_id}")
def delete_segment(
    segment_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    segment = segment_service.get_segment(db, segment_id)
    get_material(db, segment.material_id, user)
    segment_service.delete_segment(db, segment_id)
    return {"message": "Segment deleted", "id": segment_id}

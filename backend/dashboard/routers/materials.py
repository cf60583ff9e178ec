from urllib.parse import quote

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response
from sqlalchemy.orm import Session
from dashboard.database import get_db
from dashboard.dependencies import get_current_user, require_admin
from dashboard.models.user import User
from dashboard.schemas.material import (
    MaterialCreate, MaterialUpdate, MaterialResponse, MaterialDeleteResponse,
    ReorderRequest, ReorderResponse,
)
from dashboard.schemas.segment import MaterialSegments, SegmentWithAncestry
from dashboard.services import materials as material_service
from dashboard.services.ancestry import resolve_segments_from_db
from dashboard.services.export import export_material
from dashboard.services.segment_order import SORT_ORDER, ordered_segments, reorder_segments

router = APIRouter(prefix="/materials", tags=["Materials"])


@router.get("", response_model=list[MaterialResponse])
def list_materials(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return material_service.list_materials(db, user)


@router.post("", response_model=MaterialResponse, status_code=status.HTTP_201_CREATED)
def create_material(
    payload: MaterialCreate,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    return material_service.create_material(db, payload.title, payload.author)


@router.get("/{material_id}", response_model=MaterialResponse)
def get_material(
    material_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return material_service.get_material(db, material_id, user)


@router.put("/{material_id}", response_model=MaterialResponse)
def update_material(
    material_id: int,
    payload: MaterialUpdate,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    return material_service.update_material(db, material_id, payload.title, payload.author)


@router.delete("/{material_id}", response_model=MaterialDeleteResponse)
def delete_material(
    material_id: int,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    removed = material_service.delete_material(db, material_id)
    return MaterialDeleteResponse(id=material_id, deleted_segments=removed)


# ── Segments, ordering & export ──────────────────────────────────

@router.get("/{material_id}/segments", response_model=MaterialSegments)
def get_segments_with_ancestry(
    material_id: int,
    sort: str = Query(SORT_ORDER, pattern="^(order|page|recent)$"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """
    All segments of a material with their category flattened into six levels.

    ``sort=order`` is the display order, ``sort=page`` the reading order used
    by the preview, ``sort=recent`` newest first.
    """
    material = material_service.get_material(db, material_id, user)
    resolved = resolve_segments_from_db(db, ordered_segments(db, material_id, sort))
    return MaterialSegments(
        material=MaterialResponse.model_validate(material),
        segments=[
            SegmentWithAncestry(
                id=item.segment.id,
                content=item.segment.content,
                page_number=item.segment.page_number,
                order_index=item.segment.order_index,
                category_id=item.segment.category_id,
                category_name=item.category_name,
                category_path=item.category_path,
            )
            for item in resolved
        ],
    )


@router.patch("/{material_id}/reorder", response_model=ReorderResponse)
def reorder(
    material_id: int,
    payload: ReorderRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    material_service.get_material(db, material_id, user)
    result = reorder_segments(db, material_id, payload.ordered_ids)
    return ReorderResponse(
        matched_count=result.matched_count,
        modified_count=result.modified_count,
        requested_count=result.requested_count,
    )


@router.get("/{material_id}/export")
def export(
    material_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    material_service.get_material(db, material_id, user)
    artifact = export_material(db, material_id)
    return Response(
        content=artifact.content,
        media_type=artifact.media_type,
        headers={
            "Content-Disposition": f"attachment; filename*=UTF-8''{quote(artifact.filename)}",
        },
    )

import logging
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from dashboard.models.category import Category
from dashboard.models.segment import Segment
from dashboard.services.errors import NotFoundError, ValidationError
from dashboard.services.materials import get_material
from dashboard.services.segment_order import SEGMENT_SORTS, SORT_RECENT, append_slot

logger = logging.getLogger(__name__)

_UNSET = object()


def _clean_content(content: Optional[str]) -> str:
    cleaned = (content or "").strip()
    if not cleaned:
        raise ValidationError("content", "Segment content is required")
    return cleaned


def _check_page(page_number) -> int:
    if isinstance(page_number, bool) or not isinstance(page_number, int) or page_number < 1:
        raise ValidationError("page_number", "Page number must be an integer of 1 or more")
    return page_number


def _check_category(db: Session, category_id: Optional[int]) -> Optional[int]:
    if category_id is not None and db.get(Category, category_id) is None:
        raise ValidationError("category_id", "Category does not exist")
    return category_id


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def get_segment(db: Session, segment_id: int) -> Segment:
    segment = (
        db.query(Segment)
        .options(joinedload(Segment.material), joinedload(Segment.category))
        .filter(Segment.id == segment_id)
        .first()
    )
    if segment is None:
        raise NotFoundError("segment", segment_id)
    return segment


def create_segment(
    db: Session,
    material_id: int,
    content: str,
    page_number: int,
    category_id: Optional[int] = None,
) -> Segment:
    """Create a segment at the end of its material's display order."""
    cleaned = _clean_content(content)
    page_number = _check_page(page_number)
    get_material(db, material_id)
    _check_category(db, category_id)

    with append_slot(db, material_id) as order_index:
        segment = Segment(
            material_id=material_id,
            content=cleaned,
            page_number=page_number,
            category_id=category_id,
            order_index=order_index,
        )
        db.add(segment)
        db.commit()
    db.refresh(segment)
    logger.info("Created segment %s in material %s at index %d", segment.id, material_id, order_index)
    return segment


def update_segment(
    db: Session,
    segment_id: int,
    content=_UNSET,
    page_number=_UNSET,
    category_id=_UNSET,
    material_id=_UNSET,
) -> Segment:
    """
    Update fields in place. ``order_index`` is untouched unless the segment
    moves to another material, where it is appended at the end.
    """
    segment = get_segment(db, segment_id)
    changes = {}
    if content is not _UNSET:
        changes["content"] = _clean_content(content)
    if page_number is not _UNSET:
        changes["page_number"] = _check_page(page_number)
    if category_id is not _UNSET:
        changes["category_id"] = _check_category(db, category_id)

    if material_id is not _UNSET and material_id != segment.material_id:
        if material_id is None:
            raise ValidationError("material_id", "Material is required")
        get_material(db, material_id)
        with append_slot(db, material_id) as order_index:
            for key, value in changes.items():
                setattr(segment, key, value)
            segment.material_id = material_id
            segment.order_index = order_index
            db.commit()
        logger.info("Moved segment %s to material %s at index %d", segment_id, material_id, order_index)
    else:
        for key, value in changes.items():
            setattr(segment, key, value)
        db.commit()

    return get_segment(db, segment_id)


def delete_segment(db: Session, segment_id: int) -> None:
    """Remove one segment. Remaining indices are not compacted."""
    segment = get_segment(db, segment_id)
    db.delete(segment)
    db.commit()
    logger.info("Deleted segment %s", segment_id)


def list_segments(
    db: Session,
    material_id: Optional[int] = None,
    category_id: Optional[int] = None,
    q: Optional[str] = None,
    material_ids: Optional[set[int]] = None,
    page: int = 1,
    limit: int = 50,
) -> tuple[list[Segment], int]:
    """
    Filtered, newest-first page of segments plus the total match count.

    ``material_ids`` restricts results to those materials (``None`` = no restriction).
    """
    if page < 1:
        raise ValidationError("page", "Page must be 1 or more")
    if limit < 1:
        raise ValidationError("limit", "Limit must be 1 or more")

    query = db.query(Segment)
    if material_id is not None:
        query = query.filter(Segment.material_id == material_id)
    if category_id is not None:
        query = query.filter(Segment.category_id == category_id)
    if material_ids is not None:
        query = query.filter(Segment.material_id.in_(material_ids))
    if q:
        query = query.filter(Segment.content.ilike(f"%{_escape_like(q.strip())}%", escape="\\"))

    total = query.count()
    items = (
        query.options(joinedload(Segment.material), joinedload(Segment.category))
        .order_by(*SEGMENT_SORTS[SORT_RECENT])
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return items, total


def recent_segments(db: Session, limit: int = 10, material_ids: Optional[set[int]] = None) -> list[Segment]:
    items, _ = list_segments(db, material_ids=material_ids, limit=limit)
    return items

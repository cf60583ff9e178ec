"""
Segment ordering engine.

Owns the per-material ``order_index`` sequence: trailing index on append and
explicit bulk reorder. Page-number and creation-time orderings are separate
views and never rewrite ``order_index``.
"""
import logging
import threading
import weakref
from contextlib import contextmanager
from dataclasses import dataclass

from sqlalchemy import func
from sqlalchemy.orm import Session

from dashboard.models.material import Material
from dashboard.models.segment import Segment
from dashboard.services.errors import EmptyList, InvalidReference, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

SORT_ORDER = "order"
SORT_PAGE = "page"
SORT_RECENT = "recent"

SEGMENT_SORTS = {
    # display order; page number breaks ties left by partial reorders
    SORT_ORDER: (Segment.order_index.asc(), Segment.page_number.asc(), Segment.created_at.asc(), Segment.id.asc()),
    SORT_PAGE: (Segment.page_number.asc(), Segment.created_at.asc(), Segment.id.asc()),
    SORT_RECENT: (Segment.created_at.desc(), Segment.id.desc()),
}

# Entries disappear once no append holds them
_append_locks: "weakref.WeakValueDictionary[int, threading.Lock]" = weakref.WeakValueDictionary()
_append_locks_guard = threading.Lock()


@dataclass
class ReorderResult:
    matched_count: int
    modified_count: int
    requested_count: int

    @property
    def partial(self) -> bool:
        return self.matched_count < self.requested_count


def _lock_for(material_id: int) -> threading.Lock:
    with _append_locks_guard:
        lock = _append_locks.get(material_id)
        if lock is None:
            lock = _append_locks[material_id] = threading.Lock()
        return lock


@contextmanager
def append_slot(db: Session, material_id: int):
    """
    Serialize appends for one material.

    Holds an in-process lock for ``material_id`` and a row lock on the
    material (``SELECT ... FOR UPDATE``; ignored by SQLite) until the block
    exits. The caller must commit inside the block. Yields the next index.
    """
    with _lock_for(material_id):
        material = (
            db.query(Material)
            .filter(Material.id == material_id)
            .with_for_update()
            .first()
        )
        if material is None:
            raise NotFoundError("material", material_id)
        yield next_order_index(db, material_id)


def next_order_index(db: Session, material_id: int) -> int:
    """``max(order_index) + 1`` among the material's segments, or 0 when it has none."""
    current_max = (
        db.query(func.max(Segment.order_index))
        .filter(Segment.material_id == material_id)
        .scalar()
    )
    return 0 if current_max is None else current_max + 1


def ordered_segments(db: Session, material_id: int, sort: str = SORT_ORDER) -> list[Segment]:
    if sort not in SEGMENT_SORTS:
        raise ValidationError("sort", f"Unknown sort '{sort}', expected one of {sorted(SEGMENT_SORTS)}")
    return (
        db.query(Segment)
        .filter(Segment.material_id == material_id)
        .order_by(*SEGMENT_SORTS[sort])
        .all()
    )


def reorder_segments(db: Session, material_id: int, ordered_ids: list[int]) -> ReorderResult:
    """
    Assign ``order_index = position`` to each id in ``ordered_ids``.

    Ids left out keep their current index. Every id must belong to the
    material; otherwise nothing is written. The counts let callers spot rows
    that vanished between validation and update.
    """
    if not ordered_ids:
        raise EmptyList()
    if len(set(ordered_ids)) != len(ordered_ids):
        raise ValidationError("ordered_ids", "Segment ids must not repeat")
    if db.get(Material, material_id) is None:
        raise NotFoundError("material", material_id)

    current = dict(
        db.query(Segment.id, Segment.order_index)
        .filter(Segment.material_id == material_id, Segment.id.in_(ordered_ids))
        .all()
    )
    missing = set(ordered_ids) - set(current)
    if missing:
        raise InvalidReference(list(missing), material_id=material_id)

    matched = modified = 0
    try:
        for index, segment_id in enumerate(ordered_ids):
            hit = (
                db.query(Segment)
                .filter(Segment.id == segment_id, Segment.material_id == material_id)
                .update({Segment.order_index: index}, synchronize_session=False)
            )
            matched += hit
            if hit and current[segment_id] != index:
                modified += 1
        db.commit()
    except Exception:
        db.rollback()
        raise

    result = ReorderResult(matched_count=matched, modified_count=modified, requested_count=len(ordered_ids))
    logger.info(
        "Reordered material %s: requested=%d matched=%d modified=%d",
        material_id, result.requested_count, matched, modified,
    )
    return result

"""
Ancestry resolution: category -> root-first chain -> fixed-width level columns.
"""
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

from sqlalchemy.orm import Session

from dashboard.models.category import Category, MAX_CATEGORY_DEPTH


@dataclass
class SegmentAncestry:
    segment: object
    category_path: list[str]
    category_name: str


def resolve_path(category_id: Optional[int], lookup: Mapping[int, object]) -> list:
    """
    Walk ``parent_id`` links upward from ``category_id`` and return the nodes
    root-first.

    Stops quietly at an id missing from ``lookup`` (dangling parent) or at an
    id already visited, so one bad row never fails a whole batch.
    """
    path = []
    seen: set[int] = set()
    current = lookup.get(category_id) if category_id is not None else None
    while current is not None and current.id not in seen:
        seen.add(current.id)
        path.append(current)
        current = lookup.get(current.parent_id) if current.parent_id is not None else None
    path.reverse()
    return path


def flatten_path(path: Iterable, width: int = MAX_CATEGORY_DEPTH) -> list[str]:
    """Names of ``path`` padded with empty strings to exactly ``width`` slots."""
    names = [node.name for node in path][:width]
    return names + [""] * (width - len(names))


def load_ancestor_lookup(db: Session, category_ids: Iterable[Optional[int]]) -> dict[int, Category]:
    """
    Fetch the given categories plus all of their transitive ancestors.

    One query per hierarchy level, so at most MAX_CATEGORY_DEPTH round trips
    for consistent data.
    """
    lookup: dict[int, Category] = {}
    pending = {cid for cid in category_ids if cid is not None}
    while pending:
        rows = db.query(Category).filter(Category.id.in_(pending)).all()
        for row in rows:
            lookup[row.id] = row
        pending = {
            row.parent_id
            for row in rows
            if row.parent_id is not None and row.parent_id not in lookup
        }
    return lookup


def resolve_segments(segments: list, lookup: Mapping[int, object]) -> list[SegmentAncestry]:
    """Attach a MAX_CATEGORY_DEPTH-slot ``category_path`` to each segment, keeping input order."""
    resolved = []
    for segment in segments:
        path = resolve_path(segment.category_id, lookup)
        own = lookup.get(segment.category_id) if segment.category_id is not None else None
        resolved.append(
            SegmentAncestry(
                segment=segment,
                category_path=flatten_path(path),
                category_name=own.name if own is not None else "",
            )
        )
    return resolved


def resolve_segments_from_db(db: Session, segments: list) -> list[SegmentAncestry]:
    lookup = load_ancestor_lookup(db, (segment.category_id for segment in segments))
    return resolve_segments(segments, lookup)

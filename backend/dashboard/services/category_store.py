"""
Category store: single source of truth for category nodes.

Depth and acyclicity are enforced here at mutation time; a refused mutation
leaves the table untouched.
"""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from dashboard.models.category import Category, MAX_CATEGORY_DEPTH, CATEGORY_NAME_MAX_LENGTH
from dashboard.models.segment import Segment
from dashboard.services.category_tree import find_in_tree, get_category_tree, get_path, iter_tree
from dashboard.services.errors import (
    CycleError,
    DepthExceeded,
    HasChildren,
    InUse,
    NotFoundError,
    SelfParentError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def _clean_name(name: Optional[str]) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("name", "Category name is required")
    if len(cleaned) > CATEGORY_NAME_MAX_LENGTH:
        raise ValidationError(
            "name", f"Category name cannot exceed {CATEGORY_NAME_MAX_LENGTH} characters"
        )
    return cleaned


def get_category(db: Session, category_id: int) -> Category:
    category = db.get(Category, category_id)
    if category is None:
        raise NotFoundError("category", category_id)
    return category


def list_categories(db: Session) -> list[Category]:
    return db.query(Category).order_by(Category.name, Category.id).all()


def _parent_path(db: Session, parent_id: int) -> list[Category]:
    path = get_path(db, parent_id)
    if not path or path[-1].id != parent_id:
        raise ValidationError("parent_id", "Parent category does not exist")
    return path


def _subtree_height(db: Session, category_id: int) -> int:
    """Number of levels in the subtree rooted at ``category_id`` (1 for a leaf)."""
    node, _ = find_in_tree(get_category_tree(db), category_id)
    if node is None:
        return 1
    return max(depth for _, depth in iter_tree([node]))


def create_category(db: Session, name: str, parent_id: Optional[int] = None) -> Category:
    cleaned = _clean_name(name)
    if parent_id is not None:
        depth = len(_parent_path(db, parent_id)) + 1
        if depth > MAX_CATEGORY_DEPTH:
            raise DepthExceeded(MAX_CATEGORY_DEPTH, depth)

    category = Category(name=cleaned, parent_id=parent_id)
    db.add(category)
    db.commit()
    db.refresh(category)
    logger.info("Created category %s '%s' (parent=%s)", category.id, category.name, parent_id)
    return category


def rename_category(db: Session, category_id: int, name: str) -> Category:
    category = get_category(db, category_id)
    category.name = _clean_name(name)
    db.commit()
    db.refresh(category)
    return category


def reparent_category(db: Session, category_id: int, new_parent_id: Optional[int]) -> Category:
    """
    Move a category (with its whole subtree) under ``new_parent_id``.

    ``None`` turns it into a root. The subtree must still fit within
    MAX_CATEGORY_DEPTH levels once attached to the new parent.
    """
    category = get_category(db, category_id)
    if new_parent_id is not None:
        if new_parent_id == category_id:
            raise SelfParentError(category_id)
        parent_path = _parent_path(db, new_parent_id)
        if any(node.id == category_id for node in parent_path):
            raise CycleError(category_id, new_parent_id)
        depth = len(parent_path) + _subtree_height(db, category_id)
        if depth > MAX_CATEGORY_DEPTH:
            raise DepthExceeded(MAX_CATEGORY_DEPTH, depth)

    category.parent_id = new_parent_id
    db.commit()
    db.refresh(category)
    logger.info("Moved category %s under %s", category_id, new_parent_id)
    return category


def update_category(
    db: Session,
    category_id: int,
    name: Optional[str] = None,
    parent_id: Optional[int] = None,
    reparent: bool = False,
) -> Category:
    """Rename and/or reparent; all checks run before anything is written."""
    category = get_category(db, category_id)
    cleaned = _clean_name(name) if name is not None else None
    if reparent and parent_id != category.parent_id:
        category = reparent_category(db, category_id, parent_id)
    if cleaned is not None and cleaned != category.name:
        category = rename_category(db, category_id, cleaned)
    return category


def delete_category(db: Session, category_id: int) -> dict:
    category = get_category(db, category_id)

    child_count = db.query(Category).filter(Category.parent_id == category_id).count()
    if child_count > 0:
        logger.info("Refused to delete category %s: %d children", category_id, child_count)
        raise HasChildren(child_count)

    segment_count = db.query(Segment).filter(Segment.category_id == category_id).count()
    if segment_count > 0:
        logger.info("Refused to delete category %s: used by %d segments", category_id, segment_count)
        raise InUse(segment_count)

    deleted = {"id": category.id, "name": category.name, "parent_id": category.parent_id}
    db.delete(category)
    db.commit()
    logger.info("Deleted category %s '%s'", category_id, deleted["name"])
    return deleted

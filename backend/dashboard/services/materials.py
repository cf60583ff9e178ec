import logging
from typing import Optional

from sqlalchemy.orm import Session

from dashboard.models.material import Material, MATERIAL_TITLE_MAX_LENGTH, MATERIAL_AUTHOR_MAX_LENGTH
from dashboard.models.segment import Segment
from dashboard.models.user import User
from dashboard.models.user_material import UserMaterial
from dashboard.services.errors import NotFoundError, PermissionDenied, ValidationError

logger = logging.getLogger(__name__)


def _clean(field: str, value: Optional[str], max_length: int) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValidationError(field, f"{field.capitalize()} is required")
    if len(cleaned) > max_length:
        raise ValidationError(field, f"{field.capitalize()} cannot exceed {max_length} characters")
    return cleaned


def can_access_material(user: User, material_id: int) -> bool:
    return user.is_admin or material_id in user.assigned_material_ids


def get_material(db: Session, material_id: int, user: Optional[User] = None) -> Material:
    """Fetch a material; with ``user`` given, also require access to it."""
    material = db.get(Material, material_id)
    if material is None:
        raise NotFoundError("material", material_id)
    if user is not None and not can_access_material(user, material_id):
        raise PermissionDenied("You do not have access to this material")
    return material


def list_materials(db: Session, user: Optional[User] = None) -> list[Material]:
    """Newest first. Non-admin users only see materials assigned to them."""
    query = db.query(Material)
    if user is not None and not user.is_admin:
        query = query.join(UserMaterial, UserMaterial.material_id == Material.id).filter(
            UserMaterial.user_id == user.id
        )
    return query.order_by(Material.created_at.desc(), Material.id.desc()).all()


def accessible_material_ids(user: User) -> Optional[set[int]]:
    """``None`` means unrestricted (admin)."""
    if user.is_admin:
        return None
    return set(user.assigned_material_ids)


def create_material(db: Session, title: str, author: str) -> Material:
    material = Material(
        title=_clean("title", title, MATERIAL_TITLE_MAX_LENGTH),
        author=_clean("author", author, MATERIAL_AUTHOR_MAX_LENGTH),
    )
    db.add(material)
    db.commit()
    db.refresh(material)
    logger.info("Created material %s '%s'", material.id, material.title)
    return material


def update_material(
    db: Session, material_id: int, title: Optional[str] = None, author: Optional[str] = None
) -> Material:
    material = get_material(db, material_id)
    new_title = _clean("title", title, MATERIAL_TITLE_MAX_LENGTH) if title is not None else None
    new_author = _clean("author", author, MATERIAL_AUTHOR_MAX_LENGTH) if author is not None else None
    if new_title is not None:
        material.title = new_title
    if new_author is not None:
        material.author = new_author
    db.commit()
    db.refresh(material)
    return material


def delete_material(db: Session, material_id: int) -> int:
    """
    Delete a material together with its segments and user assignments.

    All deletes share one transaction. Returns the number of removed segments.
    """
    material = get_material(db, material_id)
    try:
        removed = (
            db.query(Segment)
            .filter(Segment.material_id == material_id)
            .delete(synchronize_session=False)
        )
        db.query(UserMaterial).filter(UserMaterial.material_id == material_id).delete(
            synchronize_session=False
        )
        db.delete(material)
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Failed to delete material %s", material_id)
        raise
    logger.info("Deleted material %s and %d segments", material_id, removed)
    return removed

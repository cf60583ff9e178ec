import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from dashboard.database import get_db
from dashboard.dependencies import require_admin
from dashboard.models.user import User, USERNAME_MIN_LENGTH
from dashboard.models.material import Material
from dashboard.models.user_material import UserMaterial
from dashboard.schemas.user import UserCreate, UserUpdate, UserResponse
from dashboard.services.auth import hash_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


def _set_assigned_materials(db: Session, user: User, material_ids: list[int]):
    """Replace the user's material assignments; unknown ids are rejected."""
    unique_ids = sorted(set(material_ids))
    found = {
        row.id for row in db.query(Material.id).filter(Material.id.in_(unique_ids)).all()
    } if unique_ids else set()
    missing = [mid for mid in unique_ids if mid not in found]
    if missing:
        raise HTTPException(status_code=400, detail=f"Materials not found: {missing}")

    user.assigned_materials.clear()
    db.flush()
    for material_id in unique_ids:
        user.assigned_materials.append(UserMaterial(material_id=material_id))


# ── User Management ──────────────────────────────────────────────

@router.get("/users", response_model=list[UserResponse])
def list_users(
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    return db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreate,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    username = payload.username.strip()
    if len(username) < USERNAME_MIN_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Username must be at least {USERNAME_MIN_LENGTH} characters",
        )
    if not payload.password:
        raise HTTPException(status_code=400, detail="Password is required")
    existing = db.query(User).filter(User.username == username).first()
    if existing:
        raise HTTPException(status_code=400, detail="Username already exists")

    user = User(
        username=username,
        password_hash=hash_password(payload.password),
        is_admin=payload.is_admin,
        can_edit_categories=payload.can_edit_categories,
    )
    db.add(user)
    _set_assigned_materials(db, user, payload.assigned_material_ids)
    db.commit()
    db.refresh(user)
    logger.info("Created user %s (admin=%s)", user.username, user.is_admin)
    return user


@router.patch("/users/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    payload: UserUpdate,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if payload.is_admin is not None:
        user.is_admin = payload.is_admin
    if payload.can_edit_categories is not None:
        user.can_edit_categories = payload.can_edit_categories
    if payload.password:
        user.password_hash = hash_password(payload.password)
    if payload.assigned_material_ids is not None:
        _set_assigned_materials(db, user, payload.assigned_material_ids)
    db.commit()
    db.refresh(user)
    return user


@router.delete("/users/{user_id}")
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if user.id == admin.id:
        raise HTTPException(status_code=400, detail="You cannot delete your own account")
    db.delete(user)
    db.commit()
    logger.info("Deleted user %s", user_id)
    return {"message": "User deleted", "id": user_id}

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from dashboard.database import get_db
from dashboard.dependencies import get_current_user, require_category_editor
from dashboard.models.user import User
from dashboard.schemas.category import (
    CategoryCreate, CategoryUpdate, CategoryResponse, CategoryDetail, CategoryRef, CategoryTreeNode,
)
from dashboard.services import category_store
from dashboard.services.category_tree import get_category_tree, get_path

router = APIRouter(prefix="/categories", tags=["Categories"])


@router.get("")
def list_categories(
    format: Optional[str] = Query(None, pattern="^(flat|tree)$"),
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    """Flat list sorted by name, or the nested tree with ``?format=tree``."""
    if format == "tree":
        return [CategoryTreeNode(**asdict(node)) for node in get_category_tree(db)]
    return [CategoryResponse.model_validate(c) for c in category_store.list_categories(db)]


@router.get("/{category_id}", response_model=CategoryDetail)
def get_category(
    category_id: int,
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    category = category_store.get_category(db, category_id)
    detail = CategoryDetail.model_validate(category)
    detail.path = [CategoryRef.model_validate(node) for node in get_path(db, category_id)]
    return detail


@router.get("/{category_id}/path", response_model=list[CategoryRef])
def get_category_path(
    category_id: int,
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    category_store.get_category(db, category_id)
    return get_path(db, category_id)


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
def create_category(
    payload: CategoryCreate,
    db: Session = Depends(get_db),
    _editor: User = Depends(require_category_editor),
):
    return category_store.create_category(db, payload.name, payload.parent_id)


@router.put("/{category_id}", response_model=CategoryResponse)
def update_category(
    category_id: int,
    payload: CategoryUpdate,
    db: Session = Depends(get_db),
    _editor: User = Depends(require_category_editor),
):
    return category_store.update_category(
        db,
        category_id,
        name=payload.name,
        parent_id=payload.parent_id,
        reparent="parent_id" in payload.model_fields_set,
    )


@router.delete("/{category_id}", response_model=CategoryResponse)
def delete_category(
    category_id: int,
    db: Session = Depends(get_db),
    _editor: User = Depends(require_category_editor),
):
    return category_store.delete_category(db, category_id)

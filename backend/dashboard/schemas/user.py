from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class UserCreate(BaseModel):
    username: str
    password: str
    is_admin: bool = False
    can_edit_categories: bool = False
    assigned_material_ids: list[int] = []


class UserUpdate(BaseModel):
    password: Optional[str] = None
    is_admin: Optional[bool] = None
    can_edit_categories: Optional[bool] = None
    assigned_material_ids: Optional[list[int]] = None


class UserResponse(BaseModel):
    id: int
    username: str
    is_admin: bool
    can_edit_categories: bool
    created_at: Optional[datetime] = None
    assigned_material_ids: list[int] = []

    class Config:
        from_attributes = True

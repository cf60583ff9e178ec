from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from dashboard.database import get_db
from dashboard.models.user import User
from dashboard.schemas.auth import LoginRequest, TokenResponse
from dashboard.schemas.user import UserResponse
from dashboard.services.auth import verify_password, create_access_token
from dashboard.dependencies import get_current_user

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.username == payload.username.strip()).first()
    if not user or not verify_password(payload.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
        )
    token = create_access_token({"sub": str(user.id)})
    return TokenResponse(
        access_token=token,
        user_id=user.id,
        username=user.username,
        is_admin=user.is_admin,
        can_edit_categories=user.can_edit_categories,
    )


@router.get("/me", response_model=UserResponse)
def get_me(current_user: User = Depends(get_current_user)):
    return current_user

"""Users Router - /users/me endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from krisefikser.core.deps import get_current_user, get_db
from krisefikser.schemas.user import PositionUpdate, UserRead
from krisefikser.services import user_service

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserRead)
def get_me(user=Depends(get_current_user)):
    return user


@router.post("/me/position", response_model=UserRead)
def update_my_position(
    data: PositionUpdate,
    user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Store the caller's position and share it with their household."""
    return user_service.update_position(db, user, data.latitude, data.longitude)

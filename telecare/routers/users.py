"""User profile endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from telecare.core.database import get_db
from telecare.dependencies.auth import get_current_user
from telecare.schemas.user import UserRead, UserUpdate
from telecare.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserRead)
async def get_profile(
    current_user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return UserService.get_by_id(db, current_user["sub"])


@router.put("/me", response_model=UserRead)
async def update_profile(
    payload: UserUpdate,
    current_user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return UserService.update_profile(db, current_user["sub"], payload.model_dump(exclude_none=True))

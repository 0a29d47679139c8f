from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import Identity, get_current_user
from app.database import get_db
from app.schemas import UserUpdate
from app.services import user_service

router = APIRouter(prefix="/users", tags=["users"])

@router.get("/profile/{user_id}")
async def get_profile(user_id: int, db: AsyncSession = Depends(get_db)):
    profile = await user_service.get_profile(db, user_id)
    return {"message": "Get profile successfully", "data": profile}

@router.put("/{user_id}")
async def update_profile(
    user_id: int,
    data: UserUpdate,
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    profile = await user_service.update_profile(db, identity, user_id, data)
    return {"message": "Updated profile successfully", "data": profile}

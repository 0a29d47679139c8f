from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import Identity, get_current_user
from app.database import get_db
from app.schemas import CommentUpdate
from app.services import comment_service

router = APIRouter(prefix="/comments", tags=["comments"])

@router.put("/{comment_id}")
async def update_comment(
    comment_id: int,
    data: CommentUpdate,
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    comment = await comment_service.update_comment(db, identity, comment_id, data)
    return {"message": "Updated comment successfully", "data": comment}

@router.delete("/{comment_id}")
async def delete_comment(
    comment_id: int,
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await comment_service.delete_comment(db, identity, comment_id)
    return {"message": "Comment deleted successfully."}

"""
Moderation audit endpoint:
  GET /bans — every ban edge, oldest first
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import graph
from app.database import get_db
from app.dependencies import get_current_user
from app.schemas import BanOut, UserOut

router = APIRouter()


@router.get("", response_model=list[BanOut])
async def list_bans(
    me: UserOut = Depends(get_current_user), db: AsyncSession = Depends(get_db)
):
    return await graph.list_bans(db)

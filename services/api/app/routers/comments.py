"""
Comment endpoint:
  DELETE /comments/{id} — remove a comment (its author or the photo owner)
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from opentelemetry import trace
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import content
from app.database import get_db
from app.dependencies import get_current_user
from app.schemas import UserOut

logger = logging.getLogger(__name__)
router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.delete("/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def uncomment_photo(
    comment_id: str,
    me: UserOut = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    with tracer.start_as_current_span("uncomment_photo"):
        comment = await content.get_comment(db, comment_id)
        if comment.user_id != me.user_id:
            photo = await content.lookup_photo(db, comment.photo_id)
            if photo.user_id != me.user_id:
                raise HTTPException(
                    status_code=403,
                    detail="Only the author or the photo owner can remove a comment",
                )
        await content.remove_comment(db, comment_id)

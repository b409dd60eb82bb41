"""
Photo endpoints:
  POST   /photos                   — upload a photo (base64 JSON body)
  GET    /photos                   — every photo, newest first
  GET    /photos/{id}              — detail: owner, like count, comments, image
  GET    /photos/{id}/image        — raw image bytes
  DELETE /photos/{id}              — owner deletes photo + its likes/comments
  POST   /photos/{id}/likes        — caller likes photo
  DELETE /photos/{id}/likes        — caller unlikes photo
  GET    /photos/{id}/likes/me     — has the caller liked photo?
  POST   /photos/{id}/comments     — caller comments on photo
  GET    /photos/{id}/comments     — comments, newest first
"""
import base64
import binascii
import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from opentelemetry import trace
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core import content
from app.database import get_db
from app.dependencies import get_current_user
from app.schemas import (
    CommentCreate,
    CommentCreated,
    CommentOut,
    LikeStatus,
    PhotoCreate,
    PhotoCreated,
    PhotoDetail,
    PhotoOut,
    UserOut,
)

logger = logging.getLogger(__name__)
router = APIRouter()
tracer = trace.get_tracer(__name__)


def _decode_image(image_base64: str) -> bytes:
    try:
        image = base64.b64decode(image_base64, validate=True)
    except (binascii.Error, ValueError):
        raise HTTPException(status_code=400, detail="image_base64 is not valid base64")
    if not image:
        raise HTTPException(status_code=400, detail="Image is empty")
    if len(image) > settings.max_image_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Image exceeds {settings.max_image_bytes} bytes",
        )
    return image


@router.post("", response_model=PhotoCreated, status_code=status.HTTP_201_CREATED)
async def upload_photo(
    body: PhotoCreate,
    me: UserOut = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    with tracer.start_as_current_span("upload_photo") as span:
        image = _decode_image(body.image_base64)
        span.set_attribute("photo.bytes", len(image))

        photo_id = await content.upload_photo(db, me.user_id, image)
        span.set_attribute("photo.id", photo_id)
        return PhotoCreated(photo_id=photo_id)


@router.get("", response_model=list[PhotoOut])
async def list_photos(
    me: UserOut = Depends(get_current_user), db: AsyncSession = Depends(get_db)
):
    return await content.list_all_photos(db)


@router.get("/{photo_id}", response_model=PhotoDetail)
async def get_photo(
    photo_id: str,
    me: UserOut = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await content.get_photo(db, photo_id)


@router.get("/{photo_id}/image")
async def get_photo_image(
    photo_id: str,
    me: UserOut = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    image = await content.get_image(db, photo_id)
    return Response(content=image, media_type="application/octet-stream")


@router.delete("/{photo_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_photo(
    photo_id: str,
    me: UserOut = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    with tracer.start_as_current_span("delete_photo") as span:
        span.set_attribute("photo.id", photo_id)
        photo = await content.lookup_photo(db, photo_id)
        if photo.user_id != me.user_id:
            raise HTTPException(status_code=403, detail="Only the owner can delete a photo")
        await content.delete_photo(db, photo_id)


# ─────────────────────────── Likes ───────────────────────────────────────

@router.post("/{photo_id}/likes", status_code=status.HTTP_204_NO_CONTENT)
async def like_photo(
    photo_id: str,
    me: UserOut = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    with tracer.start_as_current_span("like_photo"):
        await content.like(db, me.user_id, photo_id)


@router.delete("/{photo_id}/likes", status_code=status.HTTP_204_NO_CONTENT)
async def unlike_photo(
    photo_id: str,
    me: UserOut = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    with tracer.start_as_current_span("unlike_photo"):
        await content.unlike(db, me.user_id, photo_id)


@router.get("/{photo_id}/likes/me", response_model=LikeStatus)
async def is_photo_liked(
    photo_id: str,
    me: UserOut = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return LikeStatus(liked=await content.is_liked(db, me.user_id, photo_id))


# ─────────────────────────── Comments ────────────────────────────────────

@router.post(
    "/{photo_id}/comments",
    response_model=CommentCreated,
    status_code=status.HTTP_201_CREATED,
)
async def comment_photo(
    photo_id: str,
    body: CommentCreate,
    me: UserOut = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    with tracer.start_as_current_span("comment_photo"):
        if not body.content.strip():
            raise HTTPException(status_code=400, detail="Comment must not be blank")
        comment_id = await content.add_comment(db, me.user_id, photo_id, body.content)
        return CommentCreated(comment_id=comment_id)


@router.get("/{photo_id}/comments", response_model=list[CommentOut])
async def list_comments(
    photo_id: str,
    me: UserOut = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await content.lookup_photo(db, photo_id)
    return await content.comments_of(db, photo_id)

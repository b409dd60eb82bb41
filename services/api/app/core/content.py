"""
Content store: photos, likes and comments.

This module is the only writer of the photos, likes and comments tables.
Deleting a photo removes its comments, likes and the photo row in a single
transaction; if any statement fails nothing is removed.
"""
import logging
from datetime import datetime

from sqlalchemy import delete, exists, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import undefer

from app.core import identity
from app.core.ids import insert_with_fresh_id
from app.core.storage import reading, unit_of_work
from app.errors import (
    ConflictError,
    InvalidArgumentError,
    NotFoundError,
    StorageFailureError,
    require_id,
)
from app.models import Comment, Like, Photo, utcnow
from app.schemas import CommentOut, PhotoDetail, PhotoOut
from app.telemetry import CASCADE_FAILURES_TOTAL, PHOTO_UPLOADS_TOTAL

logger = logging.getLogger(__name__)


def now() -> datetime:
    """Creation timestamp for new rows; patched in tests to pin ordering."""
    return utcnow()


async def _require_photo(db: AsyncSession, photo_id: str) -> Photo:
    require_id(photo_id, "photo_id")
    photo = await db.get(Photo, photo_id)
    if photo is None:
        raise NotFoundError("photo", photo_id)
    return photo


async def _photo_exists(db: AsyncSession, photo_id: str) -> bool:
    return bool(await db.scalar(select(exists().where(Photo.photo_id == photo_id))))


# ─────────────────────────── Photos ──────────────────────────────────────

async def upload_photo(db: AsyncSession, owner_id: str, image: bytes) -> str:
    require_id(owner_id, "owner_id")
    if not image:
        raise InvalidArgumentError("image must not be empty", {"field": "image"})
    await identity.lookup_by_id(db, owner_id)

    async def _raise_if_owner_gone(exc: IntegrityError) -> None:
        # FK violation rather than an id collision
        await identity.lookup_by_id(db, owner_id)

    created_at = now()
    async with unit_of_work(db, "upload_photo"):
        photo_id = await insert_with_fresh_id(
            db,
            Photo.photo_id,
            lambda candidate: Photo(
                photo_id=candidate, user_id=owner_id, image=image, created_at=created_at
            ),
            on_integrity_error=_raise_if_owner_gone,
        )

    PHOTO_UPLOADS_TOTAL.inc()
    logger.info("Photo %s uploaded by %s (%d bytes)", photo_id, owner_id, len(image))
    return photo_id


async def get_photo(db: AsyncSession, photo_id: str) -> PhotoDetail:
    """Photo metadata, owner username, like count and newest-first comments."""
    require_id(photo_id, "photo_id")
    async with reading("get_photo"):
        photo = await db.scalar(
            select(Photo)
            .options(undefer(Photo.image))
            .where(Photo.photo_id == photo_id)
            .execution_options(populate_existing=True)
        )
        if photo is None:
            raise NotFoundError("photo", photo_id)
        like_count = await db.scalar(
            select(func.count()).select_from(Like).where(Like.photo_id == photo_id)
        )
        detail = PhotoDetail(
            photo_id=photo.photo_id,
            user_id=photo.user_id,
            username=photo.owner.username,
            created_at=photo.created_at,
            like_count=like_count or 0,
            comments=await comments_of(db, photo_id),
            image=photo.image,
        )
    return detail


async def lookup_photo(db: AsyncSession, photo_id: str) -> PhotoOut:
    async with reading("lookup_photo"):
        return PhotoOut.model_validate(await _require_photo(db, photo_id))


async def get_image(db: AsyncSession, photo_id: str) -> bytes:
    require_id(photo_id, "photo_id")
    async with reading("get_image"):
        image = await db.scalar(select(Photo.image).where(Photo.photo_id == photo_id))
    if image is None:
        raise NotFoundError("photo", photo_id)
    return image


def _newest_first():
    return (Photo.created_at.desc(), Photo.photo_id)


async def list_all_photos(db: AsyncSession) -> list[PhotoOut]:
    async with reading("list_all_photos"):
        rows = await db.scalars(select(Photo).order_by(*_newest_first()))
        return [PhotoOut.model_validate(p) for p in rows.all()]


async def photos_of(db: AsyncSession, owner_id: str) -> list[PhotoOut]:
    require_id(owner_id, "owner_id")
    async with reading("photos_of"):
        rows = await db.scalars(
            select(Photo).where(Photo.user_id == owner_id).order_by(*_newest_first())
        )
        return [PhotoOut.model_validate(p) for p in rows.all()]


async def photos_owned_by(db: AsyncSession, owner_ids: set[str]) -> list[PhotoOut]:
    """Photos of any of `owner_ids`, newest first, ties broken by id."""
    if not owner_ids:
        return []
    async with reading("photos_owned_by"):
        rows = await db.scalars(
            select(Photo).where(Photo.user_id.in_(owner_ids)).order_by(*_newest_first())
        )
        return [PhotoOut.model_validate(p) for p in rows.all()]


async def delete_photo(db: AsyncSession, photo_id: str) -> None:
    try:
        async with unit_of_work(db, "delete_photo"):
            await _require_photo(db, photo_id)
            comments = await db.execute(delete(Comment).where(Comment.photo_id == photo_id))
            likes = await db.execute(delete(Like).where(Like.photo_id == photo_id))
            await db.execute(delete(Photo).where(Photo.photo_id == photo_id))
    except StorageFailureError:
        CASCADE_FAILURES_TOTAL.inc()
        raise

    logger.info(
        "Photo %s deleted with %d comments and %d likes",
        photo_id,
        comments.rowcount,
        likes.rowcount,
    )


# ─────────────────────────── Likes ───────────────────────────────────────

def _duplicate_like(user_id: str, photo_id: str) -> ConflictError:
    return ConflictError("Photo already liked", {"user_id": user_id, "photo_id": photo_id})


async def like(db: AsyncSession, user_id: str, photo_id: str) -> None:
    require_id(user_id, "user_id")
    await identity.lookup_by_id(db, user_id)

    async with unit_of_work(db, "like"):
        await _require_photo(db, photo_id)
        if await is_liked(db, user_id, photo_id):
            raise _duplicate_like(user_id, photo_id)
        db.add(Like(user_id=user_id, photo_id=photo_id, created_at=now()))
        try:
            await db.flush()
        except IntegrityError as exc:
            await db.rollback()
            # FK violation: the photo went away after the check above
            if not await _photo_exists(db, photo_id):
                raise NotFoundError("photo", photo_id) from exc
            raise _duplicate_like(user_id, photo_id) from exc

    logger.info("%s liked photo %s", user_id, photo_id)


async def unlike(db: AsyncSession, user_id: str, photo_id: str) -> None:
    require_id(user_id, "user_id")
    require_id(photo_id, "photo_id")
    async with unit_of_work(db, "unlike"):
        await db.execute(delete(Like).where(Like.user_id == user_id, Like.photo_id == photo_id))


async def is_liked(db: AsyncSession, user_id: str, photo_id: str) -> bool:
    require_id(user_id, "user_id")
    require_id(photo_id, "photo_id")
    async with reading("is_liked"):
        return bool(
            await db.scalar(
                select(exists().where(Like.user_id == user_id, Like.photo_id == photo_id))
            )
        )


# ─────────────────────────── Comments ────────────────────────────────────

async def add_comment(db: AsyncSession, user_id: str, photo_id: str, text: str) -> str:
    """Store `text` verbatim; emptiness is checked by the HTTP layer."""
    require_id(user_id, "user_id")
    if text is None:
        raise InvalidArgumentError("text must not be null", {"field": "text"})
    await identity.lookup_by_id(db, user_id)
    await _require_photo(db, photo_id)

    async def _raise_if_parent_gone(exc: IntegrityError) -> None:
        await identity.lookup_by_id(db, user_id)
        await _require_photo(db, photo_id)

    created_at = now()
    async with unit_of_work(db, "add_comment"):
        comment_id = await insert_with_fresh_id(
            db,
            Comment.comment_id,
            lambda candidate: Comment(
                comment_id=candidate,
                user_id=user_id,
                photo_id=photo_id,
                content=text,
                created_at=created_at,
            ),
            on_integrity_error=_raise_if_parent_gone,
        )

    logger.info("Comment %s added by %s on photo %s", comment_id, user_id, photo_id)
    return comment_id


async def get_comment(db: AsyncSession, comment_id: str) -> CommentOut:
    require_id(comment_id, "comment_id")
    async with reading("get_comment"):
        comment = await db.get(Comment, comment_id)
        if comment is None:
            raise NotFoundError("comment", comment_id)
        return CommentOut.model_validate(comment)


async def remove_comment(db: AsyncSession, comment_id: str) -> None:
    require_id(comment_id, "comment_id")
    async with unit_of_work(db, "remove_comment"):
        result = await db.execute(delete(Comment).where(Comment.comment_id == comment_id))
        if not result.rowcount:
            raise NotFoundError("comment", comment_id)
    logger.info("Comment %s removed", comment_id)


async def comments_of(db: AsyncSession, photo_id: str) -> list[CommentOut]:
    require_id(photo_id, "photo_id")
    async with reading("comments_of"):
        rows = await db.scalars(
            select(Comment)
            .where(Comment.photo_id == photo_id)
            .order_by(Comment.created_at.desc(), Comment.comment_id)
        )
        return [CommentOut.model_validate(c) for c in rows.all()]
